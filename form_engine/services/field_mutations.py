from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from form_engine.core.config import settings
from form_engine.schemas.field import CHOICE_TYPES, FieldType, FieldWidth, FormField
from form_engine.services.field_types import default_options, describe, get_field_type

_LOG = logging.getLogger("form_engine.fields")

PROTECTED_FIELD_KEYS = {"id", "form_id", "sort_order"}


class InvalidFieldChange(ValueError):
    pass


class MutationStatus(str, Enum):
    APPLIED = "applied"
    NOT_FOUND = "not_found"


@dataclass
class MutationResult:
    status: MutationStatus
    field_id: str
    changed: bool = True
    sanitized_ids: list[str] = field(default_factory=list)

    @property
    def applied(self) -> bool:
        return self.status == MutationStatus.APPLIED

    @property
    def not_found(self) -> bool:
        return self.status == MutationStatus.NOT_FOUND


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def validation_message(exc: ValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc") or ())
        message = str(error.get("msg") or "").strip()
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or str(exc)


class FieldList:
    """Ordered fields of a single form.

    Fields live in an arena keyed by id; the visual order is a separate list
    of ids and every field's ``sort_order`` is its index in that list.
    """

    def __init__(
        self,
        form_id: str,
        fields: Iterable[FormField | dict[str, Any]] = (),
        *,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.form_id = str(form_id or "").strip()
        if not self.form_id:
            raise InvalidFieldChange("form_id is required")
        self._id_factory = id_factory or _new_id
        self._fields: dict[str, FormField] = {}
        self._order: list[str] = []
        self._load(fields)

    def _load(self, fields: Iterable[FormField | dict[str, Any]]) -> None:
        parsed: list[FormField] = []
        for item in fields:
            if isinstance(item, FormField):
                parsed.append(item.model_copy(deep=True))
                continue
            try:
                parsed.append(FormField.model_validate(item))
            except ValidationError as exc:
                raise InvalidFieldChange(validation_message(exc)) from exc

        for item in sorted(parsed, key=lambda f: f.sort_order):
            if item.form_id != self.form_id:
                raise InvalidFieldChange(f'field "{item.id}" belongs to another form')
            if item.id in self._fields:
                raise InvalidFieldChange(f'duplicate field id "{item.id}"')
            self._fields[item.id] = item
            self._order.append(item.id)
        self._renumber()

        for field_id in self._order:
            current = self._fields[field_id]
            logic = current.conditional_logic
            if logic is None:
                continue
            kept = [rule for rule in logic.rules if self._is_valid_target(rule.field_id, owner_id=field_id)]
            if len(kept) == len(logic.rules):
                continue
            _LOG.warning(
                "Dropped %d dangling conditional rule(s) from field %s",
                len(logic.rules) - len(kept),
                field_id,
            )
            self._fields[field_id] = self._with_rules(current, kept)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._fields

    def __iter__(self):
        return iter(self.fields)

    @property
    def fields(self) -> list[FormField]:
        """Copies in list order; edits go through the mutation methods."""
        return [self._fields[field_id].model_copy(deep=True) for field_id in self._order]

    @property
    def ids(self) -> list[str]:
        return list(self._order)

    def get(self, field_id: str) -> Optional[FormField]:
        item = self._fields.get(field_id)
        return item.model_copy(deep=True) if item is not None else None

    def index_of(self, field_id: str) -> int:
        return self._order.index(field_id)

    def available_rule_targets(self, field_id: str) -> list[FormField]:
        return [item for item in self.fields if self._is_valid_target(item.id, owner_id=field_id)]

    def add_field(self, field_type: FieldType | str, *, label: Optional[str] = None) -> str:
        info = get_field_type(field_type)
        if info is None:
            raise InvalidFieldChange(f"unknown field type: {field_type!r}")
        self._ensure_capacity()

        description = describe(info.field_type)
        now = _now_utc()
        new_field = FormField(
            id=self._unique_id(),
            form_id=self.form_id,
            field_type=info.field_type,
            label=str(label or "").strip() or description.label,
            is_required=False,
            sort_order=len(self._order),
            width=FieldWidth.FULL,
            options=description.default_options,
            settings=description.default_settings,
            created_at=now,
            updated_at=now,
        )
        self._fields[new_field.id] = new_field
        self._order.append(new_field.id)
        return new_field.id

    def update_field(self, field_id: str, changes: dict[str, Any]) -> MutationResult:
        current = self._fields.get(field_id)
        if current is None:
            return MutationResult(MutationStatus.NOT_FOUND, field_id, changed=False)
        if not isinstance(changes, dict):
            raise InvalidFieldChange("changes must be a mapping")

        unknown = sorted(set(changes) - set(FormField.model_fields))
        if unknown:
            raise InvalidFieldChange("unknown field attributes: " + ", ".join(unknown))

        merged = current.model_dump()
        merged.update({key: value for key, value in changes.items() if key not in PROTECTED_FIELD_KEYS})
        new_type = get_field_type(merged.get("field_type"))
        if new_type is not None and new_type.field_type != current.field_type:
            if new_type.field_type in CHOICE_TYPES and not merged.get("options"):
                merged["options"] = [option.model_dump() for option in default_options(new_type.field_type) or []]
        merged["updated_at"] = _now_utc()

        try:
            updated = FormField.model_validate(merged)
        except ValidationError as exc:
            raise InvalidFieldChange(validation_message(exc)) from exc
        self._check_rules(updated)

        self._fields[field_id] = updated
        sanitized: list[str] = []
        if updated.is_layout and not current.is_layout:
            sanitized = self._strip_references(field_id)
        return MutationResult(MutationStatus.APPLIED, field_id, sanitized_ids=sanitized)

    def delete_field(self, field_id: str) -> MutationResult:
        if field_id not in self._fields:
            return MutationResult(MutationStatus.NOT_FOUND, field_id, changed=False)
        del self._fields[field_id]
        self._order.remove(field_id)
        self._renumber()
        sanitized = self._strip_references(field_id)
        return MutationResult(MutationStatus.APPLIED, field_id, sanitized_ids=sanitized)

    def duplicate_field(self, field_id: str) -> MutationResult:
        source = self._fields.get(field_id)
        if source is None:
            return MutationResult(MutationStatus.NOT_FOUND, field_id, changed=False)
        self._ensure_capacity()

        now = _now_utc()
        clone = source.model_copy(
            deep=True,
            update={
                "id": self._unique_id(),
                "label": f"{source.label}{settings.FIELD_COPY_SUFFIX}",
                "sort_order": len(self._order),
                "created_at": now,
                "updated_at": now,
            },
        )
        self._fields[clone.id] = clone
        self._order.append(clone.id)
        return MutationResult(MutationStatus.APPLIED, clone.id)

    def reorder(self, field_id: str, target_position: int) -> MutationResult:
        if field_id not in self._fields:
            return MutationResult(MutationStatus.NOT_FOUND, field_id, changed=False)
        old_index = self._order.index(field_id)
        target = max(0, min(int(target_position), len(self._order) - 1))
        if target == old_index:
            return MutationResult(MutationStatus.APPLIED, field_id, changed=False)
        self._order.pop(old_index)
        self._order.insert(target, field_id)
        self._renumber()
        return MutationResult(MutationStatus.APPLIED, field_id)

    def _renumber(self) -> None:
        for index, field_id in enumerate(self._order):
            item = self._fields[field_id]
            if item.sort_order != index:
                item.sort_order = index

    def _ensure_capacity(self) -> None:
        if len(self._order) >= settings.FORM_MAX_FIELDS:
            raise InvalidFieldChange(f"a form can hold at most {settings.FORM_MAX_FIELDS} fields")

    def _unique_id(self) -> str:
        for _ in range(8):
            candidate = str(self._id_factory() or "").strip()
            if candidate and candidate not in self._fields:
                return candidate
        raise RuntimeError("id factory keeps producing taken ids")

    def _is_valid_target(self, target_id: str, *, owner_id: str) -> bool:
        if target_id == owner_id:
            return False
        target = self._fields.get(target_id)
        return target is not None and not target.is_layout

    def _check_rules(self, candidate: FormField) -> None:
        if candidate.conditional_logic is None:
            return
        for rule in candidate.conditional_logic.rules:
            if rule.field_id == candidate.id:
                raise InvalidFieldChange("conditional logic must not reference the field itself")
            target = self._fields.get(rule.field_id)
            if target is None:
                raise InvalidFieldChange(f'conditional rule references unknown field "{rule.field_id}"')
            if target.is_layout:
                raise InvalidFieldChange(f'conditional rule references layout field "{rule.field_id}"')

    @staticmethod
    def _with_rules(item: FormField, rules: list) -> FormField:
        if not rules:
            return item.model_copy(update={"conditional_logic": None})
        logic = item.conditional_logic.model_copy(update={"rules": rules})
        return item.model_copy(update={"conditional_logic": logic})

    def _strip_references(self, target_id: str) -> list[str]:
        touched: list[str] = []
        now = _now_utc()
        for field_id in self._order:
            item = self._fields[field_id]
            logic = item.conditional_logic
            if logic is None or target_id not in logic.referenced_ids():
                continue
            kept = [rule for rule in logic.rules if rule.field_id != target_id]
            updated = self._with_rules(item, kept)
            updated.updated_at = now
            self._fields[field_id] = updated
            touched.append(field_id)
        if touched:
            _LOG.debug("Removed rules targeting %s from %s", target_id, ", ".join(touched))
        return touched
