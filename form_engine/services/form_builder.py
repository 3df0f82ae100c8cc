from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable, Optional, Protocol

from pydantic import ValidationError

from form_engine.schemas.document import FormDocument
from form_engine.schemas.field import FieldType, FormField
from form_engine.schemas.form import Form, FormStatus
from form_engine.services.field_mutations import FieldList, MutationResult, validation_message
from form_engine.services.form_templates import apply_template

_LOG = logging.getLogger("form_engine.builder")

PROTECTED_FORM_KEYS = {"id", "status", "created_at"}


class InvalidFormChange(ValueError):
    pass


class PublishRefused(Exception):
    pass


class FormSaver(Protocol):
    async def __call__(self, form: Form, fields: list[FormField]) -> None:
        ...


class FormBuilder:
    """One editing session over one form.

    Every applied mutation bumps ``version``; a successful save records the
    version it persisted, so unsaved changes are ``version != saved_version``.
    """

    def __init__(
        self,
        form: Form,
        fields: Iterable[FormField | dict[str, Any]] = (),
        save: Optional[FormSaver] = None,
        *,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._form = form.model_copy(deep=True)
        self._fields = FieldList(form.id, fields, id_factory=id_factory)
        self._save = save
        self._lock = asyncio.Lock()
        self.selected_field_id: Optional[str] = None
        self.version = 0
        self.saved_version = 0
        self.is_saving = False

    @classmethod
    def from_document(cls, document: FormDocument, save: Optional[FormSaver] = None, **kwargs: Any) -> "FormBuilder":
        return cls(document.form, document.fields, save, **kwargs)

    @property
    def form(self) -> Form:
        return self._form

    @property
    def fields(self) -> list[FormField]:
        return self._fields.fields

    @property
    def field_list(self) -> FieldList:
        return self._fields

    @property
    def is_dirty(self) -> bool:
        return self.version != self.saved_version

    @property
    def selected_field(self) -> Optional[FormField]:
        if self.selected_field_id is None:
            return None
        return self._fields.get(self.selected_field_id)

    def select_field(self, field_id: Optional[str]) -> bool:
        if field_id is not None and field_id not in self._fields:
            return False
        self.selected_field_id = field_id
        return True

    def _touch(self, result: Optional[MutationResult] = None) -> None:
        if result is None or (result.applied and result.changed):
            self.version += 1

    def add_field(self, field_type: FieldType | str, *, label: Optional[str] = None) -> str:
        field_id = self._fields.add_field(field_type, label=label)
        self.selected_field_id = field_id
        self._touch()
        return field_id

    def update_field(self, field_id: str, changes: dict[str, Any]) -> MutationResult:
        result = self._fields.update_field(field_id, changes)
        self._touch(result)
        return result

    def delete_field(self, field_id: str) -> MutationResult:
        result = self._fields.delete_field(field_id)
        if result.applied and self.selected_field_id == field_id:
            self.selected_field_id = None
        self._touch(result)
        return result

    def duplicate_field(self, field_id: str) -> MutationResult:
        result = self._fields.duplicate_field(field_id)
        if result.applied:
            self.selected_field_id = result.field_id
        self._touch(result)
        return result

    def reorder(self, field_id: str, target_position: int) -> MutationResult:
        result = self._fields.reorder(field_id, target_position)
        self._touch(result)
        return result

    def apply_template(self, template_id: str) -> list[str]:
        created = apply_template(self._fields, template_id)
        if created:
            self.selected_field_id = created[-1]
            self._touch()
        return created

    def update_form(self, changes: dict[str, Any]) -> Form:
        if not isinstance(changes, dict):
            raise InvalidFormChange("changes must be a mapping")
        blocked = sorted(set(changes) & PROTECTED_FORM_KEYS)
        if blocked:
            raise InvalidFormChange("read-only form attributes: " + ", ".join(blocked))
        unknown = sorted(set(changes) - set(Form.model_fields))
        if unknown:
            raise InvalidFormChange("unknown form attributes: " + ", ".join(unknown))

        merged = self._form.model_dump()
        merged.update(changes)
        try:
            self._form = Form.model_validate(merged)
        except ValidationError as exc:
            raise InvalidFormChange(validation_message(exc)) from exc
        self._touch()
        return self._form

    def snapshot(self, form: Optional[Form] = None) -> FormDocument:
        return FormDocument(
            form=(form or self._form).model_copy(deep=True),
            fields=self._fields.fields,
        )

    async def _persist(self, status: Optional[FormStatus] = None) -> None:
        if self._save is None:
            raise RuntimeError("no save collaborator configured")
        async with self._lock:
            # snapshot under the lock: includes edits made while waiting
            form = self._form if status is None else self._form.model_copy(update={"status": status})
            document = self.snapshot(form)
            version = self.version
            self.is_saving = True
            try:
                await self._save(document.form, document.fields)
            finally:
                self.is_saving = False
            self.saved_version = version
            if status is not None:
                self._form = self._form.model_copy(update={"status": status})

    async def save(self) -> None:
        try:
            await self._persist()
        except Exception:
            _LOG.warning("Failed to save form %s", self._form.id, exc_info=True)
            raise

    async def publish(self) -> None:
        if len(self._fields) == 0:
            _LOG.info("Refusing to publish form %s without fields", self._form.id)
            raise PublishRefused("Add at least one field before publishing")
        await self._set_status(FormStatus.PUBLISHED)

    async def unpublish(self) -> None:
        await self._set_status(FormStatus.DRAFT)

    async def _set_status(self, status: FormStatus) -> None:
        try:
            await self._persist(status)
        except Exception:
            _LOG.warning("Failed to switch form %s to %s", self._form.id, status.value, exc_info=True)
            raise
