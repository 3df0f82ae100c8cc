from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Callable, Iterable, Mapping, Optional

from form_engine.core.config import settings
from form_engine.schemas.field import FieldType, FormField, MULTI_VALUE_TYPES, TEXT_LIKE_TYPES
from form_engine.services.conditional_logic import as_number, as_text, is_empty_value, is_visible, visible_fields


@dataclass(frozen=True)
class FieldValidationError:
    field_id: str
    code: str
    message: str


class RequiredError(FieldValidationError):
    pass


class PatternError(FieldValidationError):
    pass


class InvalidOptionError(FieldValidationError):
    pass


class RangeError(FieldValidationError):
    pass


@dataclass
class ValidationResult:
    field_id: str
    visible: bool = True
    error: Optional[FieldValidationError] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None


@dataclass
class SubmissionResult:
    errors: dict[str, FieldValidationError] = field(default_factory=dict)
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def messages(self) -> dict[str, str]:
        return {field_id: error.message for field_id, error in self.errors.items()}


def _as_int(value: Any) -> Optional[int]:
    number = as_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _check_text(item: FormField, value: Any) -> Optional[FieldValidationError]:
    if isinstance(value, (list, tuple, set, dict)):
        return PatternError(item.id, "invalid_type", "Expected a text value")
    text = as_text(value)
    if item.min_length is not None and len(text) < item.min_length:
        return PatternError(item.id, "min_length", f"Minimum {item.min_length} characters required")
    if item.max_length is not None and len(text) > item.max_length:
        return PatternError(item.id, "max_length", f"Maximum {item.max_length} characters allowed")
    if item.pattern and re.search(item.pattern, text) is None:
        return PatternError(item.id, "pattern", "Invalid format")
    if item.field_type == FieldType.EMAIL and re.match(settings.EMAIL_PATTERN, text.strip()) is None:
        return PatternError(item.id, "invalid_email", "Invalid email address")
    return None


def _check_number(item: FormField, value: Any) -> Optional[FieldValidationError]:
    number = as_number(value)
    if number is None:
        return PatternError(item.id, "not_a_number", "Enter a valid number")
    if item.min_value is not None and number < item.min_value:
        return RangeError(item.id, "min_value", f"Minimum value is {as_text(item.min_value)}")
    if item.max_value is not None and number > item.max_value:
        return RangeError(item.id, "max_value", f"Maximum value is {as_text(item.max_value)}")
    return None


def _check_choice(item: FormField, value: Any) -> Optional[FieldValidationError]:
    if item.field_type in MULTI_VALUE_TYPES:
        selected = [as_text(entry) for entry in _as_list(value)]
    elif isinstance(value, (list, tuple, set, dict)):
        return InvalidOptionError(item.id, "invalid_option", "Select a single option")
    else:
        selected = [as_text(value)]
    if getattr(item.settings, "allow_other", False):
        return None
    allowed = set(item.option_values())
    unknown = [entry for entry in selected if entry not in allowed]
    if unknown:
        return InvalidOptionError(
            item.id,
            "invalid_option",
            "Unknown option: " + ", ".join(unknown),
        )
    return None


def _check_checkbox(item: FormField, value: Any) -> Optional[FieldValidationError]:
    if isinstance(value, bool) or as_text(value).strip().lower() in {"true", "false"}:
        return None
    return PatternError(item.id, "invalid_type", "Expected a checked or unchecked value")


def _check_bounded_int(item: FormField, value: Any, low: int, high: int) -> Optional[FieldValidationError]:
    number = _as_int(value)
    if number is None:
        return RangeError(item.id, "not_an_integer", "Select a whole number")
    if number < low or number > high:
        return RangeError(item.id, "out_of_range", f"Choose a value between {low} and {high}")
    return None


def _check_rating(item: FormField, value: Any) -> Optional[FieldValidationError]:
    return _check_bounded_int(item, value, 1, item.settings.max_rating)


def _check_scale(item: FormField, value: Any) -> Optional[FieldValidationError]:
    return _check_bounded_int(item, value, item.settings.scale_min, item.settings.scale_max)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    text = str(value or "").strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        parsed = _parse_datetime(text)
        return parsed.date() if parsed is not None else None


def _check_date_bounds(item: FormField, day: date) -> Optional[FieldValidationError]:
    min_day = _parse_date(item.settings.min_date) if item.settings.min_date else None
    max_day = _parse_date(item.settings.max_date) if item.settings.max_date else None
    if min_day is not None and day < min_day:
        return RangeError(item.id, "before_min_date", f"Date must be on or after {min_day.isoformat()}")
    if max_day is not None and day > max_day:
        return RangeError(item.id, "after_max_date", f"Date must be on or before {max_day.isoformat()}")
    return None


def _check_date(item: FormField, value: Any) -> Optional[FieldValidationError]:
    if isinstance(value, datetime):
        day = value.date()
    else:
        try:
            day = value if isinstance(value, date) else date.fromisoformat(str(value).strip())
        except ValueError:
            return PatternError(item.id, "invalid_date", "Enter a valid date")
    return _check_date_bounds(item, day)


def _check_datetime(item: FormField, value: Any) -> Optional[FieldValidationError]:
    parsed = _parse_datetime(value)
    if parsed is None:
        return PatternError(item.id, "invalid_datetime", "Enter a valid date and time")
    return _check_date_bounds(item, parsed.date())


def _check_time(item: FormField, value: Any) -> Optional[FieldValidationError]:
    if isinstance(value, time):
        return None
    try:
        time.fromisoformat(str(value).strip())
    except ValueError:
        return PatternError(item.id, "invalid_time", "Enter a valid time")
    return None


def _type_matches(requirement: str, file_name: str, mime_type: str) -> bool:
    required = str(requirement or "").strip().lower()
    if not required:
        return False
    if "/" in required:
        actual = str(mime_type or "").strip().lower()
        if not actual:
            return False
        if required.endswith("/*"):
            return actual.startswith(required[:-1])
        return actual == required
    extension = required.lstrip(".")
    name = str(file_name or "").strip().lower()
    return "." in name and name.rsplit(".", 1)[1] == extension


def _check_file(item: FormField, value: Any) -> Optional[FieldValidationError]:
    files = [entry for entry in _as_list(value) if not is_empty_value(entry)]
    options = item.settings
    limit = options.max_files if options.max_files is not None else (None if options.allow_multiple else 1)
    if limit is not None and len(files) > limit:
        return RangeError(item.id, "too_many_files", f"At most {limit} file(s) allowed")
    max_bytes = options.max_file_size * 1024 * 1024 if options.max_file_size else None
    for entry in files:
        meta = entry if isinstance(entry, dict) else {"name": as_text(entry)}
        name = str(meta.get("name") or meta.get("url") or "")
        if options.allowed_file_types and not any(
            _type_matches(requirement, name, str(meta.get("type") or ""))
            for requirement in options.allowed_file_types
        ):
            return PatternError(item.id, "file_type", f'File type of "{name}" is not allowed')
        size = as_number(meta.get("size"))
        if max_bytes is not None and size is not None and size > max_bytes:
            return RangeError(
                item.id,
                "file_too_large",
                f'"{name}" exceeds {as_text(options.max_file_size)} MB',
            )
    return None


def _check_signature(item: FormField, value: Any) -> Optional[FieldValidationError]:
    if not isinstance(value, str):
        return PatternError(item.id, "invalid_type", "Expected a signature")
    return None


_CHECKERS: dict[FieldType, Callable[[FormField, Any], Optional[FieldValidationError]]] = {
    **{field_type: _check_text for field_type in TEXT_LIKE_TYPES},
    FieldType.NUMBER: _check_number,
    FieldType.SELECT: _check_choice,
    FieldType.RADIO: _check_choice,
    FieldType.MULTISELECT: _check_choice,
    FieldType.CHECKBOXES: _check_choice,
    FieldType.CHECKBOX: _check_checkbox,
    FieldType.RATING: _check_rating,
    FieldType.SCALE: _check_scale,
    FieldType.DATE: _check_date,
    FieldType.DATETIME: _check_datetime,
    FieldType.TIME: _check_time,
    FieldType.FILE: _check_file,
    FieldType.SIGNATURE: _check_signature,
}


def check_constraints(item: FormField, value: Any) -> Optional[FieldValidationError]:
    """First failing constraint of a visible field, or None."""
    if item.is_layout:
        return None
    if is_empty_value(value):
        if item.is_required:
            return RequiredError(item.id, "required", "This field is required")
        return None
    checker = _CHECKERS.get(item.field_type)
    if checker is None:
        return None
    return checker(item, value)


def validate_field(
    item: FormField,
    value: Any,
    all_fields: Iterable[FormField],
    current_values: Mapping[str, Any],
) -> ValidationResult:
    if not is_visible(item, all_fields, current_values):
        return ValidationResult(item.id, visible=False)
    return ValidationResult(item.id, visible=True, error=check_constraints(item, value))


def _input_fields(fields: Iterable[FormField], values: Mapping[str, Any]) -> list[FormField]:
    return [item for item in visible_fields(fields, values) if not item.is_layout]


def build_submission_payload(fields: Iterable[FormField], values: Mapping[str, Any]) -> dict[str, Any]:
    values = values or {}
    return {item.id: values[item.id] for item in _input_fields(fields, values) if item.id in values}


def validate_submission(fields: Iterable[FormField], values: Mapping[str, Any]) -> SubmissionResult:
    fields = list(fields)
    values = values or {}
    result = SubmissionResult()
    for item in _input_fields(fields, values):
        error = check_constraints(item, values.get(item.id))
        if error is not None:
            result.errors[item.id] = error
    result.payload = build_submission_payload(fields, values)
    return result


def completion_progress(fields: Iterable[FormField], values: Mapping[str, Any]) -> tuple[int, int]:
    values = values or {}
    inputs = _input_fields(fields, values)
    answered = sum(1 for item in inputs if not is_empty_value(values.get(item.id)))
    return answered, len(inputs)
