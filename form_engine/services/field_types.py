from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from form_engine.schemas.field import CHOICE_TYPES, FieldOption, FieldType
from form_engine.schemas.field_settings import BaseFieldSettings, settings_model_for

CATEGORY_BASIC = "basic"
CATEGORY_CHOICE = "choice"
CATEGORY_ADVANCED = "advanced"
CATEGORY_LAYOUT = "layout"
CATEGORIES = (CATEGORY_BASIC, CATEGORY_CHOICE, CATEGORY_ADVANCED, CATEGORY_LAYOUT)


@dataclass(frozen=True)
class FieldTypeInfo:
    field_type: FieldType
    label: str
    category: str
    default_settings: dict[str, Any]


@dataclass
class FieldTypeDescription:
    label: str
    category: str
    default_settings: BaseFieldSettings
    default_options: Optional[list[FieldOption]]


_FIELD_TYPES: dict[FieldType, FieldTypeInfo] = {
    info.field_type: info
    for info in (
        FieldTypeInfo(FieldType.TEXT, "Text Input", CATEGORY_BASIC, {}),
        FieldTypeInfo(FieldType.EMAIL, "Email Address", CATEGORY_BASIC, {}),
        FieldTypeInfo(FieldType.PHONE, "Phone Number", CATEGORY_BASIC, {}),
        FieldTypeInfo(FieldType.NUMBER, "Number", CATEGORY_BASIC, {}),
        FieldTypeInfo(FieldType.TEXTAREA, "Long Text", CATEGORY_BASIC, {}),
        FieldTypeInfo(FieldType.SELECT, "Dropdown", CATEGORY_CHOICE, {}),
        FieldTypeInfo(FieldType.MULTISELECT, "Multi-Select", CATEGORY_CHOICE, {}),
        FieldTypeInfo(FieldType.CHECKBOX, "Checkbox", CATEGORY_CHOICE, {}),
        FieldTypeInfo(FieldType.CHECKBOXES, "Checkbox Group", CATEGORY_CHOICE, {}),
        FieldTypeInfo(FieldType.RADIO, "Radio Buttons", CATEGORY_CHOICE, {}),
        FieldTypeInfo(FieldType.DATE, "Date Picker", CATEGORY_ADVANCED, {}),
        FieldTypeInfo(FieldType.TIME, "Time Picker", CATEGORY_ADVANCED, {}),
        FieldTypeInfo(FieldType.DATETIME, "Date & Time", CATEGORY_ADVANCED, {}),
        FieldTypeInfo(FieldType.FILE, "File Upload", CATEGORY_ADVANCED, {}),
        FieldTypeInfo(FieldType.SIGNATURE, "Signature", CATEGORY_ADVANCED, {}),
        FieldTypeInfo(FieldType.RATING, "Star Rating", CATEGORY_ADVANCED, {"max_rating": 5}),
        FieldTypeInfo(FieldType.SCALE, "Linear Scale", CATEGORY_ADVANCED, {"scale_min": 1, "scale_max": 10}),
        FieldTypeInfo(FieldType.HEADING, "Heading", CATEGORY_LAYOUT, {"heading_size": "h2"}),
        FieldTypeInfo(FieldType.PARAGRAPH, "Paragraph", CATEGORY_LAYOUT, {}),
        FieldTypeInfo(FieldType.DIVIDER, "Divider Line", CATEGORY_LAYOUT, {}),
    )
}


def _coerce_type(field_type: Any) -> Optional[FieldType]:
    try:
        return FieldType(str(getattr(field_type, "value", field_type) or "").strip())
    except ValueError:
        return None


def field_type_exists(field_type: Any) -> bool:
    return _coerce_type(field_type) is not None


def get_field_type(field_type: Any) -> Optional[FieldTypeInfo]:
    resolved = _coerce_type(field_type)
    if resolved is None:
        return None
    return _FIELD_TYPES[resolved]


def default_options(field_type: Any) -> Optional[list[FieldOption]]:
    if _coerce_type(field_type) not in CHOICE_TYPES:
        return None
    return [
        FieldOption(value="option_1", label="Option 1"),
        FieldOption(value="option_2", label="Option 2"),
    ]


def describe(field_type: Any) -> FieldTypeDescription:
    info = get_field_type(field_type)
    if info is None:
        raise KeyError(f"unknown field type: {field_type!r}")
    settings_model = settings_model_for(info.field_type)
    return FieldTypeDescription(
        label=info.label,
        category=info.category,
        default_settings=settings_model.model_validate(info.default_settings),
        default_options=default_options(info.field_type),
    )


def palette() -> dict[str, list[FieldTypeInfo]]:
    grouped: dict[str, list[FieldTypeInfo]] = {category: [] for category in CATEGORIES}
    for info in _FIELD_TYPES.values():
        grouped[info.category].append(info)
    return grouped
