from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BaseFieldSettings(BaseModel):
    """Presentation settings shared by every field type."""

    model_config = ConfigDict(extra="ignore")

    label_position: Optional[Literal["top", "left"]] = None
    spacing: Optional[Literal["compact", "normal", "relaxed"]] = None
    hide_label: bool = False
    help_position: Optional[Literal["below", "tooltip"]] = None
    label_bold: bool = False
    label_italic: bool = False
    label_underline: bool = False
    label_color: Optional[str] = None
    label_alignment: Optional[Literal["left", "center", "right"]] = None


class GeneralSettings(BaseFieldSettings):
    pass


class EmailSettings(BaseFieldSettings):
    member_lookup: bool = False


class PhoneSettings(BaseFieldSettings):
    default_country: Optional[str] = None
    show_country: bool = False
    phone_verification: bool = False


class NumberSettings(BaseFieldSettings):
    decimal_places: Optional[int] = Field(default=None, ge=0)


class ChoiceSettings(BaseFieldSettings):
    allow_other: bool = False
    searchable: bool = False


class DateSettings(BaseFieldSettings):
    date_format: Optional[str] = None
    min_date: Optional[str] = None
    max_date: Optional[str] = None


class FileSettings(BaseFieldSettings):
    allowed_file_types: list[str] = Field(default_factory=list)
    max_file_size: Optional[float] = Field(default=None, gt=0)
    allow_multiple: bool = False
    max_files: Optional[int] = Field(default=None, ge=1)


class RatingSettings(BaseFieldSettings):
    max_rating: int = Field(default=5, ge=1)
    rating_icon: Literal["star", "heart", "thumb"] = "star"


class ScaleSettings(BaseFieldSettings):
    scale_min: int = 1
    scale_max: int = 10
    scale_min_label: Optional[str] = None
    scale_max_label: Optional[str] = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "ScaleSettings":
        if self.scale_min >= self.scale_max:
            raise ValueError("scale_min must be lower than scale_max")
        return self


class HeadingSettings(BaseFieldSettings):
    heading_size: Literal["h1", "h2", "h3"] = "h2"


class DividerSettings(BaseFieldSettings):
    divider_color: Optional[str] = None
    divider_style: Literal["solid", "dashed", "dotted"] = "solid"
    divider_thickness: Literal["thin", "medium", "thick"] = "thin"


FieldSettings = Union[
    GeneralSettings,
    EmailSettings,
    PhoneSettings,
    NumberSettings,
    ChoiceSettings,
    DateSettings,
    FileSettings,
    RatingSettings,
    ScaleSettings,
    HeadingSettings,
    DividerSettings,
]

# keyed by the field_type value
SETTINGS_MODELS: dict[str, type[BaseFieldSettings]] = {
    "email": EmailSettings,
    "phone": PhoneSettings,
    "number": NumberSettings,
    "select": ChoiceSettings,
    "multiselect": ChoiceSettings,
    "checkboxes": ChoiceSettings,
    "radio": ChoiceSettings,
    "date": DateSettings,
    "datetime": DateSettings,
    "file": FileSettings,
    "rating": RatingSettings,
    "scale": ScaleSettings,
    "heading": HeadingSettings,
    "divider": DividerSettings,
}


def settings_model_for(field_type: Any) -> type[BaseFieldSettings]:
    key = str(getattr(field_type, "value", field_type) or "").strip()
    return SETTINGS_MODELS.get(key, GeneralSettings)


def coerce_settings(field_type: Any, raw: Any) -> BaseFieldSettings:
    model = settings_model_for(field_type)
    if type(raw) is model:
        return raw
    if isinstance(raw, BaseFieldSettings):
        raw = raw.model_dump()
    return model.model_validate(raw or {})
