from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from form_engine.schemas.field_settings import FieldSettings, GeneralSettings, coerce_settings


class FieldType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    MULTISELECT = "multiselect"
    CHECKBOX = "checkbox"
    CHECKBOXES = "checkboxes"
    RADIO = "radio"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    FILE = "file"
    SIGNATURE = "signature"
    RATING = "rating"
    SCALE = "scale"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    DIVIDER = "divider"


class FieldWidth(str, Enum):
    FULL = "full"
    HALF = "half"
    THIRD = "third"


CHOICE_TYPES = frozenset({FieldType.SELECT, FieldType.MULTISELECT, FieldType.CHECKBOXES, FieldType.RADIO})
MULTI_VALUE_TYPES = frozenset({FieldType.MULTISELECT, FieldType.CHECKBOXES})
LAYOUT_TYPES = frozenset({FieldType.HEADING, FieldType.PARAGRAPH, FieldType.DIVIDER})
TEXT_LIKE_TYPES = frozenset({FieldType.TEXT, FieldType.TEXTAREA, FieldType.EMAIL, FieldType.PHONE})


class RuleOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


VALUELESS_OPERATORS = frozenset({RuleOperator.IS_EMPTY, RuleOperator.IS_NOT_EMPTY})


class LogicAction(str, Enum):
    SHOW = "show"
    HIDE = "hide"


class LogicMode(str, Enum):
    ALL = "all"
    ANY = "any"


class FieldOption(BaseModel):
    value: str
    label: str

    @field_validator("value")
    @classmethod
    def validate_value(cls, value: str) -> str:
        normalized = str(value or "").strip()
        if not normalized:
            raise ValueError("option value must not be empty")
        return normalized


class ConditionalRule(BaseModel):
    field_id: str
    operator: RuleOperator = RuleOperator.EQUALS
    value: Optional[Union[bool, int, float, str]] = None

    @field_validator("field_id")
    @classmethod
    def validate_field_id(cls, value: str) -> str:
        normalized = str(value or "").strip()
        if not normalized:
            raise ValueError("rule must reference a field")
        return normalized

    @model_validator(mode="after")
    def _check_value(self) -> "ConditionalRule":
        if self.operator not in VALUELESS_OPERATORS and self.value is None:
            raise ValueError(f'operator "{self.operator.value}" requires a value')
        return self


class ConditionalLogic(BaseModel):
    action: LogicAction = LogicAction.SHOW
    logic: LogicMode = LogicMode.ALL
    rules: list[ConditionalRule] = Field(default_factory=list)

    def referenced_ids(self) -> set[str]:
        return {rule.field_id for rule in self.rules}


class FormField(BaseModel):
    id: str
    form_id: str
    field_type: FieldType
    label: str
    placeholder: Optional[str] = None
    help_text: Optional[str] = None

    is_required: bool = False
    sort_order: int = Field(default=0, ge=0)
    width: FieldWidth = FieldWidth.FULL

    options: Optional[list[FieldOption]] = None

    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=0)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    pattern: Optional[str] = None

    settings: FieldSettings = Field(default_factory=GeneralSettings)
    conditional_logic: Optional[ConditionalLogic] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_settings(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        data["settings"] = coerce_settings(data.get("field_type"), data.get("settings"))
        return data

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid pattern: {exc}") from exc
        return value

    @model_validator(mode="after")
    def _check_invariants(self) -> "FormField":
        if self.field_type in CHOICE_TYPES:
            if not self.options:
                raise ValueError(f'field type "{self.field_type.value}" requires at least one option')
        if self.options:
            seen: set[str] = set()
            for option in self.options:
                if option.value in seen:
                    raise ValueError(f'duplicate option value "{option.value}"')
                seen.add(option.value)
        if self.pattern is not None and self.field_type not in TEXT_LIKE_TYPES:
            raise ValueError(f'pattern is not supported for field type "{self.field_type.value}"')
        if self.min_length is not None and self.max_length is not None and self.min_length > self.max_length:
            raise ValueError("min_length must not exceed max_length")
        if self.min_value is not None and self.max_value is not None and self.min_value > self.max_value:
            raise ValueError("min_value must not exceed max_value")
        if self.conditional_logic is not None and self.id in self.conditional_logic.referenced_ids():
            raise ValueError("conditional logic must not reference the field itself")
        return self

    @property
    def is_layout(self) -> bool:
        return self.field_type in LAYOUT_TYPES

    @property
    def is_choice(self) -> bool:
        return self.field_type in CHOICE_TYPES

    @property
    def is_multi_valued(self) -> bool:
        return self.field_type in MULTI_VALUE_TYPES

    def option_values(self) -> list[str]:
        return [option.value for option in self.options or []]
