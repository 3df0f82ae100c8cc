from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator

from form_engine.schemas.field import FormField
from form_engine.schemas.form import Form


class FormDocument(BaseModel):
    """A form together with its ordered fields, as exchanged with persistence."""

    form: Form
    fields: list[FormField] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_ownership(self) -> "FormDocument":
        for item in self.fields:
            if item.form_id != self.form.id:
                raise ValueError(f'field "{item.id}" does not belong to form "{self.form.id}"')
        return self

    @classmethod
    def from_payload(cls, form: dict[str, Any], fields: list[dict[str, Any]] | None = None) -> "FormDocument":
        ordered = sorted(fields or [], key=lambda item: int(item.get("sort_order") or 0))
        return cls.model_validate({"form": form, "fields": ordered})

    def to_payload(self) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        return (
            self.form.model_dump(mode="json"),
            [item.model_dump(mode="json") for item in self.fields],
        )
