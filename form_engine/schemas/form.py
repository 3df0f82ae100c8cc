from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from form_engine.core.config import settings


class FormStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


def normalize_email_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set)):
        raise ValueError("notification_emails must be a list of addresses")
    out: list[str] = []
    seen: set[str] = set()
    for item in value:
        text = str(item or "").strip()
        if not text:
            continue
        lowered = text.lower()
        if lowered in seen:
            continue
        if not re.match(settings.EMAIL_PATTERN, text):
            raise ValueError(f'invalid notification email "{text}"')
        seen.add(lowered)
        out.append(text)
    return out


class Form(BaseModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None

    primary_color: str = Field(default_factory=lambda: settings.FORM_DEFAULT_PRIMARY_COLOR)
    background_color: Optional[str] = None
    logo_url: Optional[str] = None
    header_image_url: Optional[str] = None
    submit_button_text: str = Field(default_factory=lambda: settings.FORM_DEFAULT_SUBMIT_TEXT)
    success_message: str = Field(default_factory=lambda: settings.FORM_DEFAULT_SUCCESS_MESSAGE)
    redirect_url: Optional[str] = None

    is_public: bool = True
    requires_auth: bool = False
    is_member_form: bool = False
    membership_required_strict: bool = True
    allow_multiple_submissions: bool = False
    max_submissions: Optional[int] = Field(default=None, ge=1)
    submission_deadline: Optional[datetime] = None
    notify_on_submission: bool = True
    notification_emails: list[str] = Field(default_factory=list)

    status: FormStatus = FormStatus.DRAFT

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value: str) -> str:
        normalized = str(value or "").strip()
        if not normalized:
            raise ValueError("slug must not be empty")
        return normalized

    @field_validator("notification_emails", mode="before")
    @classmethod
    def validate_notification_emails(cls, value: Any) -> list[str]:
        return normalize_email_list(value)

    @property
    def is_published(self) -> bool:
        return self.status == FormStatus.PUBLISHED
