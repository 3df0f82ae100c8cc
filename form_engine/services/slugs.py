from __future__ import annotations

import re
import uuid
from typing import Any, Iterable, Optional

from form_engine.core.config import settings
from form_engine.schemas.form import Form


def slugify(text: str) -> str:
    value = str(text or "").lower().strip()
    value = re.sub(r"[^\w\s-]", "", value)
    value = re.sub(r"\s+", "-", value)
    value = re.sub(r"-+", "-", value).strip("-")
    return value[: settings.FORM_SLUG_MAX_LENGTH].rstrip("-")


def unique_slug(name: str, taken: Iterable[str] = ()) -> str:
    base = slugify(name) or "form"
    used = {str(item or "").strip().lower() for item in taken}
    if base not in used:
        return base
    counter = 2
    while True:
        suffix = f"-{counter}"
        candidate = base[: settings.FORM_SLUG_MAX_LENGTH - len(suffix)].rstrip("-") + suffix
        if candidate not in used:
            return candidate
        counter += 1


def new_form(
    name: str,
    *,
    taken_slugs: Iterable[str] = (),
    slug: Optional[str] = None,
    form_id: Optional[str] = None,
    **attributes: Any,
) -> Form:
    title = str(name or "").strip() or "Untitled Form"
    chosen = slugify(slug) if slug else ""
    if not chosen or chosen in {str(item or "").strip().lower() for item in taken_slugs}:
        chosen = unique_slug(chosen or title, taken_slugs)
    return Form(id=form_id or str(uuid.uuid4()), slug=chosen, name=title, **attributes)
