from __future__ import annotations

from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from form_engine.core.config import settings
from form_engine.schemas.field import ConditionalLogic, FieldOption, FieldType, FieldWidth, FormField
from form_engine.services.field_mutations import FieldList, InvalidFieldChange


class TemplateField(BaseModel):
    key: str
    field_type: FieldType
    label: str
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    is_required: bool = False
    width: FieldWidth = FieldWidth.FULL
    options: Optional[list[FieldOption]] = None
    settings: dict[str, Any] = Field(default_factory=dict)
    # rule field_ids are template keys
    conditional_logic: Optional[ConditionalLogic] = None


class FormTemplate(BaseModel):
    id: str
    name: str
    description: str
    category: str
    fields: list[TemplateField]


def _options(*pairs: tuple[str, str]) -> list[dict[str, str]]:
    return [{"value": value, "label": label} for value, label in pairs]


FORM_TEMPLATES: list[FormTemplate] = [
    FormTemplate.model_validate(
        {
            "id": "conference-registration",
            "name": "Conference Registration",
            "description": "Standard conference registration form with attendee details and preferences",
            "category": "event_registration",
            "fields": [
                {"key": "name", "field_type": "text", "label": "Full Name", "placeholder": "Enter your full name", "is_required": True},
                {"key": "email", "field_type": "email", "label": "Email Address", "placeholder": "your.email@example.com", "is_required": True, "width": "half"},
                {"key": "phone", "field_type": "phone", "label": "Phone Number", "placeholder": "+91 9876543210", "is_required": True, "width": "half"},
                {"key": "institution", "field_type": "text", "label": "Institution / Organization", "is_required": True},
                {
                    "key": "is_member",
                    "field_type": "radio",
                    "label": "Are you a member of the association?",
                    "is_required": True,
                    "options": _options(("yes", "Yes"), ("no", "No")),
                },
                {
                    "key": "member_number",
                    "field_type": "text",
                    "label": "Membership Number",
                    "is_required": True,
                    "conditional_logic": {
                        "action": "show",
                        "logic": "all",
                        "rules": [{"field_id": "is_member", "operator": "equals", "value": "yes"}],
                    },
                },
                {
                    "key": "diet",
                    "field_type": "select",
                    "label": "Dietary Preference",
                    "width": "half",
                    "options": _options(
                        ("vegetarian", "Vegetarian"),
                        ("non_vegetarian", "Non-Vegetarian"),
                        ("vegan", "Vegan"),
                        ("jain", "Jain"),
                        ("no_preference", "No Preference"),
                    ),
                },
                {
                    "key": "tshirt",
                    "field_type": "select",
                    "label": "T-Shirt Size",
                    "width": "half",
                    "options": _options(("xs", "XS"), ("s", "S"), ("m", "M"), ("l", "L"), ("xl", "XL"), ("xxl", "XXL")),
                },
                {
                    "key": "requirements",
                    "field_type": "textarea",
                    "label": "Special Requirements",
                    "placeholder": "Any accessibility needs, allergies, or other requirements...",
                },
            ],
        }
    ),
    FormTemplate.model_validate(
        {
            "id": "workshop-feedback",
            "name": "Workshop Feedback",
            "description": "Quick feedback form for workshops and training sessions",
            "category": "feedback",
            "fields": [
                {"key": "name", "field_type": "text", "label": "Name", "placeholder": "Enter your name (optional)", "width": "half"},
                {"key": "email", "field_type": "email", "label": "Email", "placeholder": "your.email@example.com (optional)", "width": "half"},
                {
                    "key": "rating",
                    "field_type": "rating",
                    "label": "Overall Rating",
                    "help_text": "Rate this workshop on a scale of 1-5",
                    "is_required": True,
                    "settings": {"max_rating": 5, "rating_icon": "star"},
                },
                {
                    "key": "pace",
                    "field_type": "radio",
                    "label": "How was the pace of the workshop?",
                    "is_required": True,
                    "options": _options(("too_fast", "Too Fast"), ("just_right", "Just Right"), ("too_slow", "Too Slow")),
                },
                {
                    "key": "pace_details",
                    "field_type": "textarea",
                    "label": "What would you change about the pace?",
                    "conditional_logic": {
                        "action": "hide",
                        "logic": "any",
                        "rules": [{"field_id": "pace", "operator": "equals", "value": "just_right"}],
                    },
                },
                {"key": "section_divider", "field_type": "divider", "label": "Divider"},
                {
                    "key": "suggestions",
                    "field_type": "textarea",
                    "label": "Any suggestions for improvement?",
                    "placeholder": "Your feedback helps us improve...",
                },
            ],
        }
    ),
]


def list_templates() -> list[FormTemplate]:
    return list(FORM_TEMPLATES)


def get_template(template_id: str) -> Optional[FormTemplate]:
    wanted = str(template_id or "").strip()
    for template in FORM_TEMPLATES:
        if template.id == wanted:
            return template
    return None


def _add_template_fields(field_list: FieldList, template: FormTemplate, created: list[str]) -> None:
    ids_by_key: dict[str, str] = {}
    for item in template.fields:
        field_id = field_list.add_field(item.field_type, label=item.label)
        ids_by_key[item.key] = field_id
        created.append(field_id)
        current = field_list.get(field_id)
        changes: dict[str, Any] = {
            "placeholder": item.placeholder,
            "help_text": item.help_text,
            "is_required": item.is_required,
            "width": item.width,
            "settings": {**current.settings.model_dump(), **item.settings},
        }
        if item.options is not None:
            changes["options"] = item.options
        if item.conditional_logic is not None:
            rules = []
            for rule in item.conditional_logic.rules:
                if rule.field_id not in ids_by_key:
                    raise InvalidFieldChange(f'template rule references unknown key "{rule.field_id}"')
                rules.append(rule.model_copy(update={"field_id": ids_by_key[rule.field_id]}))
            changes["conditional_logic"] = item.conditional_logic.model_copy(update={"rules": rules})
        field_list.update_field(field_id, changes)


def apply_template(field_list: FieldList, template_id: str) -> list[str]:
    """Append a template's fields to ``field_list``; returns the new ids in order.

    Either every template field is added or, on error, none is.
    """
    template = get_template(template_id)
    if template is None:
        raise KeyError(f"unknown form template: {template_id!r}")
    if len(field_list) + len(template.fields) > settings.FORM_MAX_FIELDS:
        raise InvalidFieldChange(f"a form can hold at most {settings.FORM_MAX_FIELDS} fields")

    created: list[str] = []
    try:
        _add_template_fields(field_list, template, created)
    except Exception:
        for field_id in reversed(created):
            field_list.delete_field(field_id)
        raise
    return created


def fields_from_template(
    template_id: str,
    form_id: str,
    *,
    id_factory: Optional[Callable[[], str]] = None,
) -> list[FormField]:
    field_list = FieldList(form_id, id_factory=id_factory)
    apply_template(field_list, template_id)
    return field_list.fields
