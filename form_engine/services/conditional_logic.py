from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Mapping, Optional

from form_engine.schemas.field import (
    ConditionalRule,
    FormField,
    LogicAction,
    LogicMode,
    MULTI_VALUE_TYPES,
    RuleOperator,
)


def is_empty_value(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _selected(value: Any, multi: bool) -> Optional[list[str]]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return [as_text(item) for item in value]
    if not multi:
        return None
    # a scalar answer on a multi-valued field is a one-item selection
    return [] if is_empty_value(value) else [as_text(value)]


def _equals(answer: Any, expected: Any, multi: bool) -> bool:
    selected = _selected(answer, multi)
    if selected is not None:
        return as_text(expected) in selected
    return as_text(answer) == as_text(expected)


def _not_equals(answer: Any, expected: Any, multi: bool) -> bool:
    return not _equals(answer, expected, multi)


def _contains(answer: Any, expected: Any, multi: bool) -> bool:
    selected = _selected(answer, multi)
    if selected is not None:
        return as_text(expected) in selected
    return as_text(expected) in as_text(answer)


def _not_contains(answer: Any, expected: Any, multi: bool) -> bool:
    return not _contains(answer, expected, multi)


def _is_empty(answer: Any, expected: Any, multi: bool) -> bool:
    return is_empty_value(answer)


def _is_not_empty(answer: Any, expected: Any, multi: bool) -> bool:
    return not is_empty_value(answer)


def _greater_than(answer: Any, expected: Any, multi: bool) -> bool:
    left, right = as_number(answer), as_number(expected)
    if left is None or right is None:
        return False
    return left > right


def _less_than(answer: Any, expected: Any, multi: bool) -> bool:
    left, right = as_number(answer), as_number(expected)
    if left is None or right is None:
        return False
    return left < right


OPERATORS: dict[RuleOperator, Callable[[Any, Any, bool], bool]] = {
    RuleOperator.EQUALS: _equals,
    RuleOperator.NOT_EQUALS: _not_equals,
    RuleOperator.CONTAINS: _contains,
    RuleOperator.NOT_CONTAINS: _not_contains,
    RuleOperator.IS_EMPTY: _is_empty,
    RuleOperator.IS_NOT_EMPTY: _is_not_empty,
    RuleOperator.GREATER_THAN: _greater_than,
    RuleOperator.LESS_THAN: _less_than,
}


def _index(all_fields: Iterable[FormField]) -> dict[str, FormField]:
    return {item.id: item for item in all_fields}


def _evaluate(rule: ConditionalRule, by_id: Mapping[str, FormField], current_values: Mapping[str, Any]) -> bool:
    target = by_id.get(rule.field_id)
    multi = target is not None and target.field_type in MULTI_VALUE_TYPES
    return OPERATORS[rule.operator](current_values.get(rule.field_id), rule.value, multi)


def evaluate_rule(
    rule: ConditionalRule,
    all_fields: Iterable[FormField],
    current_values: Mapping[str, Any],
) -> bool:
    return _evaluate(rule, _index(all_fields), current_values or {})


def _is_visible(field: FormField, by_id: Mapping[str, FormField], current_values: Mapping[str, Any]) -> bool:
    logic = field.conditional_logic
    if logic is None:
        return True
    results = (_evaluate(rule, by_id, current_values) for rule in logic.rules)
    matched = all(results) if logic.logic == LogicMode.ALL else any(results)
    if logic.action == LogicAction.SHOW:
        return matched
    return not matched


def is_visible(
    field: FormField,
    all_fields: Iterable[FormField],
    current_values: Mapping[str, Any],
) -> bool:
    return _is_visible(field, _index(all_fields), current_values or {})


def visible_fields(all_fields: Iterable[FormField], current_values: Mapping[str, Any]) -> list[FormField]:
    ordered = sorted(all_fields, key=lambda item: item.sort_order)
    by_id = _index(ordered)
    values = current_values or {}
    return [item for item in ordered if _is_visible(item, by_id, values)]


def visible_field_ids(all_fields: Iterable[FormField], current_values: Mapping[str, Any]) -> set[str]:
    return {item.id for item in visible_fields(all_fields, current_values)}
