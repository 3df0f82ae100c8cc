import itertools
import unittest
from unittest.mock import patch

from form_engine.core.config import settings
from form_engine.schemas.field import FieldWidth
from form_engine.services.conditional_logic import visible_field_ids
from form_engine.services.field_mutations import FieldList, InvalidFieldChange
from form_engine.services.form_templates import apply_template, fields_from_template, get_template, list_templates


def _ids():
    counter = itertools.count(1)
    return lambda: f"f{next(counter)}"


class FormTemplateTests(unittest.TestCase):
    def test_catalogue(self):
        self.assertEqual([item.id for item in list_templates()], ["conference-registration", "workshop-feedback"])
        self.assertIsNone(get_template("missing"))

    def test_unknown_template(self):
        with self.assertRaises(KeyError):
            fields_from_template("missing", "form-1")

    def test_conference_rules_point_at_new_ids(self):
        fields = fields_from_template("conference-registration", "form-1", id_factory=_ids())
        by_label = {item.label: item for item in fields}
        member = by_label["Are you a member of the association?"]
        number = by_label["Membership Number"]
        self.assertEqual(number.conditional_logic.rules[0].field_id, member.id)
        self.assertEqual([item.sort_order for item in fields], list(range(len(fields))))
        self.assertEqual(by_label["Email Address"].width, FieldWidth.HALF)

        self.assertNotIn(number.id, visible_field_ids(fields, {member.id: "no"}))
        self.assertIn(number.id, visible_field_ids(fields, {member.id: "yes"}))

    def test_template_settings_merge_with_defaults(self):
        fields = fields_from_template("workshop-feedback", "form-1", id_factory=_ids())
        rating = next(item for item in fields if item.field_type.value == "rating")
        self.assertEqual(rating.settings.max_rating, 5)
        self.assertEqual(rating.settings.rating_icon, "star")
        self.assertTrue(rating.is_required)

    def test_apply_appends_after_existing_fields(self):
        field_list = FieldList("form-1", id_factory=_ids())
        field_list.add_field("heading", label="Welcome")
        created = apply_template(field_list, "workshop-feedback")
        self.assertEqual(len(field_list), 1 + len(created))
        self.assertEqual(field_list.index_of(created[0]), 1)

    def test_template_larger_than_remaining_capacity_adds_nothing(self):
        field_list = FieldList("form-1", id_factory=_ids())
        field_list.add_field("heading", label="Welcome")
        with patch.object(settings, "FORM_MAX_FIELDS", 3):
            with self.assertRaises(InvalidFieldChange):
                apply_template(field_list, "conference-registration")
        self.assertEqual(len(field_list), 1)

    def test_failure_midway_rolls_back_added_fields(self):
        field_list = FieldList("form-1", id_factory=_ids())
        existing = field_list.add_field("heading", label="Welcome")
        update_field = field_list.update_field
        calls = []

        def failing_update(field_id, changes):
            calls.append(field_id)
            if len(calls) == 3:
                raise InvalidFieldChange("rejected")
            return update_field(field_id, changes)

        with patch.object(field_list, "update_field", side_effect=failing_update):
            with self.assertRaises(InvalidFieldChange):
                apply_template(field_list, "workshop-feedback")
        self.assertEqual(field_list.ids, [existing])
        self.assertEqual([item.sort_order for item in field_list.fields], [0])


if __name__ == "__main__":
    unittest.main()
