import unittest

from form_engine.schemas.field import FormField
from form_engine.services.validation import (
    InvalidOptionError,
    PatternError,
    RangeError,
    RequiredError,
    build_submission_payload,
    check_constraints,
    completion_progress,
    validate_field,
    validate_submission,
)


def _field(field_id, field_type="text", sort_order=0, **kwargs):
    data = {"id": field_id, "form_id": "form-1", "field_type": field_type, "label": field_id, "sort_order": sort_order}
    data.update(kwargs)
    return FormField.model_validate(data)


_OPTIONS = [
    {"value": "vegetarian", "label": "Vegetarian"},
    {"value": "vegan", "label": "Vegan"},
    {"value": "jain", "label": "Jain"},
]


class TextValidationTests(unittest.TestCase):
    def test_required_text_with_min_length(self):
        item = _field("name", is_required=True, min_length=3)

        short = validate_field(item, "ab", [item], {"name": "ab"})
        self.assertIsInstance(short.error, PatternError)
        self.assertNotIsInstance(short.error, RequiredError)
        self.assertEqual(short.error.code, "min_length")

        empty = validate_field(item, "", [item], {"name": ""})
        self.assertIsInstance(empty.error, RequiredError)
        self.assertEqual(empty.error.message, "This field is required")

        self.assertTrue(validate_field(item, "abc", [item], {}).is_valid)

    def test_whitespace_only_counts_as_missing(self):
        item = _field("name", is_required=True)
        self.assertIsInstance(check_constraints(item, "   "), RequiredError)

    def test_optional_empty_value_skips_constraints(self):
        item = _field("name", min_length=3, pattern=r"^\d+$")
        self.assertIsNone(check_constraints(item, ""))
        self.assertIsNone(check_constraints(item, None))

    def test_max_length_and_pattern(self):
        item = _field("code", "phone", max_length=5, pattern=r"^\+?\d+$")
        self.assertEqual(check_constraints(item, "+123456").code, "max_length")
        self.assertEqual(check_constraints(item, "12a").code, "pattern")
        self.assertIsNone(check_constraints(item, "+1234"))

    def test_first_failing_constraint_wins(self):
        item = _field("code", min_length=4, pattern=r"^\d+$")
        self.assertEqual(check_constraints(item, "ab").code, "min_length")

    def test_email_format(self):
        item = _field("email", "email")
        self.assertEqual(check_constraints(item, "not-an-email").code, "invalid_email")
        self.assertIsNone(check_constraints(item, "delegate@example.org"))

    def test_textarea_rejects_collections(self):
        item = _field("notes", "textarea")
        self.assertIsInstance(check_constraints(item, ["a"]), PatternError)


class NumberValidationTests(unittest.TestCase):
    def test_numeric_parse_and_bounds(self):
        item = _field("age", "number", min_value=18, max_value=99)
        self.assertEqual(check_constraints(item, "eighteen").code, "not_a_number")
        self.assertIsInstance(check_constraints(item, 17), RangeError)
        self.assertEqual(check_constraints(item, "17").message, "Minimum value is 18")
        self.assertEqual(check_constraints(item, 100).code, "max_value")
        self.assertIsNone(check_constraints(item, "42"))
        self.assertIsNone(check_constraints(item, 0.5 + 17.5))

    def test_zero_is_a_value(self):
        item = _field("count", "number", is_required=True)
        self.assertIsNone(check_constraints(item, 0))


class ChoiceValidationTests(unittest.TestCase):
    def test_single_choice_must_be_declared_option(self):
        item = _field("diet", "select", options=_OPTIONS)
        self.assertIsNone(check_constraints(item, "vegan"))
        error = check_constraints(item, "pescatarian")
        self.assertIsInstance(error, InvalidOptionError)
        self.assertIn("pescatarian", error.message)
        self.assertIsInstance(check_constraints(item, ["vegan"]), InvalidOptionError)

    def test_multi_choice_must_be_subset(self):
        item = _field("diet", "multiselect", options=_OPTIONS)
        self.assertIsNone(check_constraints(item, ["vegan", "jain"]))
        self.assertIsNone(check_constraints(item, "vegan"))
        self.assertIsInstance(check_constraints(item, ["vegan", "keto"]), InvalidOptionError)

    def test_required_multi_choice_with_empty_selection(self):
        item = _field("days", "checkboxes", options=_OPTIONS, is_required=True)
        self.assertIsInstance(check_constraints(item, []), RequiredError)

    def test_allow_other_accepts_free_values(self):
        item = _field("diet", "radio", options=_OPTIONS, settings={"allow_other": True})
        self.assertIsNone(check_constraints(item, "pescatarian"))

    def test_required_single_checkbox(self):
        item = _field("consent", "checkbox", is_required=True)
        self.assertIsInstance(check_constraints(item, False), RequiredError)
        self.assertIsNone(check_constraints(item, True))
        self.assertIsInstance(check_constraints(item, "maybe"), PatternError)


class BoundedValueTests(unittest.TestCase):
    def test_rating_bounds(self):
        item = _field("stars", "rating", settings={"max_rating": 5})
        self.assertIsNone(check_constraints(item, 5))
        self.assertIsNone(check_constraints(item, "3"))
        self.assertEqual(check_constraints(item, 6).code, "out_of_range")
        self.assertEqual(check_constraints(item, 0).code, "out_of_range")
        self.assertEqual(check_constraints(item, 2.5).code, "not_an_integer")

    def test_scale_bounds(self):
        item = _field("nps", "scale", settings={"scale_min": 0, "scale_max": 10})
        self.assertIsNone(check_constraints(item, 0))
        self.assertIsInstance(check_constraints(item, 11), RangeError)
        self.assertIsInstance(check_constraints(item, "ten"), RangeError)


class DateAndFileValidationTests(unittest.TestCase):
    def test_dates(self):
        item = _field("arrival", "date", settings={"min_date": "2026-11-01", "max_date": "2026-11-30"})
        self.assertIsNone(check_constraints(item, "2026-11-15"))
        self.assertEqual(check_constraints(item, "15/11/2026").code, "invalid_date")
        self.assertEqual(check_constraints(item, "2026-10-31").code, "before_min_date")
        self.assertEqual(check_constraints(item, "2026-12-01").code, "after_max_date")

    def test_datetime_and_time(self):
        moment = _field("flight", "datetime")
        self.assertIsNone(check_constraints(moment, "2026-11-15T10:30:00Z"))
        self.assertEqual(check_constraints(moment, "tomorrow").code, "invalid_datetime")
        clock = _field("slot", "time")
        self.assertIsNone(check_constraints(clock, "09:45"))
        self.assertEqual(check_constraints(clock, "25:99").code, "invalid_time")

    def test_file_limits(self):
        item = _field(
            "cv",
            "file",
            settings={"allowed_file_types": [".pdf", "image/*"], "max_file_size": 1, "max_files": 2},
        )
        self.assertIsNone(check_constraints(item, [{"name": "cv.pdf", "size": 1000}]))
        self.assertIsNone(check_constraints(item, [{"name": "photo", "type": "image/png", "size": 10}]))
        self.assertEqual(check_constraints(item, [{"name": "cv.docx", "size": 10}]).code, "file_type")
        self.assertEqual(
            check_constraints(item, [{"name": "cv.pdf", "size": 2 * 1024 * 1024}]).code,
            "file_too_large",
        )
        self.assertEqual(check_constraints(item, ["a.pdf", "b.pdf", "c.pdf"]).code, "too_many_files")

    def test_single_file_by_default(self):
        item = _field("badge", "file")
        self.assertIsNone(check_constraints(item, "https://cdn.example.org/badge.png"))
        self.assertEqual(check_constraints(item, ["a.png", "b.png"]).code, "too_many_files")


class SubmissionTests(unittest.TestCase):
    def setUp(self):
        self.member = _field(
            "member",
            "radio",
            0,
            is_required=True,
            options=[{"value": "yes", "label": "Yes"}, {"value": "no", "label": "No"}],
        )
        self.number = _field(
            "number",
            "text",
            1,
            is_required=True,
            conditional_logic={"rules": [{"field_id": "member", "operator": "equals", "value": "yes"}]},
        )
        self.heading = _field("heading", "heading", 2)
        self.email = _field("email", "email", 3, is_required=True)
        self.name = _field("name", "text", 4, min_length=2)
        self.fields = [self.member, self.number, self.heading, self.email, self.name]

    def test_all_field_errors_are_collected(self):
        result = validate_submission(self.fields, {"member": "yes", "email": "bad", "name": "x"})
        self.assertFalse(result.is_valid)
        self.assertEqual(set(result.errors), {"number", "email", "name"})
        self.assertIsInstance(result.errors["number"], RequiredError)
        self.assertEqual(result.messages()["email"], "Invalid email address")

    def test_hidden_values_are_dropped_from_payload(self):
        values = {
            "member": "no",
            "number": "AM-123",
            "heading": "ignored",
            "email": "delegate@example.org",
            "stray": "value",
        }
        result = validate_submission(self.fields, values)
        self.assertTrue(result.is_valid)
        self.assertEqual(result.payload, {"member": "no", "email": "delegate@example.org"})
        self.assertEqual(build_submission_payload(self.fields, values), result.payload)

    def test_completion_progress_counts_visible_inputs(self):
        self.assertEqual(completion_progress(self.fields, {"member": "no"}), (1, 3))
        self.assertEqual(completion_progress(self.fields, {"member": "yes", "number": "AM-1"}), (2, 4))


if __name__ == "__main__":
    unittest.main()
