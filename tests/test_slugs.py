import unittest
from unittest.mock import patch

from form_engine.core.config import settings
from form_engine.services.slugs import new_form, slugify, unique_slug


class SlugTests(unittest.TestCase):
    def test_slugify(self):
        self.assertEqual(slugify("  Annual Meet 2026!  "), "annual-meet-2026")
        self.assertEqual(slugify("Pre--Conference   Workshop"), "pre-conference-workshop")
        self.assertEqual(slugify("???"), "")

    def test_slugify_truncates(self):
        with patch.object(settings, "FORM_SLUG_MAX_LENGTH", 10):
            self.assertEqual(slugify("annual meet twenty"), "annual-mee")
            self.assertEqual(slugify("annual mi twenty"), "annual-mi")

    def test_unique_slug_appends_counter(self):
        self.assertEqual(unique_slug("Annual Meet"), "annual-meet")
        self.assertEqual(unique_slug("Annual Meet", ["annual-meet"]), "annual-meet-2")
        self.assertEqual(unique_slug("Annual Meet", ["annual-meet", "annual-meet-2"]), "annual-meet-3")
        self.assertEqual(unique_slug("!!!"), "form")


class NewFormTests(unittest.TestCase):
    def test_new_form_defaults(self):
        form = new_form("  ")
        self.assertEqual(form.name, "Untitled Form")
        self.assertEqual(form.slug, "untitled-form")
        self.assertTrue(form.id)
        self.assertFalse(form.is_published)

    def test_new_form_with_explicit_slug(self):
        form = new_form("Annual Meet", slug="Meet 2026", form_id="form-9", is_member_form=True)
        self.assertEqual(form.id, "form-9")
        self.assertEqual(form.slug, "meet-2026")
        self.assertTrue(form.is_member_form)

    def test_taken_slug_gets_suffix(self):
        form = new_form("Annual Meet", taken_slugs=["annual-meet"])
        self.assertEqual(form.slug, "annual-meet-2")


if __name__ == "__main__":
    unittest.main()
