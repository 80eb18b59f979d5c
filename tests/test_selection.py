from unittest import TestCase

from django_bulk_ops import AllFields, FieldExclusion, FieldInclusion, UnknownFieldError
from django_bulk_ops.selection import to_field_selection


class FieldSelectionTest(TestCase):
    def test_all_fields(self):
        self.assertEqual(AllFields().get_fields(["a", "b"]), ["a", "b"])
        self.assertEqual(AllFields().select({"a": 1, "b": 2}), {"a": 1, "b": 2})

    def test_inclusion_returns_configured_fields(self):
        selection = FieldInclusion(["b"])
        self.assertEqual(selection.get_fields(["a", "b", "c"]), ["b"])
        self.assertEqual(selection.select({"a": 1, "b": 2}), {"b": 2})

    def test_inclusion_select_missing_field(self):
        with self.assertRaises(UnknownFieldError) as context:
            FieldInclusion(["b", "c"]).select({"a": 1})
        self.assertEqual(context.exception.fields, ["b", "c"])

    def test_inclusion_requires_fields(self):
        with self.assertRaises(ValueError):
            FieldInclusion([])

    def test_exclusion(self):
        selection = FieldExclusion(["b"])
        self.assertEqual(selection.get_fields(["a", "b", "c"]), ["a", "c"])
        self.assertEqual(selection.select({"a": 1, "b": 2}), {"a": 1})

    def test_exclusion_names_every_unknown_field(self):
        with self.assertRaises(UnknownFieldError) as context:
            FieldExclusion(["x", "b", "y"]).get_fields(["a", "b"])
        self.assertEqual(
            str(context.exception), "The following fields to exclude do not exist: x, y"
        )
        self.assertEqual(context.exception.fields, ["x", "y"])

    def test_to_field_selection(self):
        self.assertIsInstance(to_field_selection(None), AllFields)
        self.assertIsInstance(to_field_selection(["a"]), FieldInclusion)
        exclusion = FieldExclusion(["a"])
        self.assertIs(to_field_selection(exclusion), exclusion)
