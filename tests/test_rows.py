from unittest import TestCase

from django_bulk_ops import Row, SchemaMismatchError
from django_bulk_ops.rows import check_same_fields
from django_bulk_ops.utils import (
    SuffixTemporaryTableNameGenerator,
    flatten_field_groups,
    generate_table_name,
)


class RowTest(TestCase):
    def test_keeps_order(self):
        row = Row({"b": 1, "a": 2})
        self.assertEqual(row.keys(), ["b", "a"])
        self.assertEqual(row.items(), [("b", 1), ("a", 2)])
        self.assertEqual(len(row), 2)
        self.assertIn("a", row)

    def test_get_missing_field(self):
        with self.assertRaises(SchemaMismatchError):
            Row({"a": 1}).get("b")

    def test_split(self):
        conditions, values = Row({"title": "foo", "id": 1, "content": "bar"}).split(["id"])
        self.assertEqual(conditions.all(), {"id": 1})
        self.assertEqual(values.all(), {"title": "foo", "content": "bar"})

    def test_split_missing_condition(self):
        with self.assertRaises(SchemaMismatchError) as context:
            Row({"title": "foo"}).split(["id", "slug"])
        self.assertEqual(context.exception.missing, ["id", "slug"])

    def test_project(self):
        row = Row({"a": 1, "b": 2, "c": 3}).project(["c", "a"])
        self.assertEqual(row.items(), [("c", 3), ("a", 1)])

    def test_check_same_fields(self):
        check_same_fields(["a", "b"], ["a", "b"])

        with self.assertRaises(SchemaMismatchError):
            check_same_fields(["b", "a"], ["a", "b"])


class TableNameTest(TestCase):
    def test_generate_table_name(self):
        name = generate_table_name("articles")
        self.assertTrue(name.startswith("articles_tmp_"))
        self.assertNotEqual(name, generate_table_name("articles"))

    def test_generate_table_name_long_source(self):
        name = generate_table_name("a" * 100)
        self.assertLessEqual(len(name), 63)

    def test_suffix(self):
        self.assertEqual(SuffixTemporaryTableNameGenerator("_tmp").generate("articles"), "articles_tmp")

        with self.assertRaises(ValueError):
            SuffixTemporaryTableNameGenerator("")

    def test_flatten_field_groups(self):
        self.assertEqual(
            flatten_field_groups([["symbol", "date"], ["id"], ["date"]]), ["symbol", "date", "id"]
        )
