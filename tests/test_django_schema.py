import sys
from datetime import datetime, timezone
from unittest import mock

from django.db import connection
from django.test import TestCase

from django_bulk_ops import OperationType, UnknownFieldError
from django_bulk_ops.django import (
    DjangoOperationEscaper,
    DjangoSchemaProvider,
    DjangoTemporaryTableSchemaFactory,
)
from .test_project.models import Article, Author, Book, Earnings, Post, Token


class DjangoSchemaProviderTest(TestCase):
    def test_fields(self):
        schema = DjangoSchemaProvider(Book)

        self.assertEqual(schema.table_name, "books")
        self.assertEqual(schema.identifier_columns(), ["id"])
        self.assertFalse(schema.is_insertable("id"))
        self.assertFalse(schema.is_updatable("id"))
        self.assertTrue(schema.is_insertable("created_on"))
        self.assertFalse(schema.is_updatable("created_on"))
        self.assertTrue(schema.is_updatable("modified_on"))

    def test_relation_alias(self):
        schema = DjangoSchemaProvider(Book)

        self.assertEqual(schema.column_for("author"), "author_id")
        self.assertEqual(schema.column_for("author_id"), "author_id")

    def test_db_column(self):
        self.assertEqual(DjangoSchemaProvider(Post).column_for("content"), "contents")

    def test_unknown_field(self):
        with self.assertRaises(UnknownFieldError):
            DjangoSchemaProvider(Article).column_for("missing")

    def test_unique_field_groups(self):
        self.assertEqual(DjangoSchemaProvider(Article).unique_field_groups(), [])
        self.assertEqual(DjangoSchemaProvider(Book).unique_field_groups(), [["isbn"]])
        self.assertEqual(DjangoSchemaProvider(Earnings).unique_field_groups(), [["symbol", "date"]])
        self.assertEqual(DjangoSchemaProvider(Token).unique_field_groups(), [["id"]])

    def test_extract_values(self):
        author = Author.objects.create(name="Ann")
        book = Book(isbn="123", title="Title", author=author)

        values = DjangoSchemaProvider(Book).extract_values(book, OperationType.INSERT)

        self.assertEqual(
            list(values),
            ["isbn", "title", "author_id", "metadata", "cover", "is_published", "created_on", "modified_on"],
        )
        self.assertEqual(values["author_id"], author.pk)
        self.assertIsNotNone(values["created_on"])

    def test_extract_values_for_update(self):
        article = Article.objects.create(title="foo")

        values = DjangoSchemaProvider(Article).extract_values(article, OperationType.UPDATE)

        self.assertEqual(values, {"id": article.pk, "title": "foo", "content": None})


class DjangoOperationEscaperTest(TestCase):
    def test_escape_column(self):
        escaper = DjangoOperationEscaper(Book, connection)
        self.assertEqual(escaper.escape_column("title"), connection.ops.quote_name("title"))

    def test_field_conversion(self):
        escaper = DjangoOperationEscaper(Book, connection)

        self.assertEqual(escaper.escape_value({"a": 1}, "metadata"), "'{\"a\": 1}'")
        self.assertEqual(escaper.escape_value(None, "metadata"), "NULL")
        self.assertEqual(escaper.escape_value(b"\x01", "cover"), "X'01'")

    def test_sqlite_does_not_load_psycopg2(self):
        blocked = {"psycopg2": None, "psycopg2.extensions": None, "psycopg2.extras": None}
        with mock.patch.dict(sys.modules, blocked):
            sys.modules.pop("django_bulk_ops.database", None)
            escaper = DjangoOperationEscaper(Book, connection)

            self.assertEqual(escaper.escape_value({"a": 1}, "metadata"), "'{\"a\": 1}'")
            self.assertNotIn("django_bulk_ops.database", sys.modules)

    def test_datetime(self):
        escaper = DjangoOperationEscaper(Book, connection)
        value = datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        self.assertIn("2020-01-02 03:04:05", escaper.escape_value(value, "created_on"))


class DjangoTemporaryTableSchemaFactoryTest(TestCase):
    def test_column_types(self):
        factory = DjangoTemporaryTableSchemaFactory(Book, connection)

        self.assertEqual(factory.column_type("isbn"), Book._meta.get_field("isbn").db_type(connection))
        self.assertEqual(
            factory.column_type("author_id"), Book._meta.get_field("author").db_type(connection)
        )
        self.assertNotIn("AUTO", factory.column_type("id").upper())

    def test_unknown_column(self):
        with self.assertRaises(UnknownFieldError):
            DjangoTemporaryTableSchemaFactory(Book, connection).column_type("missing")
