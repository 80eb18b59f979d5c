from unittest import TestCase

from django_bulk_ops import (
    BatchedOperation,
    Inserter,
    LargeOperation,
    OperationType,
    SuffixTemporaryTableNameGenerator,
    config,
    configure,
)
from .helpers import RecordingExecutor, article_schema, create_context, earnings_schema


def earnings_rows(count):
    return [
        {"symbol": "AAPL", "date": f"2020-01-{day:02d}", "eps_actual": float(day)}
        for day in range(1, count + 1)
    ]


class BatchedOperationTest(TestCase):
    def setUp(self):
        self.executor = RecordingExecutor(row_count=1)
        self.context = create_context("sqlite", self.executor)

    def create_large_operation(self):
        return LargeOperation(
            earnings_schema(),
            self.context.escaper,
            self.context.executor,
            self.context.platform,
            self.context.temporary_table_schema_factory,
            OperationType.UPSERT,
            name_generator=SuffixTemporaryTableNameGenerator("_tmp"),
        )

    def test_flushes_every_batch(self):
        operation = BatchedOperation(self.create_large_operation(), size=2)
        for values in earnings_rows(5):
            operation.add_raw(values)

        # two automatic flushes, one row still pending
        self.assertEqual(len(self.executor.scripts), 2)
        self.assertEqual(operation.get_item_count(), 5)
        self.assertIn("2020-01-05", operation.get_sql())

        self.assertEqual(operation.execute(), 5)
        self.assertEqual(len(self.executor.scripts), 3)
        self.assertEqual(
            [script.fixed_item_count for script in self.executor.scripts], [2, 2, 1]
        )
        self.assertEqual(operation.get_sql(), "")

    def test_total_resets_after_execute(self):
        operation = BatchedOperation(self.create_large_operation(), size=2)
        for values in earnings_rows(3):
            operation.add_raw(values)
        self.assertEqual(operation.execute(), 3)

        operation.add_raw(earnings_rows(1)[0])
        self.assertEqual(operation.execute(), 1)
        # item count covers the whole lifetime
        self.assertEqual(operation.get_item_count(), 4)

    def test_execute_on_exact_multiple(self):
        operation = BatchedOperation(self.create_large_operation(), size=2)
        for values in earnings_rows(4):
            operation.add_raw(values)

        self.assertEqual(operation.execute(), 4)
        self.assertEqual(len(self.executor.scripts), 2)

    def test_wraps_inserter(self):
        inserter = Inserter(
            article_schema(), self.context.escaper, self.context.executor, self.context.platform
        )
        operation = BatchedOperation(inserter, size=3)
        for i in range(7):
            operation.add_raw({"id": i, "title": f"title {i}", "content": None})

        self.assertEqual(len(self.executor.scripts), 2)
        self.assertEqual(self.executor.scripts[0].sql.count("\n"), 2)
        self.assertEqual(operation.execute(), 3)
        self.assertEqual(len(self.executor.scripts), 3)

    def test_default_size(self):
        operation = BatchedOperation(self.create_large_operation())
        self.assertEqual(operation.size, config.default_batch_size)

        configure(default_batch_size=10)
        try:
            self.assertEqual(BatchedOperation(self.create_large_operation()).size, 10)
        finally:
            configure(default_batch_size=1000)

    def test_invalid_size(self):
        with self.assertRaises(ValueError):
            BatchedOperation(self.create_large_operation(), size=0)

    def test_unknown_configuration(self):
        with self.assertRaises(ValueError):
            configure(batch_size=10)
