from datetime import date, timedelta

from django.db import connection
from django.test import TestCase

from django_bulk_ops import partition_by_existence
from .test_project.models import Earnings


class E2ETestPartitionByExistence(TestCase):
    def test_empty_values(self):
        values = []
        partition = partition_by_existence(Earnings, values).get_partitions(values)

        self.assertEqual(partition.existing, [])
        self.assertEqual(partition.missing, [])

    def test_one_record(self):
        Earnings.objects.create(symbol="AAPL", date=date(2020, 1, 1))

        values = [
            {"symbol": "AAPL", "date": date(2020, 1, 1)},
            {"symbol": "AAPL", "date": date(2020, 2, 1)},
        ]
        partition = partition_by_existence(Earnings, values).get_partitions(values)

        self.assertEqual(partition.existing, [{"symbol": "AAPL", "date": date(2020, 1, 1)}])
        self.assertEqual(partition.missing, [{"symbol": "AAPL", "date": date(2020, 2, 1)}])

    def test_multiple_records(self):
        Earnings.objects.create(symbol="AAPL", date=date(2020, 1, 1))
        Earnings.objects.create(symbol="AAPL", date=date(2020, 2, 1))
        Earnings.objects.create(symbol="GOOG", date=date(2020, 1, 1))

        values = [
            {"symbol": "AAPL", "date": date(2020, 1, 1)},
            {"symbol": "MSFT", "date": date(2020, 1, 1)},
            {"symbol": "GOOG", "date": date(2020, 1, 1)},
            {"symbol": "AAPL", "date": date(2020, 3, 1)},
            {"symbol": "AAPL", "date": date(2020, 2, 1)},
        ]
        index = partition_by_existence(Earnings, values)

        self.assertEqual(index.get_existing(values), [values[0], values[2], values[4]])
        self.assertEqual(index.get_missing(values), [values[1], values[3]])

    def test_partition_aligned_payload(self):
        Earnings.objects.create(symbol="AAPL", date=date(2020, 1, 1))

        values = [
            {"symbol": "AAPL", "date": date(2020, 1, 1), "eps_actual": 1.0},
            {"symbol": "GOOG", "date": date(2020, 1, 1), "eps_actual": 2.0},
        ]
        payload = ["first", "second"]
        index = partition_by_existence(Earnings, values, [["symbol", "date"]])

        self.assertEqual(index.get_partitions(payload).existing, ["first"])
        self.assertEqual(index.get_partitions(payload).missing, ["second"])

    def test_any_group_matches(self):
        existing = Earnings.objects.create(symbol="AAPL", date=date(2020, 1, 1))

        values = [
            {"id": existing.pk, "symbol": "MSFT", "date": date(2021, 1, 1)},
            {"id": existing.pk + 100, "symbol": "AAPL", "date": date(2020, 1, 1)},
            {"id": existing.pk + 200, "symbol": "GOOG", "date": date(2020, 1, 1)},
        ]
        index = partition_by_existence(Earnings, values, [["symbol", "date"], ["id"]])

        self.assertEqual(index.get_missing(values), [values[2]])

    def test_temporary_table_is_dropped(self):
        values = [{"symbol": "AAPL", "date": date(2020, 1, 1)}]
        partition_by_existence(Earnings, values)

        with connection.cursor() as cursor:
            cursor.execute("SELECT name FROM sqlite_temp_master WHERE type = 'table'")
            self.assertEqual(cursor.fetchall(), [])

    def test_many_records(self):
        start = date(2000, 1, 1)
        values = [{"symbol": "AAPL", "date": start + timedelta(days=day)} for day in range(5000)]
        Earnings.objects.create(**values[10])
        Earnings.objects.create(**values[4000])

        index = partition_by_existence(Earnings, values)

        self.assertEqual(index.get_existing(values), [values[10], values[4000]])
        self.assertEqual(len(index.get_missing(values)), 4998)
