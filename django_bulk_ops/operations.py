import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence

from .config import config
from .enums import InsertMode, OperationType
from .escaper import OperationEscaper
from .exceptions import ConfigurationError, EmptyValuesError
from .executor import OperationExecutor
from .platforms import RapidOperationPlatform
from .queries import (
    SOURCE_ALIAS,
    TARGET_ALIAS,
    generate_insert_not_exists_query,
    generate_insert_start,
    generate_nested_join_condition,
    generate_update_query,
    generate_values_tuple,
)
from .rows import Row, check_same_fields
from .schema import SchemaProvider, TemporaryTableSchemaFactory
from .selection import FieldSelection, to_field_selection
from .utils import RandomTemporaryTableNameGenerator, TemporaryTableNameGenerator

logger = logging.getLogger(__name__)


class RowAccumulator:
    """
    Buffers one serialized SQL fragment per row.

    :param serialize_row: Turns a row into its SQL fragment, raising for invalid rows
    :param check_fields: Require every row to have the fields of the first row, in the same order
    """

    def __init__(self, serialize_row: Callable[[Row], str], check_fields: bool = True):
        self.serialize_row = serialize_row
        self.check_fields = check_fields
        self.fields: List[str] = []
        self.fragments: List[str] = []

    def __len__(self) -> int:
        return len(self.fragments)

    def is_empty(self) -> bool:
        return not self.fragments

    def push(self, row: Row) -> None:
        if self.check_fields and self.fragments:
            check_same_fields(row.keys(), self.fields)

        fragment = self.serialize_row(row)
        if not self.fragments:
            self.fields = row.keys()
        self.fragments.append(fragment)

    def reset(self) -> None:
        self.fields = []
        self.fragments = []


class BaseOperation:
    def add_raw(self, values: Mapping[str, Any]) -> "BaseOperation":
        return self.add(Row(values))

    def add(self, row: Row) -> "BaseOperation":
        raise NotImplementedError

    def add_model(self, obj: Any) -> "BaseOperation":
        raise NotImplementedError

    def execute(self) -> int:
        raise NotImplementedError

    def get_sql(self) -> str:
        raise NotImplementedError

    def get_item_count(self) -> int:
        raise NotImplementedError


class RapidOperation(BaseOperation):
    transactional = False
    operation_type = OperationType.INSERT

    def __init__(
        self,
        schema: SchemaProvider,
        escaper: OperationEscaper,
        executor: OperationExecutor,
    ):
        self.schema = schema
        self.escaper = escaper
        self.executor = executor

    def add_model(self, obj: Any) -> "RapidOperation":
        return self.add_raw(self.schema.extract_values(obj, self.operation_type))

    def get_fixed_item_count(self) -> Optional[int]:
        return None

    def reset(self) -> None:
        raise NotImplementedError

    def execute(self) -> int:
        sql = self.get_sql()
        if sql == "":
            return 0

        count = self.executor.execute(
            sql,
            transactional=self.transactional,
            fixed_item_count=self.get_fixed_item_count(),
        )
        self.reset()

        return count

    def _escape_field(self, field_name: str) -> str:
        return self.escaper.escape_column(self.schema.column_for(field_name))


class Inserter(RapidOperation):
    """
    Multi-row INSERT with an optional conflict clause.

    :param mode: InsertMode.NORMAL, UPSERT or INSERT_NON_EXISTING
    :param fields_to_update: FieldSelection (or list of field names) applied to the updatable,
        non-identifier fields of the batch in UPSERT mode
    :param table_name: Insert into this table instead of the schema's table
    """

    def __init__(
        self,
        schema: SchemaProvider,
        escaper: OperationEscaper,
        executor: OperationExecutor,
        platform: RapidOperationPlatform,
        mode: InsertMode = InsertMode.NORMAL,
        fields_to_update=None,
        table_name: Optional[str] = None,
    ):
        super().__init__(schema, escaper, executor)
        self.platform = platform
        self.mode = mode
        self.fields_to_update: FieldSelection = to_field_selection(fields_to_update)
        self.table_name = table_name or schema.table_name
        self.operation_type = (
            OperationType.UPSERT if mode is InsertMode.UPSERT else OperationType.INSERT
        )
        self.accumulator = RowAccumulator(self._build_values)
        self._columns: List[str] = []

    @property
    def fields(self) -> List[str]:
        return list(self.accumulator.fields)

    def add(self, row: Row) -> "Inserter":
        if row.is_empty():
            raise EmptyValuesError("At least one value must be provided.")

        if self.accumulator.is_empty():
            # resolving columns first rejects unknown fields before anything is buffered
            columns = [self._escape_field(field_name) for field_name in row.keys()]
            self.accumulator.push(row)
            self._columns = columns
        else:
            self.accumulator.push(row)

        return self

    def get_sql(self) -> str:
        if self.accumulator.is_empty():
            return ""

        return (
            generate_insert_start(self.escaper.escape_column(self.table_name), self._columns)
            + ",\n".join(self.accumulator.fragments)
            + self._sql_for_end()
            + ";"
        )

    def get_item_count(self) -> int:
        return len(self.accumulator)

    def reset(self) -> None:
        self.accumulator.reset()
        self._columns = []

    def get_fields_to_update(self) -> List[str]:
        candidates = [
            field_name
            for field_name in self.accumulator.fields
            if self.schema.is_updatable(field_name) and not self.schema.is_identifier(field_name)
        ]
        return self.fields_to_update.get_fields(candidates)

    def _build_values(self, row: Row) -> str:
        return generate_values_tuple(
            [
                self.escaper.escape_value(value, self.schema.column_for(field_name))
                for field_name, value in row.items()
            ]
        )

    def _sql_for_end(self) -> str:
        if self.mode is InsertMode.UPSERT:
            id_columns = self._get_escaped_id_columns()
            columns = [self._escape_field(field_name) for field_name in self.get_fields_to_update()]
            # some dialects reject an empty update list, fall back to a no-op self assignment
            sql = self.platform.on_conflict_update(id_columns, columns or id_columns)
            return " " + sql if sql else ""

        if self.mode is InsertMode.INSERT_NON_EXISTING:
            sql = self.platform.on_conflict_nothing(self._get_escaped_id_columns())
            return " " + sql if sql else ""

        return ""

    def _get_escaped_id_columns(self) -> List[str]:
        id_columns = self.schema.identifier_columns()
        if not id_columns:
            raise ConfigurationError(
                f"No identifier columns defined for table {self.schema.table_name}"
            )
        return [self.escaper.escape_column(column) for column in id_columns]


class Updater(RapidOperation):
    """
    One UPDATE statement per row. Condition fields go to the WHERE clause, the remaining
    fields to SET. Runs in a transaction by default.
    """

    transactional = True
    operation_type = OperationType.UPDATE

    def __init__(
        self,
        schema: SchemaProvider,
        escaper: OperationEscaper,
        executor: OperationExecutor,
        conditions: Sequence[str],
        table_name: Optional[str] = None,
    ):
        super().__init__(schema, escaper, executor)
        if not conditions:
            raise ConfigurationError("At least one condition field must be given")
        self.conditions = list(conditions)
        self.table_name = table_name or schema.table_name
        self.accumulator = RowAccumulator(self._build_update, check_fields=False)

    def add(self, row: Row) -> "Updater":
        self.accumulator.push(row)
        return self

    def get_sql(self) -> str:
        return "\n".join(self.accumulator.fragments)

    def get_item_count(self) -> int:
        return len(self.accumulator)

    def reset(self) -> None:
        self.accumulator.reset()

    def _build_update(self, row: Row) -> str:
        conditions, values = row.split(self.conditions)
        if values.is_empty():
            raise EmptyValuesError("At least one non-conditional value must be provided.")

        return generate_update_query(
            table_name=self.escaper.escape_column(self.table_name),
            set_pairs=self._pairs(values),
            where_pairs=self._pairs(conditions),
        )

    def _pairs(self, row: Row):
        pairs = []
        for field_name, value in row.items():
            column = self.schema.column_for(field_name)
            pairs.append(
                (self.escaper.escape_column(column), self.escaper.escape_value(value, column))
            )
        return pairs


class LargeOperation(RapidOperation):
    """
    Insert, update or upsert any number of rows with one script: rows are staged in a temporary
    table which is then joined against the target table.

    :param operation_type: OperationType.INSERT, UPDATE or UPSERT
    :param fields_to_update: FieldSelection (or list of field names) applied to the updatable fields
    :param fields_to_match: Fields identifying the same row in both tables. Defaults to the unique
        groups of the schema that are fully present in the batch
    :param name_generator: Staging table naming, random by default
    """

    def __init__(
        self,
        schema: SchemaProvider,
        escaper: OperationEscaper,
        executor: OperationExecutor,
        platform: RapidOperationPlatform,
        temporary_table_schema_factory: TemporaryTableSchemaFactory,
        operation_type: OperationType,
        fields_to_update=None,
        fields_to_match: Optional[Sequence[str]] = None,
        name_generator: Optional[TemporaryTableNameGenerator] = None,
    ):
        super().__init__(schema, escaper, executor)
        self.platform = platform
        self.temporary_table_schema_factory = temporary_table_schema_factory
        self.operation_type = operation_type
        self.fields_to_update: FieldSelection = to_field_selection(fields_to_update)
        self.fields_to_match = list(fields_to_match or [])
        self.name_generator = name_generator or RandomTemporaryTableNameGenerator()
        self._start_cycle()

    @property
    def transactional(self) -> bool:
        return config.transactional_large_operations

    def _start_cycle(self) -> None:
        self.temporary_table_name = self.name_generator.generate(self.schema.table_name)
        self.inserter = Inserter(
            self.schema,
            self.escaper,
            self.executor,
            self.platform,
            table_name=self.temporary_table_name,
        )

    def add(self, row: Row) -> "LargeOperation":
        self.inserter.add(row)
        return self

    def get_item_count(self) -> int:
        return self.inserter.get_item_count()

    def get_fixed_item_count(self) -> Optional[int]:
        # join based statements don't report per source row counts
        return self.get_item_count()

    def reset(self) -> None:
        self._start_cycle()

    def get_match_column_groups(self, field_names: Sequence[str]) -> List[List[str]]:
        if self.fields_to_match:
            return [self.schema.column_names(self.fields_to_match)]

        return self.schema.unique_column_groups(field_names)

    def get_sql(self) -> str:
        sql = self.inserter.get_sql()
        if sql == "":
            return ""

        field_names = self.inserter.fields
        match_groups = self.get_match_column_groups(field_names)
        if not match_groups:
            raise ConfigurationError(
                f"At least one unique condition must be defined for {self.operation_type.value} "
                f"operation on {self.schema.table_name}."
            )

        columns = self.schema.column_names(field_names)
        staging_columns = columns + [
            column
            for group in match_groups
            for column in group
            if column not in columns
        ]
        create_sql, drop_sql = self.temporary_table_schema_factory.create(
            staging_columns,
            self.temporary_table_name,
            unique_groups=self.schema.unique_column_groups(field_names),
        )

        table_name = self.escaper.escape_column(self.schema.table_name)
        temporary_table_name = self.escaper.escape_column(self.temporary_table_name)
        join_clause = generate_nested_join_condition(
            [[self.escaper.escape_column(column) for column in group] for group in match_groups]
        )

        statements = [create_sql, sql]

        if self.operation_type.has_update:
            update_columns = [
                self._escape_field(field_name)
                for field_name in self.fields_to_update.get_fields(
                    self.schema.select_fields_to_update(field_names)
                )
            ]
            if not update_columns:
                raise ConfigurationError("At least one column must be defined for update operation.")

            statements.append(
                self.platform.update_from_join(
                    table_name,
                    TARGET_ALIAS,
                    temporary_table_name,
                    SOURCE_ALIAS,
                    join_clause,
                    update_columns,
                )
            )

        if self.operation_type.has_insert:
            insert_columns = [
                self._escape_field(field_name)
                for field_name in self.schema.select_fields_to_insert(field_names)
            ]
            if not insert_columns:
                raise ConfigurationError("At least one column must be defined for insert operation.")

            statements.append(
                generate_insert_not_exists_query(
                    table_name=table_name,
                    loading_table_name=temporary_table_name,
                    insert_columns=insert_columns,
                    join_clause=join_clause,
                )
            )

        statements.append(drop_sql)

        return "\n\n".join(statements)

    def execute(self) -> int:
        sql = self.get_sql()
        if sql == "":
            return 0

        try:
            count = self.executor.execute(
                sql,
                transactional=self.transactional,
                fixed_item_count=self.get_fixed_item_count(),
            )
        except Exception:
            if config.cleanup_on_failure:
                self._drop_temporary_table()
            raise

        self.reset()

        return count

    def _drop_temporary_table(self) -> None:
        try:
            self.executor.execute(
                self.temporary_table_schema_factory.drop_if_exists(self.temporary_table_name)
            )
        except Exception:
            logger.exception(
                "Failed to drop temporary table after failed operation",
                extra=dict(temporary_table_name=self.temporary_table_name),
            )


class BatchedOperation(BaseOperation):
    """
    Executes the wrapped operation every `size` added items.

    execute() flushes the remainder and returns the total count of every flush since the
    previous execute(). get_item_count() counts all items ever added.
    """

    def __init__(self, operation: BaseOperation, size: Optional[int] = None):
        size = config.default_batch_size if size is None else size
        if size < 1:
            raise ValueError("Batch size must be a positive integer")

        self.operation = operation
        self.size = size
        self._count = 0
        self._item_count = 0
        self._total = 0

    def add_raw(self, values: Mapping[str, Any]) -> "BatchedOperation":
        self.operation.add_raw(values)
        self._increment()
        return self

    def add(self, row: Row) -> "BatchedOperation":
        self.operation.add(row)
        self._increment()
        return self

    def add_model(self, obj: Any) -> "BatchedOperation":
        self.operation.add_model(obj)
        self._increment()
        return self

    def execute(self) -> int:
        total = self._total + self.operation.execute()
        self._total = 0
        self._count = 0
        return total

    def get_sql(self) -> str:
        return self.operation.get_sql()

    def get_item_count(self) -> int:
        return self._item_count

    def _increment(self) -> None:
        self._count += 1
        self._item_count += 1

        if self._count >= self.size:
            logger.info(
                "Flushing batched operation",
                extra=dict(batch_size=self.size, item_count=self._item_count),
            )
            self._total += self.operation.execute()
            self._count = 0
