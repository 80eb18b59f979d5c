import logging
from time import monotonic
from typing import Any, FrozenSet, Iterable, List, Mapping, NamedTuple, Optional, Sequence

from .config import config
from .escaper import OperationEscaper
from .exceptions import ConfigurationError
from .executor import OperationExecutor
from .operations import Inserter
from .platforms import RapidOperationPlatform
from .queries import generate_nested_join_condition, generate_select_existing_query
from .rows import Row
from .schema import FieldMetadata, SchemaProvider, TemporaryTableSchemaFactory
from .utils import (
    RandomTemporaryTableNameGenerator,
    TemporaryTableNameGenerator,
    flatten_field_groups,
)

logger = logging.getLogger(__name__)

POSITION_COLUMN = "__position"


class ExistencePartition(NamedTuple):
    existing: List[Any]
    missing: List[Any]


class ExistencePartitionIndex:
    """
    Positions of the input rows that matched an existing row. Applies to the input sequence
    (or any sequence aligned with it), preserving its order.
    """

    def __init__(self, positions: Iterable[int] = ()):
        self.positions: FrozenSet[int] = frozenset(positions)

    def __len__(self):
        return len(self.positions)

    def __contains__(self, position: int) -> bool:
        return position in self.positions

    def get_existing(self, values: Iterable[Any]) -> List[Any]:
        return [value for position, value in enumerate(values) if position in self.positions]

    def get_missing(self, values: Iterable[Any]) -> List[Any]:
        return [value for position, value in enumerate(values) if position not in self.positions]

    def get_partitions(self, values: Iterable[Any]) -> ExistencePartition:
        existing = []
        missing = []
        for position, value in enumerate(values):
            if position in self.positions:
                existing.append(value)
            else:
                missing.append(value)
        return ExistencePartition(existing=existing, missing=missing)


class ExistencePartitioner:
    """
    Finds which rows already exist in the target table with a fixed number of round trips,
    by staging the match fields of every row in a temporary table.
    """

    def __init__(
        self,
        schema: SchemaProvider,
        escaper: OperationEscaper,
        executor: OperationExecutor,
        platform: RapidOperationPlatform,
        temporary_table_schema_factory: TemporaryTableSchemaFactory,
        name_generator: Optional[TemporaryTableNameGenerator] = None,
    ):
        self.schema = schema
        self.escaper = escaper
        self.executor = executor
        self.platform = platform
        self.temporary_table_schema_factory = temporary_table_schema_factory
        self.name_generator = name_generator or RandomTemporaryTableNameGenerator()

    def get_match_field_groups(
        self, row: Row, fields_to_match: Optional[Sequence[Any]] = None
    ) -> List[List[str]]:
        if fields_to_match:
            # a flat list of field names is a single group
            if isinstance(fields_to_match[0], str):
                return [list(fields_to_match)]
            return [list(group) for group in fields_to_match]

        return [row.keys()]

    def find(
        self,
        rows: Sequence[Mapping[str, Any]],
        fields_to_match: Optional[Sequence[Any]] = None,
    ) -> ExistencePartitionIndex:
        """
        :param rows: Rows to look up, as field name -> value mappings
        :param fields_to_match: Groups of fields, a row exists when all fields of any group match.
            Defaults to one group made of every field of the first row
        :return: Index of the rows that exist in the target table
        """
        if not rows:
            return ExistencePartitionIndex()

        first_row = Row(rows[0])
        if first_row.is_empty():
            raise ConfigurationError("Cannot partition by existence when no fields are provided.")

        match_groups = self.get_match_field_groups(first_row, fields_to_match)
        match_fields = flatten_field_groups(match_groups)

        temporary_table_name = self.name_generator.generate(self.schema.table_name)
        staging_schema = self.schema.with_table_name(temporary_table_name).with_field(
            FieldMetadata(POSITION_COLUMN, POSITION_COLUMN, is_updatable=False)
        )
        inserter = Inserter(staging_schema, self.escaper, self.executor, self.platform)
        for position, values in enumerate(rows):
            projected = Row(values).project(match_fields)
            inserter.add_raw({POSITION_COLUMN: position, **projected.all()})

        match_columns = self.schema.column_names(match_fields)
        create_sql, drop_sql = self.temporary_table_schema_factory.create(
            match_columns,
            temporary_table_name,
            indexed_columns=match_columns,
            extra_columns=[(POSITION_COLUMN, "integer")],
        )
        select_sql = generate_select_existing_query(
            table_name=self.escaper.escape_column(self.schema.table_name),
            loading_table_name=self.escaper.escape_column(temporary_table_name),
            select_column=self.escaper.escape_column(POSITION_COLUMN),
            join_clause=generate_nested_join_condition(
                [
                    [self.escaper.escape_column(column) for column in self.schema.column_names(group)]
                    for group in match_groups
                ]
            ),
        )

        start_time = monotonic()
        logger.info(
            "Starting existence partitioning",
            extra=dict(table_name=self.schema.table_name, row_count=len(rows)),
        )

        try:
            self.executor.execute(
                create_sql + "\n\n" + inserter.get_sql(),
                transactional=False,
                fixed_item_count=len(rows),
            )
            positions = self.executor.fetch_column(select_sql)
        except Exception:
            if config.cleanup_on_failure:
                self._drop_temporary_table(temporary_table_name)
            raise

        self.executor.execute(drop_sql)

        logger.info(
            "Finished existence partitioning",
            extra=dict(
                table_name=self.schema.table_name,
                row_count=len(rows),
                existing_count=len(positions),
                duration=monotonic() - start_time,
            ),
        )

        return ExistencePartitionIndex(int(position) for position in positions)

    def _drop_temporary_table(self, temporary_table_name: str) -> None:
        try:
            self.executor.execute(
                self.temporary_table_schema_factory.drop_if_exists(temporary_table_name)
            )
        except Exception:
            logger.exception(
                "Failed to drop temporary table after failed partitioning",
                extra=dict(temporary_table_name=temporary_table_name),
            )
