from typing import Any, List, NamedTuple, Optional

from django_bulk_ops import (
    DefaultOperationEscaper,
    FieldMetadata,
    OperationExecutor,
    SchemaProvider,
    StaticTemporaryTableSchemaFactory,
    get_platform,
)


class ExecutedScript(NamedTuple):
    sql: str
    transactional: bool
    fixed_item_count: Optional[int]


class RecordingExecutor(OperationExecutor):
    """
    Records scripts instead of running them.

    :param row_count: Returned for scripts without a fixed item count
    :param column: Returned by fetch_column
    :param error: Raised by the first execute() call
    """

    def __init__(self, row_count: int = 0, column: List[Any] = None, error: Exception = None):
        self.row_count = row_count
        self.column = column or []
        self.error = error
        self.scripts: List[ExecutedScript] = []
        self.queries: List[str] = []

    def execute(self, sql, transactional=False, fixed_item_count=None):
        self.scripts.append(ExecutedScript(sql, transactional, fixed_item_count))
        if self.error is not None:
            error, self.error = self.error, None
            raise error
        return fixed_item_count if fixed_item_count is not None else self.row_count

    def fetch_column(self, sql):
        self.queries.append(sql)
        return list(self.column)


def article_schema() -> SchemaProvider:
    return SchemaProvider(
        "articles",
        [
            FieldMetadata("id", "id", is_updatable=False, is_identifier=True),
            FieldMetadata("title", "title"),
            FieldMetadata("content", "content"),
        ],
        unique_fields=[["id"]],
    )


def post_schema() -> SchemaProvider:
    return SchemaProvider(
        "posts",
        [
            FieldMetadata("id", "id", is_updatable=False, is_identifier=True),
            FieldMetadata("content", "contents"),
        ],
        unique_fields=[["id"]],
    )


def earnings_schema() -> SchemaProvider:
    return SchemaProvider(
        "earnings",
        [
            FieldMetadata("id", "id", is_insertable=False, is_updatable=False, is_identifier=True),
            FieldMetadata("symbol", "symbol"),
            FieldMetadata("date", "date"),
            FieldMetadata("eps_actual", "eps_actual"),
            FieldMetadata("eps_estimated", "eps_estimated"),
            FieldMetadata("revenue_actual", "revenue_actual"),
            FieldMetadata("revenue_estimated", "revenue_estimated"),
        ],
        unique_fields=[["id"], ["symbol", "date"]],
    )


COLUMN_TYPES = {
    "id": "INTEGER",
    "title": "VARCHAR(255)",
    "content": "TEXT",
    "contents": "TEXT",
    "symbol": "VARCHAR(10)",
    "date": "DATE",
    "eps_actual": "REAL",
    "eps_estimated": "REAL",
    "revenue_actual": "BIGINT",
    "revenue_estimated": "BIGINT",
}


class OperationContext(NamedTuple):
    platform: Any
    escaper: DefaultOperationEscaper
    executor: RecordingExecutor
    temporary_table_schema_factory: StaticTemporaryTableSchemaFactory


def create_context(vendor: str, executor: RecordingExecutor = None) -> OperationContext:
    platform = get_platform(vendor)
    return OperationContext(
        platform=platform,
        escaper=DefaultOperationEscaper(platform),
        executor=executor or RecordingExecutor(),
        temporary_table_schema_factory=StaticTemporaryTableSchemaFactory(COLUMN_TYPES, platform),
    )
