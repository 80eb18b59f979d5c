import json
import logging
from time import monotonic
from typing import Any, Dict, List, Optional, Type

import sqlparse
from django.db import DEFAULT_DB_ALIAS, connections, models, transaction
from django.db.backends.base.base import BaseDatabaseWrapper
from django.db.models.options import Options

from .escaper import DefaultOperationEscaper
from .exceptions import UnknownFieldError
from .executor import OperationExecutor
from .platforms import RapidOperationPlatform, get_platform
from .schema import FieldMetadata, SchemaProvider, TemporaryTableSchemaFactory

logger = logging.getLogger(__name__)

# Backends whose driver accepts several statements in one execute() call
MULTI_STATEMENT_VENDORS = {"postgresql"}


def get_model_fields(
    model_meta: Options, include_auto_fields=False
) -> List[models.Field]:
    fields = []
    for field in model_meta.get_fields():
        if (
            getattr(field, "column", None)
            and (include_auto_fields or not isinstance(field, models.AutoField))
            and not isinstance(field, models.ManyToManyField)
        ):
            fields.append(field)

    return fields


def get_fields_by_column(model_meta: Options) -> Dict[str, models.Field]:
    return {
        field.column: field
        for field in get_model_fields(model_meta, include_auto_fields=True)
    }


def split_script(sql: str) -> List[str]:
    """
    Split a generated script into single statements for drivers that run one statement per call.
    Only splits, the statements are not reformatted.
    """
    return [statement for statement in sqlparse.split(sql) if statement]


def platform_for_connection(connection: BaseDatabaseWrapper) -> RapidOperationPlatform:
    return get_platform(connection.vendor)


def django_field_to_db_value(field: models.Field, value: Any, connection: BaseDatabaseWrapper):
    value = field.get_db_prep_save(value, connection=connection)
    if connection.vendor == "postgresql":
        return _unwrap_psycopg2_adapter(value)
    return value


def _unwrap_psycopg2_adapter(value: Any):
    # psycopg2 is only needed for PostgreSQL connections
    from .database import Binary, Json

    if isinstance(value, Json):
        return value.dumps(value.adapted)
    if isinstance(value, Binary):
        return bytes(value.adapted)
    return value


def _is_generated(field: models.Field) -> bool:
    return isinstance(field, models.AutoField) or getattr(field, "generated", False)


def _field_extractor(field: models.Field):
    def extract(obj, add):
        return field.pre_save(obj, add=add)

    return extract


def get_field_metadata(field: models.Field) -> FieldMetadata:
    generated = _is_generated(field)
    return FieldMetadata(
        field_name=field.attname,
        column_name=field.column,
        is_insertable=not generated,
        is_updatable=not (
            generated or field.primary_key or getattr(field, "auto_now_add", False)
        ),
        is_identifier=field.primary_key,
        extractor=_field_extractor(field),
    )


def get_unique_field_groups(model_meta: Options) -> List[List[str]]:
    """
    Field groups (by attname) that identify a row. Auto generated primary keys are left out, new rows
    don't have them.
    """
    groups = []
    if not _is_generated(model_meta.pk):
        groups.append([model_meta.pk.attname])

    for field in get_model_fields(model_meta):
        if field.unique and not field.primary_key:
            groups.append([field.attname])

    for field_names in model_meta.unique_together:
        groups.append([model_meta.get_field(name).attname for name in field_names])

    for constraint in model_meta.constraints:
        if (
            isinstance(constraint, models.UniqueConstraint)
            and constraint.fields
            and constraint.condition is None
        ):
            groups.append([model_meta.get_field(name).attname for name in constraint.fields])

    return groups


class DjangoSchemaProvider(SchemaProvider):
    """
    Schema of a Django model. Fields are keyed by attname, relation names (e.g. `author` for
    `author_id`) are accepted as aliases.
    """

    def __init__(self, model_class: Type[models.Model]):
        model_meta = model_class._meta
        fields = get_model_fields(model_meta, include_auto_fields=True)
        super().__init__(
            model_meta.db_table,
            [get_field_metadata(field) for field in fields],
            get_unique_field_groups(model_meta),
            aliases={field.name: field.attname for field in fields if field.name != field.attname},
        )
        self.model_class = model_class


class DjangoOperationEscaper(DefaultOperationEscaper):
    """
    Converts values with the model field of their column before rendering them, so values are
    stored the same way the ORM stores them.
    """

    def __init__(self, model_class: Type[models.Model], connection: BaseDatabaseWrapper):
        super().__init__(platform_for_connection(connection))
        self.connection = connection
        self.fields_by_column = get_fields_by_column(model_class._meta)

    def escape_column(self, column: str) -> str:
        return self.connection.ops.quote_name(column)

    def escape_value(self, value: Any, column: Optional[str] = None) -> str:
        field = self.fields_by_column.get(column) if column else None
        if field is not None and value is not None:
            value = django_field_to_db_value(field, value, self.connection)

        if isinstance(value, (dict, list)):
            value = json.dumps(value)

        return super().escape_value(value, column)


class DjangoTemporaryTableSchemaFactory(TemporaryTableSchemaFactory):
    def __init__(self, model_class: Type[models.Model], connection: BaseDatabaseWrapper):
        super().__init__(platform_for_connection(connection))
        self.connection = connection
        self.fields_by_column = get_fields_by_column(model_class._meta)

    def column_type(self, column_name: str) -> str:
        field = self.fields_by_column.get(column_name)
        if field is None:
            column_type = None
        elif isinstance(field, models.AutoField):
            # staging columns hold plain values, without AUTO_INCREMENT/serial
            column_type = field.rel_db_type(self.connection)
        else:
            column_type = field.db_type(self.connection)
        if column_type is None:
            raise UnknownFieldError(
                f"No column type known for '{column_name}'", fields=[column_name]
            )
        return column_type


class DjangoOperationExecutor(OperationExecutor):
    """
    Runs scripts on a Django connection.

    :param using: Database alias
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    @property
    def connection(self) -> BaseDatabaseWrapper:
        return connections[self.using]

    def execute(
        self, sql: str, transactional: bool = False, fixed_item_count: Optional[int] = None
    ) -> int:
        start_time = monotonic()
        logger.info(
            "Starting operation script",
            extra=dict(using=self.using, transactional=transactional),
        )

        if transactional:
            with transaction.atomic(using=self.using):
                row_count = self._execute_script(sql, count_is_fixed=fixed_item_count is not None)
        else:
            row_count = self._execute_script(sql, count_is_fixed=fixed_item_count is not None)

        count = fixed_item_count if fixed_item_count is not None else row_count
        logger.info(
            "Finished operation script",
            extra=dict(
                using=self.using,
                item_count=count,
                duration=monotonic() - start_time,
            ),
        )
        return count

    def _execute_script(self, sql: str, count_is_fixed: bool) -> int:
        connection = self.connection
        with connection.cursor() as cursor:
            if count_is_fixed and connection.vendor in MULTI_STATEMENT_VENDORS:
                cursor.execute(sql)
                return 0

            row_count = 0
            for statement in split_script(sql):
                cursor.execute(statement)
                if cursor.rowcount > 0:
                    row_count += cursor.rowcount
            return row_count

    def fetch_column(self, sql: str) -> List[Any]:
        with self.connection.cursor() as cursor:
            cursor.execute(sql)
            return [row[0] for row in cursor.fetchall()]
