import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Type

from django.db import connections, router
from django.db.models import Model

from .django import (
    DjangoOperationEscaper,
    DjangoOperationExecutor,
    DjangoSchemaProvider,
    DjangoTemporaryTableSchemaFactory,
    platform_for_connection,
)
from .enums import InsertMode, OperationType
from .escaper import OperationEscaper
from .executor import OperationExecutor
from .operations import BaseOperation, BatchedOperation, Inserter, LargeOperation, Updater
from .partitioner import ExistencePartitionIndex, ExistencePartitioner
from .platforms import RapidOperationPlatform
from .schema import SchemaProvider, TemporaryTableSchemaFactory
from .utils import TemporaryTableNameGenerator

logger = logging.getLogger(__name__)


class OperationContext(NamedTuple):
    schema: SchemaProvider
    escaper: OperationEscaper
    executor: OperationExecutor
    platform: RapidOperationPlatform
    temporary_table_schema_factory: TemporaryTableSchemaFactory


def get_operation_context(
    model_class: Type[Model], using: Optional[str] = None
) -> OperationContext:
    db_name = using or router.db_for_write(model_class)
    connection = connections[db_name]
    return OperationContext(
        schema=DjangoSchemaProvider(model_class),
        escaper=DjangoOperationEscaper(model_class, connection),
        executor=DjangoOperationExecutor(db_name),
        platform=platform_for_connection(connection),
        temporary_table_schema_factory=DjangoTemporaryTableSchemaFactory(model_class, connection),
    )


def create_insert(model_class: Type[Model], using: Optional[str] = None) -> Inserter:
    """
    Multi-row INSERT, fails on duplicate keys.
    """
    context = get_operation_context(model_class, using)
    return Inserter(context.schema, context.escaper, context.executor, context.platform)


def create_upsert(
    model_class: Type[Model], fields_to_update=None, using: Optional[str] = None
) -> Inserter:
    """
    Multi-row INSERT updating conflicting rows (matched by primary key or unique constraint).

    :param fields_to_update: FieldSelection or list of field names to update on conflict.
    Defaults to every updatable field of the batch
    """
    context = get_operation_context(model_class, using)
    return Inserter(
        context.schema,
        context.escaper,
        context.executor,
        context.platform,
        mode=InsertMode.UPSERT,
        fields_to_update=fields_to_update,
    )


def create_unique_insert(model_class: Type[Model], using: Optional[str] = None) -> Inserter:
    """
    Multi-row INSERT skipping conflicting rows.
    """
    context = get_operation_context(model_class, using)
    return Inserter(
        context.schema,
        context.escaper,
        context.executor,
        context.platform,
        mode=InsertMode.INSERT_NON_EXISTING,
    )


def create_update(
    model_class: Type[Model], conditions: Sequence[str], using: Optional[str] = None
) -> Updater:
    """
    One UPDATE per row, `conditions` name the fields used in the WHERE clause.
    """
    context = get_operation_context(model_class, using)
    return Updater(context.schema, context.escaper, context.executor, conditions)


def _create_large_operation(
    model_class: Type[Model],
    operation_type: OperationType,
    fields_to_update=None,
    fields_to_match: Optional[Sequence[str]] = None,
    name_generator: Optional[TemporaryTableNameGenerator] = None,
    using: Optional[str] = None,
) -> LargeOperation:
    context = get_operation_context(model_class, using)
    return LargeOperation(
        context.schema,
        context.escaper,
        context.executor,
        context.platform,
        context.temporary_table_schema_factory,
        operation_type,
        fields_to_update=fields_to_update,
        fields_to_match=fields_to_match,
        name_generator=name_generator,
    )


def create_large_insert(
    model_class: Type[Model],
    fields_to_match: Optional[Sequence[str]] = None,
    name_generator: Optional[TemporaryTableNameGenerator] = None,
    using: Optional[str] = None,
) -> LargeOperation:
    """
    Insert rows that don't exist yet (matched on `fields_to_match` or the unique constraints of the model)
    through a staging table.
    """
    return _create_large_operation(
        model_class,
        OperationType.INSERT,
        fields_to_match=fields_to_match,
        name_generator=name_generator,
        using=using,
    )


def create_large_update(
    model_class: Type[Model],
    fields_to_update=None,
    fields_to_match: Optional[Sequence[str]] = None,
    name_generator: Optional[TemporaryTableNameGenerator] = None,
    using: Optional[str] = None,
) -> LargeOperation:
    return _create_large_operation(
        model_class,
        OperationType.UPDATE,
        fields_to_update=fields_to_update,
        fields_to_match=fields_to_match,
        name_generator=name_generator,
        using=using,
    )


def create_large_upsert(
    model_class: Type[Model],
    fields_to_update=None,
    fields_to_match: Optional[Sequence[str]] = None,
    name_generator: Optional[TemporaryTableNameGenerator] = None,
    using: Optional[str] = None,
) -> LargeOperation:
    return _create_large_operation(
        model_class,
        OperationType.UPSERT,
        fields_to_update=fields_to_update,
        fields_to_match=fields_to_match,
        name_generator=name_generator,
        using=using,
    )


def create_batched(operation: BaseOperation, size: Optional[int] = None) -> BatchedOperation:
    return BatchedOperation(operation, size)


def partition_by_existence(
    model_class: Type[Model],
    rows: Sequence[Mapping[str, Any]],
    fields_to_match: Optional[Sequence[Any]] = None,
    name_generator: Optional[TemporaryTableNameGenerator] = None,
    using: Optional[str] = None,
) -> ExistencePartitionIndex:
    """
    Find which of `rows` already exist in the table of `model_class`.

    :param rows: Field name -> value mappings
    :param fields_to_match: A list of field names, or a list of such lists (a row exists when any group matches).
    Defaults to every field of the first row
    :return: ExistencePartitionIndex, use get_partitions(rows) to split the rows (or a list aligned with them)
    """
    context = get_operation_context(model_class, using)
    partitioner = ExistencePartitioner(
        context.schema,
        context.escaper,
        context.executor,
        context.platform,
        context.temporary_table_schema_factory,
        name_generator=name_generator,
    )
    return partitioner.find(rows, fields_to_match)


def _check_pks(models: Sequence[Model]) -> bool:
    # Verify the models either all have pk set or all don't. Rows must share their fields, and a pk
    # column would be NULL for the models without one.
    has_pks = None
    for model in models:
        models_has_pks = model.pk is not None
        if has_pks is None:
            has_pks = models_has_pks

        if has_pks != models_has_pks:
            raise ValueError(
                "Mix of models with PK and no PK specified. This can cause issues. Split into 2 groups instead"
            )
    return has_pks


def _models_to_rows(
    models: Sequence[Model], schema: SchemaProvider, field_names: Sequence[str], add: bool = False
) -> List[Dict[str, Any]]:
    fields = [schema.get(field_name) for field_name in field_names]
    return [
        {field.field_name: field.get_value(model, add) for field in fields} for model in models
    ]


def bulk_insert_models(models: Sequence[Model], ignore_conflicts: bool = False) -> int:
    """
    INSERT a batch of models with one multi-row statement.

    :param models: Django model list/tuple
    :param ignore_conflicts: If there is an error on a unique constrain, skip the row instead of erroring
    :return: Number of rows reported by the database
    """
    if not models:
        logger.warning("No models passed to bulk_insert_models")
        return 0

    _check_pks(models)
    model_class = models[0].__class__
    operation = create_unique_insert(model_class) if ignore_conflicts else create_insert(model_class)
    for model in models:
        operation.add_model(model)

    return operation.execute()


def bulk_update_models(
    models: Sequence[Model],
    update_field_names: Sequence[str] = None,
    pk_field_names: Sequence[str] = None,
) -> int:
    """
    UPDATE a batch of models through a staging table. Models not found in the database are ignored.

    :param models: Django model list/tuple
    :param update_field_names: Fields to update (defaults to all updatable fields)
    :param pk_field_names: Fields used to match existing models in the DB. By default uses model primary key.
    :return: Number of models passed in
    """
    if not models:
        logger.warning("No models passed to bulk_update_models")
        return 0

    model_class = models[0].__class__
    operation = create_large_update(
        model_class, fields_to_match=pk_field_names or [model_class._meta.pk.attname]
    )
    schema = operation.schema
    pk_field_names = [schema.get(name).field_name for name in operation.fields_to_match]

    if update_field_names is None:
        update_field_names = schema.select_fields_to_update(
            field.field_name for field in schema.get_all()
        )
    update_field_names = [
        schema.get(name).field_name
        for name in update_field_names
        if schema.get(name).field_name not in pk_field_names
    ]

    for row in _models_to_rows(models, schema, [*pk_field_names, *update_field_names]):
        operation.add_raw(row)

    return operation.execute()


def bulk_upsert_models(
    models: Sequence[Model],
    pk_field_names: Sequence[str] = None,
    insert_only_field_names: Sequence[str] = None,
) -> int:
    """
    UPSERT a batch of models through a staging table. By default, it matches existing models using the
    model `pk`, but you can specify matching on other fields with `pk_field_names`.

    :param models: Django model list/tuple
    :param pk_field_names: Fields used to match existing models in the DB. By default uses model primary key.
    :param insert_only_field_names: Names of model fields to only insert, never update (i.e. created_on)
    :return: Number of models passed in
    """
    if not models:
        logger.warning("No models passed to bulk_upsert_models")
        return 0

    has_pks = _check_pks(models)
    model_class = models[0].__class__
    schema = DjangoSchemaProvider(model_class)

    field_names = [
        field.field_name
        for field in schema.get_all()
        if field.is_insertable or (has_pks and field.is_identifier)
    ]
    insert_only = {schema.get(name).field_name for name in insert_only_field_names or []}
    update_field_names = [
        name for name in schema.select_fields_to_update(field_names) if name not in insert_only
    ]
    if not update_field_names:
        raise ValueError("No fields left to update. Use bulk_insert_models instead")

    operation = create_large_upsert(
        model_class,
        fields_to_update=update_field_names,
        fields_to_match=pk_field_names or [model_class._meta.pk.attname],
    )
    for row in _models_to_rows(models, schema, field_names, add=True):
        operation.add_raw(row)

    return operation.execute()
