from .config import BulkOpsConfig, config, configure
from .bulk_ops import (
    bulk_insert_models,
    bulk_update_models,
    bulk_upsert_models,
    create_batched,
    create_insert,
    create_large_insert,
    create_large_update,
    create_large_upsert,
    create_unique_insert,
    create_update,
    create_upsert,
    partition_by_existence,
)
from .enums import InsertMode, OperationType
from .escaper import DefaultOperationEscaper, OperationEscaper
from .exceptions import (
    BulkOpsError,
    ConfigurationError,
    EmptyValuesError,
    InvalidValueError,
    SchemaMismatchError,
    UnknownFieldError,
    UnsupportedPlatformError,
)
from .executor import OperationExecutor
from .operations import BatchedOperation, Inserter, LargeOperation, Updater
from .partitioner import ExistencePartition, ExistencePartitionIndex, ExistencePartitioner
from .platforms import (
    MysqlPlatform,
    PostgresqlPlatform,
    RapidOperationPlatform,
    SqlitePlatform,
    get_platform,
    register_platform,
)
from .rows import Row
from .schema import (
    FieldMetadata,
    SchemaProvider,
    StaticTemporaryTableSchemaFactory,
    TemporaryTableSchemaFactory,
)
from .selection import AllFields, FieldExclusion, FieldInclusion, FieldSelection
from .utils import (
    RandomTemporaryTableNameGenerator,
    SuffixTemporaryTableNameGenerator,
    TemporaryTableNameGenerator,
)

__all__ = [
    "bulk_insert_models",
    "bulk_update_models",
    "bulk_upsert_models",
    "create_batched",
    "create_insert",
    "create_large_insert",
    "create_large_update",
    "create_large_upsert",
    "create_unique_insert",
    "create_update",
    "create_upsert",
    "partition_by_existence",
    "InsertMode",
    "OperationType",
    "OperationEscaper",
    "DefaultOperationEscaper",
    "OperationExecutor",
    "BulkOpsError",
    "ConfigurationError",
    "EmptyValuesError",
    "InvalidValueError",
    "SchemaMismatchError",
    "UnknownFieldError",
    "UnsupportedPlatformError",
    "Inserter",
    "Updater",
    "LargeOperation",
    "BatchedOperation",
    "ExistencePartition",
    "ExistencePartitionIndex",
    "ExistencePartitioner",
    "RapidOperationPlatform",
    "MysqlPlatform",
    "SqlitePlatform",
    "PostgresqlPlatform",
    "get_platform",
    "register_platform",
    "Row",
    "FieldMetadata",
    "SchemaProvider",
    "TemporaryTableSchemaFactory",
    "StaticTemporaryTableSchemaFactory",
    "AllFields",
    "FieldInclusion",
    "FieldExclusion",
    "FieldSelection",
    "TemporaryTableNameGenerator",
    "RandomTemporaryTableNameGenerator",
    "SuffixTemporaryTableNameGenerator",
    "BulkOpsConfig",
    "configure",
    "config",
]
