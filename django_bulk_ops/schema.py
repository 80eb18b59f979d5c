from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
)

from .enums import OperationType
from .exceptions import UnknownFieldError
from .platforms import RapidOperationPlatform


class FieldMetadata(NamedTuple):
    field_name: str
    column_name: str
    is_insertable: bool = True
    is_updatable: bool = True
    is_identifier: bool = False
    # Called with (obj, add), add is True when the value is read for an insert
    extractor: Optional[Callable[[Any, bool], Any]] = None

    def get_value(self, obj: Any, add: bool = False) -> Any:
        if self.extractor is not None:
            return self.extractor(obj, add)
        return getattr(obj, self.field_name)


class SchemaProvider:
    """
    Static field/column table of one target table.

    :param table_name: Unquoted name of the target table
    :param fields: Field metadata in table order
    :param unique_fields: Groups of field names that identify a row (primary key, unique constraints)
    :param aliases: Alternative names accepted for a field, mapped to its field name
    """

    def __init__(
        self,
        table_name: str,
        fields: Sequence[FieldMetadata],
        unique_fields: Sequence[Sequence[str]] = (),
        aliases: Optional[Mapping[str, str]] = None,
    ):
        self.table_name = table_name
        self._fields: Dict[str, FieldMetadata] = {}
        for field in fields:
            self._fields[field.field_name] = field
        self._unique_fields = [list(group) for group in unique_fields]
        self._aliases = dict(aliases or {})

    def get(self, field_name: str) -> FieldMetadata:
        try:
            return self._fields[self._aliases.get(field_name, field_name)]
        except KeyError:
            raise UnknownFieldError(
                f"Field '{field_name}' does not exist in {self.table_name}",
                fields=[field_name],
            ) from None

    def get_all(self) -> List[FieldMetadata]:
        return list(self._fields.values())

    def column_for(self, field_name: str) -> str:
        return self.get(field_name).column_name

    def column_names(self, field_names: Iterable[str]) -> List[str]:
        return [self.column_for(field_name) for field_name in field_names]

    def identifier_columns(self) -> List[str]:
        return [field.column_name for field in self._fields.values() if field.is_identifier]

    def unique_field_groups(self) -> List[List[str]]:
        return [list(group) for group in self._unique_fields]

    def unique_column_groups(self, field_names: Sequence[str]) -> List[List[str]]:
        """
        Unique groups whose fields are all part of `field_names`, as column names.
        """
        present = {self.get(field_name).field_name for field_name in field_names}
        groups = []
        for group in self._unique_fields:
            if all(field_name in present for field_name in group):
                groups.append(self.column_names(group))
        return groups

    def is_insertable(self, field_name: str) -> bool:
        return self.get(field_name).is_insertable

    def is_updatable(self, field_name: str) -> bool:
        return self.get(field_name).is_updatable

    def is_identifier(self, field_name: str) -> bool:
        return self.get(field_name).is_identifier

    def select_fields_to_insert(self, field_names: Iterable[str]) -> List[str]:
        return [name for name in field_names if self.is_insertable(name)]

    def select_fields_to_update(self, field_names: Iterable[str]) -> List[str]:
        return [name for name in field_names if self.is_updatable(name)]

    def extract_values(self, obj: Any, operation_type: OperationType) -> Dict[str, Any]:
        """
        Read the values of `obj` needed for the given operation, keyed by field name in table order.
        Identifier values are included for updates (they are the usual conditions) and for inserts
        when they are already set.
        """
        add = operation_type.has_insert
        values = {}
        for field in self._fields.values():
            if field.is_identifier:
                value = field.get_value(obj, add)
                if operation_type is OperationType.UPDATE or value is not None:
                    values[field.field_name] = value
                continue

            if operation_type is OperationType.INSERT:
                include = field.is_insertable
            elif operation_type is OperationType.UPDATE:
                include = field.is_updatable
            else:
                include = field.is_insertable or field.is_updatable

            if include:
                values[field.field_name] = field.get_value(obj, add)

        return values

    def with_table_name(self, table_name: str) -> "SchemaProvider":
        return SchemaProvider(table_name, self.get_all(), self._unique_fields, self._aliases)

    def with_field(self, field: FieldMetadata) -> "SchemaProvider":
        return SchemaProvider(
            self.table_name, [*self.get_all(), field], self._unique_fields, self._aliases
        )


class TemporaryTableSchemaFactory:
    """
    Builds CREATE/DROP statements for a staging table holding a subset of the target columns.
    """

    def __init__(self, platform: RapidOperationPlatform):
        self.platform = platform

    def column_type(self, column_name: str) -> str:
        raise NotImplementedError

    def create(
        self,
        columns: Sequence[str],
        temporary_table_name: str,
        unique_groups: Sequence[Sequence[str]] = (),
        indexed_columns: Sequence[str] = (),
        extra_columns: Sequence[Tuple[str, str]] = (),
    ) -> Tuple[str, str]:
        """
        :param columns: Target table columns copied into the staging table
        :param temporary_table_name: Unquoted staging table name
        :param unique_groups: Column groups to declare UNIQUE, only groups fully contained in `columns` are kept
        :param indexed_columns: Columns that get a plain index
        :param extra_columns: (column, type) pairs that don't exist in the target table
        :return: (create_sql, drop_sql)
        """
        quote = self.platform.quote_name
        table_name = quote(temporary_table_name)

        definitions = [
            f"{quote(column)} {self.column_type(column)}" for column in columns
        ]
        definitions += [f"{quote(column)} {column_type}" for column, column_type in extra_columns]
        for group in unique_groups:
            if group and all(column in columns for column in group):
                definitions.append(
                    "UNIQUE ({})".format(", ".join(quote(column) for column in group))
                )

        statements = [self.platform.create_temporary_table(table_name, definitions)]
        for i, column in enumerate(indexed_columns):
            statements.append(
                "CREATE INDEX {index_name} ON {table_name} ({column});".format(
                    index_name=quote(f"{temporary_table_name[:55]}_ix{i}"),
                    table_name=table_name,
                    column=quote(column),
                )
            )

        return "\n".join(statements), self.platform.drop_temporary_table(table_name)

    def drop_if_exists(self, temporary_table_name: str) -> str:
        return self.platform.drop_temporary_table(
            self.platform.quote_name(temporary_table_name), if_exists=True
        )


class StaticTemporaryTableSchemaFactory(TemporaryTableSchemaFactory):
    def __init__(self, column_types: Mapping[str, str], platform: RapidOperationPlatform):
        super().__init__(platform)
        self.column_types = dict(column_types)

    def column_type(self, column_name: str) -> str:
        try:
            return self.column_types[column_name]
        except KeyError:
            raise UnknownFieldError(
                f"No column type known for '{column_name}'", fields=[column_name]
            ) from None
