from typing import Dict, Sequence, Type

from .exceptions import UnsupportedPlatformError


class RapidOperationPlatform:
    """
    Dialect-specific SQL fragments. Column and table arguments are expected to be escaped already.
    """

    vendor: str = ""

    def quote_name(self, name: str) -> str:
        raise NotImplementedError

    def quote_string(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def quote_binary(self, value: bytes) -> str:
        return f"X'{value.hex()}'"

    def on_conflict_nothing(self, id_columns: Sequence[str]) -> str:
        raise NotImplementedError

    def on_conflict_update(self, id_columns: Sequence[str], columns: Sequence[str]) -> str:
        """
        Returns an empty string when there is nothing to update, the caller omits the clause.
        """
        raise NotImplementedError

    def update_from_join(
        self,
        table_name: str,
        target_alias: str,
        source_table_name: str,
        source_alias: str,
        join_clause: str,
        columns: Sequence[str],
    ) -> str:
        raise NotImplementedError

    def create_temporary_table(self, table_name: str, definitions: Sequence[str]) -> str:
        return "CREATE TEMPORARY TABLE {table_name} ({definitions});".format(
            table_name=table_name, definitions=", ".join(definitions)
        )

    def drop_temporary_table(self, table_name: str, if_exists: bool = False) -> str:
        return "DROP TABLE {if_exists}{table_name};".format(
            if_exists="IF EXISTS " if if_exists else "", table_name=table_name
        )


class MysqlPlatform(RapidOperationPlatform):
    vendor = "mysql"

    def quote_name(self, name: str) -> str:
        return "`{}`".format(name.strip("`").replace("`", "``"))

    def quote_string(self, value: str) -> str:
        # backslash is an escape character unless NO_BACKSLASH_ESCAPES is set
        return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"

    def on_conflict_nothing(self, id_columns: Sequence[str]) -> str:
        return "ON DUPLICATE KEY UPDATE {column} = {column}".format(column=id_columns[0])

    def on_conflict_update(self, id_columns: Sequence[str], columns: Sequence[str]) -> str:
        if not columns:
            return ""

        return "ON DUPLICATE KEY UPDATE " + ", ".join(
            f"{column} = VALUES({column})" for column in columns
        )

    def update_from_join(
        self,
        table_name: str,
        target_alias: str,
        source_table_name: str,
        source_alias: str,
        join_clause: str,
        columns: Sequence[str],
    ) -> str:
        return (
            "UPDATE {table_name} AS {target_alias} "
            "INNER JOIN {source_table_name} AS {source_alias} ON {join_clause} "
            "SET {set_clause};"
        ).format(
            table_name=table_name,
            target_alias=target_alias,
            source_table_name=source_table_name,
            source_alias=source_alias,
            join_clause=join_clause,
            set_clause=", ".join(
                f"{target_alias}.{column} = {source_alias}.{column}" for column in columns
            ),
        )

    def drop_temporary_table(self, table_name: str, if_exists: bool = False) -> str:
        return "DROP TEMPORARY TABLE {if_exists}{table_name};".format(
            if_exists="IF EXISTS " if if_exists else "", table_name=table_name
        )


class StandardSqlPlatform(RapidOperationPlatform):
    """
    ON CONFLICT / UPDATE ... FROM dialect shared by SQLite (3.33+) and PostgreSQL.
    """

    def quote_name(self, name: str) -> str:
        return '"{}"'.format(name.strip('"').replace('"', '""'))

    def on_conflict_nothing(self, id_columns: Sequence[str]) -> str:
        return "ON CONFLICT({}) DO NOTHING".format(", ".join(id_columns))

    def on_conflict_update(self, id_columns: Sequence[str], columns: Sequence[str]) -> str:
        if not columns:
            return ""

        return "ON CONFLICT({id_columns}) DO UPDATE SET {set_clause}".format(
            id_columns=", ".join(id_columns),
            set_clause=", ".join(f"{column} = excluded.{column}" for column in columns),
        )

    def update_from_join(
        self,
        table_name: str,
        target_alias: str,
        source_table_name: str,
        source_alias: str,
        join_clause: str,
        columns: Sequence[str],
    ) -> str:
        # the SET target cannot be qualified with the alias in this dialect
        return (
            "UPDATE {table_name} AS {target_alias} SET {set_clause} "
            "FROM {source_table_name} AS {source_alias} WHERE {join_clause};"
        ).format(
            table_name=table_name,
            target_alias=target_alias,
            set_clause=", ".join(f"{column} = {source_alias}.{column}" for column in columns),
            source_table_name=source_table_name,
            source_alias=source_alias,
            join_clause=join_clause,
        )


class SqlitePlatform(StandardSqlPlatform):
    vendor = "sqlite"


class PostgresqlPlatform(StandardSqlPlatform):
    vendor = "postgresql"

    def quote_binary(self, value: bytes) -> str:
        return f"'\\x{value.hex()}'::bytea"


PLATFORMS: Dict[str, Type[RapidOperationPlatform]] = {
    MysqlPlatform.vendor: MysqlPlatform,
    SqlitePlatform.vendor: SqlitePlatform,
    PostgresqlPlatform.vendor: PostgresqlPlatform,
}


def register_platform(vendor: str, platform_class: Type[RapidOperationPlatform]) -> None:
    PLATFORMS[vendor] = platform_class


def get_platform(vendor: str) -> RapidOperationPlatform:
    try:
        return PLATFORMS[vendor]()
    except KeyError:
        raise UnsupportedPlatformError(
            f"Unsupported platform {vendor}. Supported platforms: {', '.join(sorted(PLATFORMS))}"
        ) from None
