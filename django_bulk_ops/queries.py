"""
SQL text builders. Every table and column argument must already be escaped.
"""
from typing import Sequence, Tuple

TARGET_ALIAS = "t1"
SOURCE_ALIAS = "t2"


def generate_join_condition(
    columns: Sequence[str],
    target_alias: str = TARGET_ALIAS,
    source_alias: str = SOURCE_ALIAS,
) -> str:
    """
    t1.col1 = t2.col1 AND t1.col2 = t2.col2
    """
    return " AND ".join(
        f"{target_alias}.{column} = {source_alias}.{column}" for column in columns
    )


def generate_nested_join_condition(
    column_groups: Sequence[Sequence[str]],
    target_alias: str = TARGET_ALIAS,
    source_alias: str = SOURCE_ALIAS,
) -> str:
    """
    (t1.col1 = t2.col1 AND t1.col2 = t2.col2) OR (t1.col3 = t2.col3)

    Returns an empty string when no group has columns.
    """
    return " OR ".join(
        "({})".format(generate_join_condition(group, target_alias, source_alias))
        for group in column_groups
        if group
    )


def generate_insert_start(table_name: str, columns: Sequence[str]) -> str:
    return "INSERT INTO {table_name} ({column_list}) VALUES ".format(
        table_name=table_name, column_list=", ".join(columns)
    )


def generate_values_tuple(values: Sequence[str]) -> str:
    return "({})".format(", ".join(values))


def generate_assignments(pairs: Sequence[Tuple[str, str]], separator: str) -> str:
    return separator.join(f"{column} = {value}" for column, value in pairs)


def generate_update_query(
    *,
    table_name: str,
    set_pairs: Sequence[Tuple[str, str]],
    where_pairs: Sequence[Tuple[str, str]],
) -> str:
    """
    Single-row UPDATE. Pairs are (escaped column, SQL literal).
    """
    return "UPDATE {table_name} SET {set_clause} WHERE {where_clause};".format(
        table_name=table_name,
        set_clause=generate_assignments(set_pairs, ", "),
        where_clause=generate_assignments(where_pairs, " AND "),
    )


def generate_insert_not_exists_query(
    *,
    table_name: str,
    loading_table_name: str,
    insert_columns: Sequence[str],
    join_clause: str,
) -> str:
    """
    Copy rows from the loading table that have no match in the target table.
    """
    return (
        "INSERT INTO {table_name} ({insert_column_list}) "
        "SELECT {select_column_list} FROM {loading_table_name} AS {source_alias} "
        "WHERE NOT EXISTS (SELECT 1 FROM {table_name} AS {target_alias} WHERE {join_clause});"
    ).format(
        table_name=table_name,
        insert_column_list=", ".join(insert_columns),
        select_column_list=", ".join(f"{SOURCE_ALIAS}.{column}" for column in insert_columns),
        loading_table_name=loading_table_name,
        source_alias=SOURCE_ALIAS,
        target_alias=TARGET_ALIAS,
        join_clause=join_clause,
    )


def generate_select_existing_query(
    *,
    table_name: str,
    loading_table_name: str,
    select_column: str,
    join_clause: str,
) -> str:
    """
    Select `select_column` of every loading table row with at least one match in the target table.
    """
    return (
        "SELECT {source_alias}.{select_column} FROM {loading_table_name} AS {source_alias} "
        "WHERE EXISTS (SELECT 1 FROM {table_name} AS {target_alias} WHERE {join_clause}) "
        "ORDER BY {source_alias}.{select_column};"
    ).format(
        source_alias=SOURCE_ALIAS,
        select_column=select_column,
        loading_table_name=loading_table_name,
        table_name=table_name,
        target_alias=TARGET_ALIAS,
        join_clause=join_clause,
    )
