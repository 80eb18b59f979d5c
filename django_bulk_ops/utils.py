from typing import Iterable, List, Sequence
from uuid import uuid1

POSTGRES_MAX_TABLE_NAME_LEN_CHARS = 63


def generate_table_name(source_table_name: str) -> str:
    table_name_template = "{source_table_name}_tmp_" + uuid1().hex
    # postgres has a max table name length of 63 characters, so it's possible
    # the staging table name could exceed the max table length. when this happens,
    # use only the uuid portion of the staging table name to ensure that the
    # table name is unique.
    max_source_table_name_length = POSTGRES_MAX_TABLE_NAME_LEN_CHARS - len(
        table_name_template.replace("{source_table_name}", "")
    )
    truncated_source_table_name = source_table_name[: max_source_table_name_length - 1]
    return table_name_template.format(source_table_name=truncated_source_table_name)


class TemporaryTableNameGenerator:
    def generate(self, original_name: str) -> str:
        raise NotImplementedError


class RandomTemporaryTableNameGenerator(TemporaryTableNameGenerator):
    """
    Unique name per call, safe for operations running concurrently against the same schema.
    """

    def generate(self, original_name: str) -> str:
        return generate_table_name(original_name)


class SuffixTemporaryTableNameGenerator(TemporaryTableNameGenerator):
    """
    Deterministic names for tests. Two operations on the same table using the same
    suffix at the same time will collide.
    """

    def __init__(self, suffix: str):
        if not suffix:
            raise ValueError("Suffix must not be empty")
        self.suffix = suffix

    def generate(self, original_name: str) -> str:
        return original_name + self.suffix


def flatten_field_groups(groups: Iterable[Sequence[str]]) -> List[str]:
    flattened = []
    for group in groups:
        for field_name in group:
            if field_name not in flattened:
                flattened.append(field_name)
    return flattened
