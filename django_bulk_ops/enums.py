from enum import Enum


class OperationType(Enum):
    INSERT = "insert"
    UPDATE = "update"
    UPSERT = "upsert"

    @property
    def has_update(self) -> bool:
        return self in (OperationType.UPDATE, OperationType.UPSERT)

    @property
    def has_insert(self) -> bool:
        return self in (OperationType.INSERT, OperationType.UPSERT)


class InsertMode(Enum):
    # Plain INSERT, fails on duplicate key
    NORMAL = "normal"
    # INSERT, update the selected columns on conflict
    UPSERT = "upsert"
    # INSERT, skip rows that conflict
    INSERT_NON_EXISTING = "insert_non_existing"
