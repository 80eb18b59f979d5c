import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from .exceptions import InvalidValueError
from .platforms import RapidOperationPlatform


class OperationEscaper:
    def escape_value(self, value: Any, column: Optional[str] = None) -> str:
        """
        Render `value` as an SQL literal. `column` lets implementations apply column-specific
        conversions first.
        """
        raise NotImplementedError

    def escape_column(self, column: str) -> str:
        raise NotImplementedError


class DefaultOperationEscaper(OperationEscaper):
    def __init__(self, platform: RapidOperationPlatform):
        self.platform = platform

    def escape_column(self, column: str) -> str:
        return self.platform.quote_name(column)

    def escape_value(self, value: Any, column: Optional[str] = None) -> str:
        if value is None:
            return "NULL"

        # bool before int, bool is an int subclass
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"

        if isinstance(value, Enum):
            return self.escape_value(value.value, column)

        if isinstance(value, Decimal):
            if not value.is_finite():
                raise InvalidValueError(f"Invalid decimal value: {value}")
            return str(value)

        if isinstance(value, int):
            return str(value)

        if isinstance(value, float):
            if value != value or value in (float("inf"), float("-inf")):
                raise InvalidValueError(f"Invalid float value: {value}")
            return repr(value)

        if isinstance(value, datetime.datetime):
            return self.platform.quote_string(value.isoformat(sep=" "))

        if isinstance(value, (datetime.date, datetime.time)):
            return self.platform.quote_string(value.isoformat())

        if isinstance(value, str):
            return self.platform.quote_string(value)

        if isinstance(value, UUID):
            return self.platform.quote_string(str(value))

        if isinstance(value, (bytes, bytearray, memoryview)):
            return self.platform.quote_binary(bytes(value))

        raise InvalidValueError(f"Invalid value type: {type(value).__name__}")
