from typing import Iterable

from django.core.exceptions import ImproperlyConfigured


class BulkOpsError(Exception):
    pass


class SchemaMismatchError(BulkOpsError, ValueError):
    """
    A row does not have the same fields (or the same field order) as the first row of the batch.
    """

    def __init__(self, message: str, missing: Iterable[str] = (), extra: Iterable[str] = ()):
        super().__init__(message)
        self.missing = list(missing)
        self.extra = list(extra)


class EmptyValuesError(BulkOpsError, ValueError):
    pass


class UnknownFieldError(BulkOpsError, ValueError):
    def __init__(self, message: str, fields: Iterable[str] = ()):
        super().__init__(message)
        self.fields = list(fields)


class InvalidValueError(BulkOpsError, ValueError):
    pass


class ConfigurationError(BulkOpsError):
    """
    Raised while building SQL when the batch does not provide what the statement needs
    (identifier columns for a conflict clause, match columns for a merge, ...).
    """


class UnsupportedPlatformError(BulkOpsError, ImproperlyConfigured):
    pass
