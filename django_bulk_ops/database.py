from django.core.exceptions import ImproperlyConfigured

try:
    from psycopg2.extensions import Binary
    from psycopg2.extras import Json
except ImportError as e:
    raise ImproperlyConfigured(
        "psycopg2 is required for django_bulk_ops, please install it"
    ) from e

__all__ = [
    "Binary",
    "Json",
]
