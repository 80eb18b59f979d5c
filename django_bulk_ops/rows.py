from typing import Any, Dict, Iterator, List, Mapping, Sequence, Tuple

from .exceptions import SchemaMismatchError


class Row:
    """
    Ordered field name -> value record. Field order is the insertion order of the mapping.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any]):
        self._values: Dict[str, Any] = dict(values)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __contains__(self, field_name: str) -> bool:
        return field_name in self._values

    def __repr__(self):
        return f"Row({self._values!r})"

    def keys(self) -> List[str]:
        return list(self._values)

    def items(self) -> List[Tuple[str, Any]]:
        return list(self._values.items())

    def all(self) -> Dict[str, Any]:
        return dict(self._values)

    def get(self, field_name: str) -> Any:
        try:
            return self._values[field_name]
        except KeyError:
            raise SchemaMismatchError(
                f"Missing fields: {field_name}", missing=[field_name]
            ) from None

    def is_empty(self) -> bool:
        return not self._values

    def split(self, condition_fields: Sequence[str]) -> Tuple["Row", "Row"]:
        """
        Split into (conditions, values). Every condition field must be present.
        """
        missing = [name for name in condition_fields if name not in self._values]
        if missing:
            raise SchemaMismatchError(
                f"Missing condition fields: {', '.join(missing)}", missing=missing
            )

        conditions = {name: self._values[name] for name in condition_fields}
        values = {
            name: value
            for name, value in self._values.items()
            if name not in conditions
        }
        return Row(conditions), Row(values)

    def project(self, field_names: Sequence[str]) -> "Row":
        missing = [name for name in field_names if name not in self._values]
        if missing:
            raise SchemaMismatchError(
                f"Missing fields: {', '.join(missing)}", missing=missing
            )
        return Row({name: self._values[name] for name in field_names})


def check_same_fields(given: Sequence[str], required: Sequence[str]) -> None:
    """
    Raise SchemaMismatchError if `given` differs from `required` in content or order.
    """
    given = list(given)
    required = list(required)
    if given == required:
        return

    missing = [name for name in required if name not in given]
    extra = [name for name in given if name not in required]

    if missing and extra:
        raise SchemaMismatchError(
            f"Missing fields: {', '.join(missing)}, Extra fields: {', '.join(extra)}",
            missing=missing,
            extra=extra,
        )
    if missing:
        raise SchemaMismatchError(f"Missing fields: {', '.join(missing)}", missing=missing)
    if extra:
        raise SchemaMismatchError(f"Extra fields: {', '.join(extra)}", extra=extra)

    raise SchemaMismatchError("Data must have same order.")
