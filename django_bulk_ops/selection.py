from typing import Any, Dict, List, Mapping, Sequence

from .exceptions import UnknownFieldError


class FieldSelection:
    """
    Chooses which fields take part in the update half of an upsert/merge.
    """

    def get_fields(self, fields: Sequence[str]) -> List[str]:
        raise NotImplementedError

    def select(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


class AllFields(FieldSelection):
    def get_fields(self, fields: Sequence[str]) -> List[str]:
        return list(fields)

    def select(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(values)

    def __repr__(self):
        return "AllFields()"


class FieldInclusion(FieldSelection):
    """
    Always returns the configured list. The caller is responsible for passing names
    that exist in the batch.
    """

    def __init__(self, fields: Sequence[str]):
        if not fields:
            raise ValueError("FieldInclusion requires at least one field")
        self.fields = list(fields)

    def get_fields(self, fields: Sequence[str]) -> List[str]:
        return list(self.fields)

    def select(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        missing = [name for name in self.fields if name not in values]
        if missing:
            raise UnknownFieldError(
                f"The following fields do not exist in the provided values: {', '.join(missing)}",
                fields=missing,
            )
        return {name: values[name] for name in self.fields}

    def __repr__(self):
        return f"FieldInclusion({self.fields!r})"


class FieldExclusion(FieldSelection):
    def __init__(self, fields: Sequence[str]):
        self.fields = list(fields)

    def get_fields(self, fields: Sequence[str]) -> List[str]:
        excluded = dict.fromkeys(self.fields)
        final = []
        for field_name in fields:
            if field_name in excluded:
                del excluded[field_name]
            elif field_name not in self.fields:
                final.append(field_name)

        if excluded:
            raise UnknownFieldError(
                f"The following fields to exclude do not exist: {', '.join(excluded)}",
                fields=list(excluded),
            )

        return final

    def select(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        selected = self.get_fields(list(values))
        return {name: values[name] for name in selected}

    def __repr__(self):
        return f"FieldExclusion({self.fields!r})"


def to_field_selection(fields_to_update) -> FieldSelection:
    """
    None -> AllFields, a list of names -> FieldInclusion, a FieldSelection is returned as is.
    """
    if fields_to_update is None:
        return AllFields()
    if isinstance(fields_to_update, FieldSelection):
        return fields_to_update
    return FieldInclusion(list(fields_to_update))
