from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, Sequence


class FieldAccessor(Protocol):
    """Reads a named field from an item/group and sizes a collection."""

    def get(self, obj: Any, field: str) -> Any: ...

    def get_optional(self, obj: Any, field: str, default: Any = None) -> Any: ...

    def length(self, collection: Any) -> int: ...

    def item_at(self, collection: Any, index: int) -> Any: ...


class MappingAccessor:
    """Plain dict-like records (the default)."""

    def get(self, obj: Mapping, field: str) -> Any:
        return obj[field]

    def get_optional(self, obj: Mapping, field: str, default: Any = None) -> Any:
        return obj.get(field, default)

    def length(self, collection: Sequence) -> int:
        return len(collection)

    def item_at(self, collection: Sequence, index: int) -> Any:
        return collection[index]


class AttributeAccessor:
    """Objects exposing fields as attributes: pydantic models, dataclasses, namedtuples."""

    def get(self, obj: Any, field: str) -> Any:
        return getattr(obj, field)

    def get_optional(self, obj: Any, field: str, default: Any = None) -> Any:
        return getattr(obj, field, default)

    def length(self, collection: Sequence) -> int:
        return len(collection)

    def item_at(self, collection: Sequence, index: int) -> Any:
        return collection[index]


class KeyedContainerAccessor:
    """
    Persistent/immutable containers that expose ``get(key)`` and ``count()``
    instead of item access and ``len()``.
    """

    def get(self, obj: Any, field: str) -> Any:
        return obj.get(field)

    def get_optional(self, obj: Any, field: str, default: Any = None) -> Any:
        value = obj.get(field)
        return default if value is None else value

    def length(self, collection: Any) -> int:
        return collection.count()

    def item_at(self, collection: Any, index: int) -> Any:
        return collection.get(index)


DEFAULT_ACCESSOR = MappingAccessor()


def iter_collection(collection: Any, accessor: FieldAccessor):
    for i in range(accessor.length(collection)):
        yield accessor.item_at(collection, i)
