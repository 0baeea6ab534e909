"""Document codecs.

Converts between caller documents and the flat field map stored next to
the identifier on each upsert line.
"""

from __future__ import annotations

import copy
import dataclasses
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from ..core.errors import DocumentCodecError
from ..core.types import DELETED_FIELD, ID_FIELD, RESERVED_FIELDS, JSONObject, RecordId

T = TypeVar("T")


def split_fields(obj: JSONObject) -> JSONObject:
    """Return the document fields of a decoded upsert object.

    The identifier and the marker field are removed; everything else is
    the document, in its original order.
    """
    return {k: v for k, v in obj.items() if k not in (ID_FIELD, DELETED_FIELD)}


def merge_fields(record_id: RecordId, fields: Mapping[str, Any]) -> JSONObject:
    """Build the persisted upsert object: identifier first, then fields."""
    clash = RESERVED_FIELDS.intersection(fields)
    if clash:
        raise DocumentCodecError(f"Document uses reserved field names: {sorted(clash)}")

    obj: JSONObject = {ID_FIELD: record_id}
    obj.update(fields)
    return obj


class DictCodec:
    """Codec for documents that are plain JSON objects.

    Fields are copied on the way in and out, so callers never share
    mutable state with the store's history.
    """

    def to_fields(self, document: Mapping[str, Any]) -> JSONObject:
        if not isinstance(document, Mapping):
            raise DocumentCodecError(
                f"Expected a mapping document, got {type(document).__name__}"
            )
        return copy.deepcopy(dict(document))

    def from_fields(self, fields: JSONObject) -> JSONObject:
        return copy.deepcopy(fields)


class DataclassCodec(Generic[T]):
    """Codec mapping a dataclass to its fields.

    Args:
        cls: Dataclass type of the documents

    Absent fields fall back to the dataclass defaults; unknown fields and
    missing required fields are rejected.
    """

    def __init__(self, cls: type[T]):
        if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
            raise TypeError(f"{cls!r} is not a dataclass type")
        self.cls = cls
        self._field_names = {f.name for f in dataclasses.fields(cls)}

    def to_fields(self, document: T) -> JSONObject:
        if not isinstance(document, self.cls):
            raise DocumentCodecError(
                f"Expected {self.cls.__name__}, got {type(document).__name__}"
            )
        return dataclasses.asdict(document)

    def from_fields(self, fields: JSONObject) -> T:
        unknown = set(fields) - self._field_names
        if unknown:
            raise DocumentCodecError(
                f"Unknown fields for {self.cls.__name__}: {sorted(unknown)}"
            )
        try:
            return self.cls(**fields)
        except TypeError as e:
            raise DocumentCodecError(f"Cannot build {self.cls.__name__}: {e}") from e
