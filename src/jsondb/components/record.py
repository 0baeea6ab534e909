"""Record model and log line encoding.

A log line is one JSON object. Upserts carry the identifier and the
document fields flattened into the same object; tombstones carry only the
identifier and ``"deleted": true``. There is no explicit discriminant, so
``decode_record`` dispatches on the marker field: the strict tombstone
schema is tried first, everything else must be a valid upsert.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union

from ..core.errors import DocumentCodecError, RecordDecodeError
from ..core.types import (
    DELETED_FIELD,
    ID_FIELD,
    MAX_RECORD_ID,
    MIN_RECORD_ID,
    JSONObject,
    RecordId,
)
from .codec import merge_fields, split_fields

if TYPE_CHECKING:
    from ..interfaces.codec import DocumentCodec

T = TypeVar("T")


@dataclass(frozen=True)
class RecordData(Generic[T]):
    """An identifier paired with its document payload."""

    id: RecordId
    data: T


@dataclass(frozen=True)
class Upsert(Generic[T]):
    """Log entry setting the payload for an identifier."""

    record: RecordData[T]

    @property
    def id(self) -> RecordId:
        return self.record.id


@dataclass(frozen=True)
class Delete:
    """Log entry marking an identifier as deleted (tombstone)."""

    id: RecordId


Record = Union[Upsert[T], Delete]


def is_valid_id(value: Any) -> bool:
    """Return True if value is an integer in the unsigned 32-bit range."""
    # bool is an int subclass; JSON true/false is never an identifier
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return MIN_RECORD_ID <= value <= MAX_RECORD_ID


def _decode_id(obj: JSONObject) -> RecordId:
    if ID_FIELD not in obj:
        raise RecordDecodeError(f"missing field `{ID_FIELD}`")
    value = obj[ID_FIELD]
    if not is_valid_id(value):
        raise RecordDecodeError(f"invalid identifier {value!r}: expected u32")
    return value


def decode_tombstone(obj: JSONObject) -> Delete | None:
    """Decode obj as a tombstone.

    Returns None when the marker is not strictly ``true``, meaning the
    object is not a tombstone at all. Raises RecordDecodeError when the
    marker is set but the object carries anything besides the identifier.
    """
    if obj.get(DELETED_FIELD) is not True:
        return None

    extra = set(obj) - {ID_FIELD, DELETED_FIELD}
    if extra:
        raise RecordDecodeError(f"unexpected fields in tombstone: {sorted(extra)}")
    return Delete(_decode_id(obj))


def decode_upsert(obj: JSONObject, codec: DocumentCodec[T]) -> Upsert[T]:
    """Decode obj as an upsert, handing the remaining fields to codec."""
    if DELETED_FIELD in obj and obj[DELETED_FIELD] is not False:
        raise RecordDecodeError(
            f"invalid value {obj[DELETED_FIELD]!r} for `{DELETED_FIELD}`: expected false"
        )
    record_id = _decode_id(obj)
    data = codec.from_fields(split_fields(obj))
    return Upsert(RecordData(record_id, data))


def decode_record(value: Any, codec: DocumentCodec[T]) -> Record[T]:
    """Decode one parsed JSON value into a Record.

    Raises:
        RecordDecodeError: value is not a valid record
        DocumentCodecError: the upsert fields do not form a valid document
    """
    if not isinstance(value, dict):
        raise RecordDecodeError(f"expected a JSON object, got {type(value).__name__}")

    tombstone = decode_tombstone(value)
    if tombstone is not None:
        return tombstone
    return decode_upsert(value, codec)


def encode_record(record: Record[T], codec: DocumentCodec[T]) -> JSONObject:
    """Return the JSON object persisted for record."""
    if isinstance(record, Delete):
        return {ID_FIELD: record.id, DELETED_FIELD: True}
    return merge_fields(record.id, codec.to_fields(record.record.data))


def serialize_line(obj: JSONObject) -> bytes:
    """Serialize a record object as one compact UTF-8 JSON line."""
    try:
        text = json.dumps(obj, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise DocumentCodecError(f"Document is not JSON serializable: {e}") from e
    return text.encode("utf-8") + b"\n"


def canonical_bytes(obj: JSONObject) -> bytes:
    """Return a stable byte form of a record object, independent of key order.

    A ``"deleted": false`` marker is equivalent to an absent one and is
    left out.
    """
    if obj.get(DELETED_FIELD) is False:
        obj = {k: v for k, v in obj.items() if k != DELETED_FIELD}
    text = json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return text.encode("utf-8") + b"\n"
