"""jsondb - single-file append-only JSON record store."""

from .components.cache_tag import CountingCacheTag, HashingCacheTag
from .components.codec import DataclassCodec, DictCodec
from .components.record import Delete, Record, RecordData, Upsert
from .core.config import OpenOptions
from .core.errors import (
    DocumentCodecError,
    IdentifierExhaustedError,
    JsonDBError,
    ReadOnlyError,
    RecordDecodeError,
    StoreClosedError,
    StoreOpenError,
    TruncatedRecordError,
    WriteConflictError,
)
from .core.store import JsonStore
from .core.types import RecordId

__all__ = [
    "JsonStore",
    "OpenOptions",
    "RecordId",
    "RecordData",
    "Record",
    "Upsert",
    "Delete",
    "DictCodec",
    "DataclassCodec",
    "CountingCacheTag",
    "HashingCacheTag",
    "JsonDBError",
    "StoreOpenError",
    "RecordDecodeError",
    "TruncatedRecordError",
    "WriteConflictError",
    "DocumentCodecError",
    "ReadOnlyError",
    "StoreClosedError",
    "IdentifierExhaustedError",
]
