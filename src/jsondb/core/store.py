"""JSON record store implementation - main public API.

Orchestrates the record log, the in-memory history and the views
derived from it.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, Generic, TypeVar

from ..components.cache_tag import CountingCacheTag
from ..components.codec import DictCodec
from ..components.log import JsonLogReader, JsonLogWriter
from ..components.record import (
    Delete,
    Record,
    RecordData,
    Upsert,
    is_valid_id,
)
from ..components.views import find_live, historical_view, live_view
from .config import OpenOptions
from .errors import (
    IdentifierExhaustedError,
    ReadOnlyError,
    StoreClosedError,
    StoreOpenError,
)
from .types import FIRST_RECORD_ID, MAX_RECORD_ID, JSONObject, RecordId

if TYPE_CHECKING:
    from ..interfaces.cache_tag import CacheTag
    from ..interfaces.codec import DocumentCodec
    from ..interfaces.log import LogReader, LogWriter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JsonStore(Generic[T]):
    """Single-file append-only record store.

    Args:
        stream: Seekable binary stream holding the log; replay starts at
            its current position
        codec: Document codec (defaults to plain JSON objects)
        cache_tag: Change fingerprint strategy (defaults to counting)
        read_only: Refuse mutating operations
        fsync: Whether to fsync after each append
        path: Path of the backing file, if any

    Public API:
        - open(path, options): Open a file and replay it
        - reload(): Absorb records appended by other handles
        - records() / records_include_deleted(): Materialized views
        - get(id), record_count(): Live lookups
        - insert(doc), upsert(id, resolver), delete(id): Appends
        - tag(): Change fingerprint
        - close(): Release the medium

    Invariants:
        - History only grows and mirrors the log up to the replay offset
        - Identifiers are never reused, even after deletion
        - Appends happen only when the stream ends where this handle last read
        - Reads are served from the last replayed snapshot

    A handle is not thread safe; use one handle per thread and let the
    append protocol detect races between them.
    """

    def __init__(
        self,
        stream: IO[bytes],
        *,
        codec: DocumentCodec[T] | None = None,
        cache_tag: CacheTag | None = None,
        read_only: bool = False,
        fsync: bool = False,
        path: str | Path | None = None,
    ):
        self._stream = stream
        self._owns_stream = False
        self._codec: DocumentCodec[T] = codec if codec is not None else DictCodec()
        self._cache_tag: CacheTag = cache_tag if cache_tag is not None else CountingCacheTag()
        self._read_only = read_only
        self._path = Path(path) if path is not None else None
        self._closed = False

        self._history: list[Record[T]] = []
        self._next_record_id: RecordId = FIRST_RECORD_ID

        self._reader: LogReader = JsonLogReader(stream, self._codec, stream.tell())
        self._writer: LogWriter | None = (
            None if read_only else JsonLogWriter(stream, self._codec, fsync=fsync)
        )

    @classmethod
    def open(
        cls,
        path: str | Path,
        options: OpenOptions | None = None,
        *,
        codec: DocumentCodec[T] | None = None,
        cache_tag: CacheTag | None = None,
    ) -> JsonStore[T]:
        """Open the store file at path and replay it.

        Raises:
            StoreOpenError: The file cannot be opened with the requested mode
            RecordDecodeError: The existing log cannot be replayed
        """
        options = options or OpenOptions()
        path = Path(path)

        try:
            stream = open(path, options.mode())
        except OSError as e:
            raise StoreOpenError(f"Failed to open store {path}: {e}") from e

        # Append mode positions the stream at EOF; replay starts at the top
        stream.seek(0)
        store = cls(
            stream,
            codec=codec,
            cache_tag=cache_tag,
            read_only=options.read_only,
            fsync=options.fsync_every_write,
            path=path,
        )
        store._owns_stream = True

        try:
            count = store.reload()
        except Exception:
            store.close()
            raise

        mode = "read-only" if options.read_only else "read-write"
        logger.info(f"Opened store {path} ({mode}), replayed {count} records")
        return store

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def history_length(self) -> int:
        """Number of records replayed or appended so far."""
        return len(self._history)

    @property
    def next_record_id(self) -> RecordId:
        """Identifier the next insert will allocate, as of the last replay."""
        return self._next_record_id

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError("Store is closed")

    def _check_writable(self) -> None:
        self._check_open()
        if self._writer is None:
            raise ReadOnlyError("Store was opened read-only")

    def _handle_record(self, record: Record[T], obj: JSONObject) -> None:
        """Fold a record into history, the id allocator and the cache tag."""
        if record.id >= self._next_record_id:
            self._next_record_id = record.id + 1
        self._history.append(record)
        self._cache_tag.process(record, obj)

    def reload(self) -> int:
        """Replay records appended since the last replay.

        Returns:
            Number of records absorbed

        Raises:
            TruncatedRecordError: The log ends mid-record (usually a write in
                progress); records before it are kept, retry later
            RecordDecodeError: The log holds a malformed record
        """
        self._check_open()
        count = 0
        for record, obj in self._reader.replay():
            self._handle_record(record, obj)
            count += 1
        if count:
            logger.debug(f"Replayed {count} records up to offset {self._reader.offset}")
        return count

    def records(self) -> list[RecordData[T]]:
        """Return live records in ascending identifier order."""
        self._check_open()
        return list(live_view(self._history).values())

    def records_include_deleted(self) -> list[RecordData[T]]:
        """Return the last upserted payload of every identifier.

        Deleted identifiers are included with the payload they had before
        deletion; intersect with records() to tell them apart.
        """
        self._check_open()
        return list(historical_view(self._history).values())

    def record_count(self) -> int:
        """Return the number of live records."""
        self._check_open()
        return len(live_view(self._history))

    def get(self, record_id: RecordId) -> RecordData[T] | None:
        """Return the live record for record_id, or None if absent or deleted."""
        self._check_open()
        return find_live(self._history, record_id)

    def tag(self) -> int:
        """Return the current change fingerprint."""
        self._check_open()
        return self._cache_tag.tag()

    def _write_record(self, make_record: Callable[[], Record[T]]) -> Record[T]:
        """Append the record built by make_record after catching up with the log.

        make_record runs after the catch-up, so anything it reads from the
        handle (the id allocator in particular) reflects the end of the log.
        """
        # Move to end of log
        self.reload()
        record = make_record()

        # Append and flush; raises WriteConflictError if another writer got in first
        persisted, obj, new_end = self._writer.append(record, self._reader.offset)

        # Update internal state from the persisted line, as replay would
        self._reader.offset = new_end
        self._handle_record(persisted, obj)
        return persisted

    def _allocate_id(self) -> RecordId:
        record_id = self._next_record_id
        if record_id > MAX_RECORD_ID:
            raise IdentifierExhaustedError(f"No identifier left after {MAX_RECORD_ID}")
        return record_id

    def insert(self, document: T) -> RecordId:
        """Append document under a newly allocated identifier and return it."""
        self._check_writable()
        record = self._write_record(
            lambda: Upsert(RecordData(self._allocate_id(), document))
        )
        return record.id

    def upsert(self, record_id: RecordId, resolver: Callable[[T | None], T | None]) -> None:
        """Update record_id with the document returned by resolver.

        resolver receives a copy of the current live document, or None,
        as of the last replay. If it returns a document, that document is
        written; if it returns None, a live record is deleted and an
        absent one is left alone without touching the log.
        """
        self._check_writable()
        _check_id(record_id)

        current = find_live(self._history, record_id)
        data = copy.deepcopy(current.data) if current is not None else None

        new_data = resolver(data)
        if new_data is not None:
            self._write_record(lambda: Upsert(RecordData(record_id, new_data)))
        elif current is not None:
            self._write_record(lambda: Delete(record_id))

    def delete(self, record_id: RecordId) -> None:
        """Append a tombstone for record_id, whether or not it is live."""
        self._check_writable()
        _check_id(record_id)
        self._write_record(lambda: Delete(record_id))

    def close(self) -> None:
        """Close store and release resources."""
        if self._closed:
            return
        self._closed = True
        self._history = []
        if self._owns_stream:
            self._stream.close()
        logger.info(f"Closed store {self._path or '<stream>'}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def _check_id(record_id: Any) -> None:
    if not is_valid_id(record_id):
        raise ValueError(f"Invalid record id: {record_id!r}")
