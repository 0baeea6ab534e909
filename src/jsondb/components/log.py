"""JSON lines record log.

Provides resumable replay of an append-only log of JSON records and an
append primitive that refuses to write unless the stream still ends where
this handle last read it.
"""

from __future__ import annotations

import io
import json
import logging
import os
import re
from collections.abc import Iterator
from typing import IO, TYPE_CHECKING, Generic, TypeVar

from ..core.errors import (
    DocumentCodecError,
    RecordDecodeError,
    TruncatedRecordError,
    WriteConflictError,
)
from .record import Record, decode_record, encode_record, serialize_line

if TYPE_CHECKING:
    from ..core.types import JSONObject
    from ..interfaces.codec import DocumentCodec

logger = logging.getLogger(__name__)

# Log format: one JSON object per line, UTF-8, newline terminated.
# Whitespace between values is skipped, so hand-edited files still replay.
WHITESPACE = re.compile(r"[ \t\n\r]*")
LITERALS = ("true", "false", "null")
NUMBER_TAIL = re.compile(r"\.|[eE][+-]?")

T = TypeVar("T")


def _byte_length(text: str) -> int:
    return len(text.encode("utf-8", "surrogateescape"))


def _is_truncated(text: str, error: json.JSONDecodeError) -> bool:
    """Return True if decoding failed only because text ended mid-value."""
    if error.msg.startswith("Unterminated string"):
        return True
    rest = text[error.pos:].rstrip()
    if not rest:
        return True
    if error.msg == "Expecting value":
        # a literal or a sign cut short, e.g. `{"deleted":tr` or `{"n":-`
        return rest == "-" or any(lit.startswith(rest) for lit in LITERALS)
    # a number cut short after its digits, e.g. `{"n":1.` or `{"n":2e-`
    return text[error.pos - 1 : error.pos].isdigit() and NUMBER_TAIL.fullmatch(rest) is not None


class JsonLogReader(Generic[T]):
    """Resumable reader over a JSON lines log.

    Args:
        stream: Seekable binary stream holding the log
        codec: Codec used to build documents from upsert fields
        offset: Byte offset where replay starts

    Invariants:
        - Bytes before offset are never read again
        - offset only advances past records that decoded successfully
        - A truncated or malformed value leaves offset unchanged, so a
          later replay retries from the same position
    """

    def __init__(self, stream: IO[bytes], codec: DocumentCodec[T], offset: int = 0):
        self._stream = stream
        self._codec = codec
        self._decoder = json.JSONDecoder()
        self.offset = offset

    def _read_tail(self) -> str:
        """Read everything from offset to the end of the stream."""
        self._stream.seek(self.offset)
        return self._stream.read().decode("utf-8", "surrogateescape")

    def replay(self) -> Iterator[tuple[Record[T], JSONObject]]:
        """Yield (record, persisted object) for each complete record past offset.

        Raises:
            TruncatedRecordError: the stream ends in the middle of a value
            RecordDecodeError: a value is not valid JSON or not a valid record
            DocumentCodecError: an upsert does not form a valid document
        """
        text = self._read_tail()
        pos = 0

        while True:
            start = WHITESPACE.match(text, pos).end()
            if start == len(text):
                # Trailing whitespace is consumed so the offset lands on EOF
                self.offset += _byte_length(text[pos:start])
                return

            error_offset = self.offset + _byte_length(text[pos:start])
            try:
                value, end = self._decoder.raw_decode(text, start)
            except json.JSONDecodeError as e:
                if _is_truncated(text, e):
                    logger.warning(f"Partial record at offset {error_offset}, stopping replay")
                    raise TruncatedRecordError(
                        f"Stream ends mid-record at offset {error_offset}", error_offset
                    ) from e
                logger.warning(f"Malformed JSON at offset {error_offset}: {e.msg}")
                raise RecordDecodeError(
                    f"Malformed JSON at offset {error_offset}: {e}", error_offset
                ) from e

            raw = text[start:end]
            try:
                raw.encode("utf-8")
            except UnicodeEncodeError as e:
                raise RecordDecodeError(
                    f"Invalid UTF-8 in record at offset {error_offset}", error_offset
                ) from e

            try:
                record = decode_record(value, self._codec)
            except RecordDecodeError as e:
                logger.warning(f"Invalid record at offset {error_offset}: {e}")
                raise RecordDecodeError(
                    f"Invalid record at offset {error_offset}: {e}", error_offset
                ) from e

            # The line terminator goes with the record, keeping the offset line aligned
            end = WHITESPACE.match(text, end).end()
            self.offset += _byte_length(text[pos:end])
            pos = end
            yield record, value


class JsonLogWriter(Generic[T]):
    """Appends records to a JSON lines log.

    Args:
        stream: Seekable, writable binary stream holding the log
        codec: Codec used to turn documents into upsert fields
        fsync: Whether to fsync the file descriptor after each append
    """

    def __init__(self, stream: IO[bytes], codec: DocumentCodec[T], fsync: bool = False):
        self._stream = stream
        self._codec = codec
        self.fsync = fsync

    def append(
        self, record: Record[T], expected_end: int
    ) -> tuple[Record[T], JSONObject, int]:
        """Append record as one line, provided the stream ends at expected_end.

        The line is parsed and decoded again before anything is written, so
        the returned record is exactly what a replay of the line produces.

        Args:
            record: Record to persist
            expected_end: Offset the caller has replayed through

        Returns:
            The persisted record, its JSON object and the new end offset

        Raises:
            DocumentCodecError: the record cannot be serialized or does not
                survive a round trip; nothing is written
            WriteConflictError: another writer appended first; nothing is written
        """
        line = serialize_line(encode_record(record, self._codec))
        obj = json.loads(line)
        try:
            persisted = decode_record(obj, self._codec)
        except RecordDecodeError as e:
            raise DocumentCodecError(f"Record {record.id} does not read back: {e}") from e

        actual_end = self._stream.seek(0, os.SEEK_END)
        if actual_end != expected_end:
            logger.warning(
                f"Refusing append of record {record.id}: expected EOF at {expected_end}, "
                f"stream ends at {actual_end}"
            )
            raise WriteConflictError(expected_end, actual_end)

        self._stream.write(line)
        self.sync()

        new_end = actual_end + len(line)
        logger.debug(
            f"Appended {type(record).__name__.lower()} record id={record.id} "
            f"at offset {actual_end}"
        )
        return persisted, obj, new_end

    def sync(self) -> None:
        """Flush buffered bytes and, if enabled, fsync."""
        self._stream.flush()
        if not self.fsync:
            return
        try:
            fd = self._stream.fileno()
        except (AttributeError, io.UnsupportedOperation):
            return
        os.fsync(fd)
