"""Exception hierarchy for the JSON record store.

Defines all custom exceptions used throughout the implementation.
"""

from __future__ import annotations


class JsonDBError(Exception):
    """Base exception for all store errors."""
    pass


class StoreOpenError(JsonDBError):
    """Raised when the underlying medium cannot be opened."""
    pass


class RecordDecodeError(JsonDBError):
    """Raised when replay meets a line that is not a valid record.

    Args:
        message: Human readable description
        offset: Byte offset at which parsing stopped
    """

    def __init__(self, message: str, offset: int | None = None):
        super().__init__(message)
        self.offset = offset


class TruncatedRecordError(RecordDecodeError):
    """Raised when the stream ends in the middle of a record."""
    pass


class WriteConflictError(JsonDBError):
    """Raised when the stream is not at its expected end before an append.

    Args:
        expected: Offset this handle has replayed through
        actual: Physical end of the stream
    """

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected EOF at offset {expected}, stream ends at {actual}")
        self.expected = expected
        self.actual = actual


class DocumentCodecError(JsonDBError):
    """Raised when a document cannot be converted to or from record fields."""
    pass


class ReadOnlyError(JsonDBError):
    """Raised when a mutating operation is invoked on a read-only handle."""
    pass


class StoreClosedError(JsonDBError):
    """Raised when a closed handle is used."""
    pass


class IdentifierExhaustedError(JsonDBError):
    """Raised when no identifier is left to allocate."""
    pass
