"""Protocol definition for the record store."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from ..components.record import RecordData
    from ..core.types import RecordId

T = TypeVar("T")


class RecordStore(Protocol[T]):
    """Public API of an open store handle."""

    def reload(self) -> int:
        """Absorb records appended since the last replay; return how many."""
        ...

    def records(self) -> list[RecordData[T]]:
        """Live records in ascending identifier order."""
        ...

    def records_include_deleted(self) -> list[RecordData[T]]:
        """Last upserted payload per identifier, deleted or not."""
        ...

    def get(self, record_id: RecordId) -> RecordData[T] | None:
        """Return the live record for record_id, or None."""
        ...

    def record_count(self) -> int:
        """Number of live records."""
        ...

    def insert(self, document: T) -> RecordId:
        """Append a new document under a freshly allocated identifier."""
        ...

    def upsert(self, record_id: RecordId, resolver: Callable[[T | None], T | None]) -> None:
        """Replace, delete or leave alone record_id based on resolver's answer."""
        ...

    def delete(self, record_id: RecordId) -> None:
        """Append a tombstone for record_id."""
        ...

    def tag(self) -> int:
        """Current change fingerprint."""
        ...

    def close(self) -> None:
        """Release the underlying medium."""
        ...
