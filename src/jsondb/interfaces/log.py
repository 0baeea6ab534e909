"""Protocol definitions for the record log."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..components.record import Record
    from ..core.types import JSONObject


class LogReader(Protocol):
    """Protocol for resumable replay of the log."""

    offset: int

    def replay(self) -> Iterator[tuple[Record[Any], JSONObject]]:
        """Yield each complete record past the offset, advancing it.

        Invariants:
            - The offset only moves past fully decoded records
            - On error the offset stays where the last good record ended
        """
        ...


class LogWriter(Protocol):
    """Protocol for appending to the log."""

    def append(
        self, record: Record[Any], expected_end: int
    ) -> tuple[Record[Any], JSONObject, int]:
        """Append record if the stream still ends at expected_end.

        Returns:
            The record as it reads back from the log, its JSON object
            and the new end offset

        Invariants:
            - Nothing is written when the end offset does not match
            - Nothing is written when the record cannot be serialized
            - The line is flushed before returning
        """
        ...
