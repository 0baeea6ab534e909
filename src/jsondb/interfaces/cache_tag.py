"""Protocol definition for change fingerprints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..components.record import Record
    from ..core.types import JSONObject


class CacheTag(Protocol):
    """Accumulator folding every record seen into an opaque 64-bit tag."""

    def process(self, record: Record[Any], obj: JSONObject) -> None:
        """Fold one record into the accumulator.

        Args:
            record: Decoded record
            obj: The record's persisted JSON object
        """
        ...

    def tag(self) -> int:
        """Return the current fingerprint as an unsigned 64-bit integer."""
        ...
