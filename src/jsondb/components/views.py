"""View materialization over the record history.

Both views are pure functions of the history and are rebuilt on demand.
Results are kept in a SortedDict so they come out in ascending
identifier order.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from sortedcontainers import SortedDict

from ..core.types import RecordId
from .record import Delete, Record, RecordData, Upsert

T = TypeVar("T")


def live_view(history: Sequence[Record[T]]) -> SortedDict:
    """Return identifier -> RecordData for identifiers whose latest record is an upsert.

    Scans newest to oldest; the first occurrence of an identifier decides
    its state, older ones are skipped.
    """
    seen: set[RecordId] = set()
    view: SortedDict = SortedDict()

    for record in reversed(history):
        if record.id in seen:
            continue
        seen.add(record.id)
        if isinstance(record, Upsert):
            view[record.id] = record.record

    return view


def historical_view(history: Sequence[Record[T]]) -> SortedDict:
    """Return identifier -> RecordData of the last upsert per identifier.

    Tombstones are ignored entirely, so a deleted identifier shows the
    payload it had before deletion and is indistinguishable from a live one.
    """
    view: SortedDict = SortedDict()

    for record in reversed(history):
        if isinstance(record, Upsert) and record.id not in view:
            view[record.id] = record.record

    return view


def find_live(history: Sequence[Record[T]], record_id: RecordId) -> RecordData[T] | None:
    """Return the live RecordData for record_id, or None if absent or deleted."""
    for record in reversed(history):
        if record.id != record_id:
            continue
        if isinstance(record, Delete):
            return None
        return record.record
    return None
