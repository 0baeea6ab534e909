"""Change fingerprint strategies.

A cache tag lets a caller decide cheaply whether a log has changed since
it last looked, without comparing record sets.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Any

from .record import canonical_bytes

if TYPE_CHECKING:
    from ..core.types import JSONObject
    from .record import Record

U64_MASK = 0xFFFF_FFFF_FFFF_FFFF
COUNTING_TAG_SEED = 0x6E2797FA0B96B68F


class CountingCacheTag:
    """Tag derived from the number of records processed.

    Any append changes the tag, but two logs with the same number of
    records share it.
    """

    def __init__(self):
        self._counter = 0

    def process(self, record: Record[Any], obj: JSONObject) -> None:
        self._counter += 1

    def tag(self) -> int:
        return (self._counter ^ COUNTING_TAG_SEED) & U64_MASK


class HashingCacheTag:
    """Tag derived from a running hash over every record's canonical bytes.

    Args:
        algorithm: Any hashlib algorithm name with a digest of at least 8 bytes

    Invariants:
        - Order sensitive: it fingerprints the history, not the live view
        - Equal histories give equal tags across processes
    """

    def __init__(self, algorithm: str = "sha256"):
        self._hasher = hashlib.new(algorithm)
        if self._hasher.digest_size < 8:
            raise ValueError(f"Digest of {algorithm} is shorter than 64 bits")

    def process(self, record: Record[Any], obj: JSONObject) -> None:
        self._hasher.update(canonical_bytes(obj))

    def tag(self) -> int:
        # digest() does not finalize the running hash
        return int.from_bytes(self._hasher.digest()[:8], "little")
