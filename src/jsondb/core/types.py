"""Common type definitions for the JSON record store.

Defines fundamental types used across all components.
"""

from __future__ import annotations

from typing import Any

# Core primitive types
RecordId = int
JSONObject = dict[str, Any]

# Identifiers are unsigned 32-bit integers
MIN_RECORD_ID: RecordId = 0
MAX_RECORD_ID: RecordId = 2**32 - 1
FIRST_RECORD_ID: RecordId = 1

# Reserved field names on every persisted line
ID_FIELD = "id"
DELETED_FIELD = "deleted"
RESERVED_FIELDS = frozenset({ID_FIELD, DELETED_FIELD})
