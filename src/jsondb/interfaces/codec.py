"""Protocol definition for document codecs."""

from __future__ import annotations

from typing import Protocol, TypeVar

from ..core.types import JSONObject

T = TypeVar("T")


class DocumentCodec(Protocol[T]):
    """Converts documents to and from the flat field map of an upsert."""

    def to_fields(self, document: T) -> JSONObject:
        """Return the document's fields, without `id` or `deleted`.

        Raises DocumentCodecError if the document cannot be represented.
        """
        ...

    def from_fields(self, fields: JSONObject) -> T:
        """Build a document from the fields of a decoded upsert.

        Raises DocumentCodecError if the fields do not form a document.
        """
        ...
