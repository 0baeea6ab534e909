"""Configuration for the JSON record store.

Defines the options accepted when a store is opened.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class OpenOptions:
    """Options controlling how a store file is opened.

    Attributes:
        read_only: Open without write/create access; mutating calls are refused
        create: Create the file if it does not exist (ignored when read_only)
        fsync_every_write: Whether to fsync the file after each append
    """

    read_only: bool = False
    create: bool = True
    fsync_every_write: bool = True

    def mode(self) -> str:
        """Return the file mode matching these options."""
        if self.read_only:
            return "rb"
        if self.create:
            return "a+b"
        # r+b keeps the file mandatory; appends seek to EOF explicitly
        return "r+b"
