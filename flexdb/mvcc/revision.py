"""Revision numbers for multi-version keys."""

from __future__ import annotations

import struct
from dataclasses import dataclass

__all__ = ["Revision"]

_REVISION = struct.Struct(">qq")


@dataclass(frozen=True, order=True)
class Revision:
    """A version: *main* identifies the transaction, *sub* the change within it."""

    main: int = 0
    sub: int = 0

    def encode(self) -> bytes:
        """Encode as 16 big-endian bytes: main then sub."""
        return _REVISION.pack(self.main, self.sub)