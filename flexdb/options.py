"""Configuration for the database, its iterators and write batches."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from enum import IntEnum

__all__ = ["IndexType", "Options", "IteratorOptions", "WriteBatchOptions"]


class IndexType(IntEnum):
    """Kind of in-memory index used for keys."""

    BTREE = 0
    ART = 1
    BPT = 2


def _default_dir() -> str:
    return os.path.join(tempfile.gettempdir(), "flexdb", "storefile")


@dataclass
class Options:
    """Database options."""

    dir_path: str = field(default_factory=_default_dir)
    file_size: int = 256 * 1024 * 1024
    sync_write: bool = False
    index_type: IndexType = IndexType.BTREE
    byte_per_sync: int = 0
    index_num: int = 5
    time_sync: int = 2
    mmap_at_startup: bool = True
    data_file_merge_ratio: float = 0.5
    time_get_stat: int = 1


@dataclass
class IteratorOptions:
    """Options for iterating over the index."""

    prefix: bytes = b""
    reverse: bool = False


@dataclass
class WriteBatchOptions:
    """Options for an atomic write batch."""

    max_write_num: int = 10000
    sync_write: bool = True