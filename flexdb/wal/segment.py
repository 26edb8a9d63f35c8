"""Segment files of the write-ahead log and the chunk format they hold.

A chunk is laid out as ``crc (4) | length (2) | type (1) | payload``, all
little-endian.  The CRC-32 (IEEE) covers everything after the CRC field.
"""

from __future__ import annotations

import os
import struct
import tempfile
import threading
import zlib
from dataclasses import dataclass, field
from enum import IntEnum
from typing import MutableMapping, Optional, Tuple

__all__ = [
    "WalError",
    "PayloadExceedsSegmentError",
    "InvalidPositionError",
    "InvalidCrcError",
    "WalEmptyError",
    "ChunkType",
    "ChunkPos",
    "WalOptions",
    "Segment",
    "HEADER_SIZE",
    "encode_chunk",
    "segment_file_name",
    "cache_key",
]

HEADER_SIZE = 7
_HEADER = struct.Struct("<IHB")


class WalError(Exception):
    """Base class for write-ahead log errors."""


class PayloadExceedsSegmentError(WalError):
    """The payload does not fit into one segment."""

    def __init__(self, message: str = "payload exceed segment size") -> None:
        super().__init__(message)


class InvalidPositionError(WalError):
    """The requested position lies beyond what has been written."""

    def __init__(self, message: str = "read pos is not valid") -> None:
        super().__init__(message)


class InvalidCrcError(WalError):
    """A chunk failed its checksum."""

    def __init__(self, message: str = "invalid crc value,log record maybe error") -> None:
        super().__init__(message)


class WalEmptyError(WalError):
    """The log holds no data."""

    def __init__(self, message: str = "Wal file is empty,can not read") -> None:
        super().__init__(message)


class ChunkType(IntEnum):
    """How a chunk relates to the record it belongs to."""

    FULL = 0
    FIRST = 1
    MIDDLE = 2
    LAST = 3


@dataclass
class ChunkPos:
    """Where a record starts in the log and how many bytes it occupies."""

    segment_id: int = 0
    block_id: int = 0
    chunk_offset: int = 0
    chunk_size: int = 0

    def clone(self) -> "ChunkPos":
        """Copy the location; the size is not carried over."""
        return ChunkPos(self.segment_id, self.block_id, self.chunk_offset)


def _default_wal_dir() -> str:
    return os.path.join(tempfile.gettempdir(), "flexdb", "wal")


@dataclass
class WalOptions:
    """Layout and caching parameters of a write-ahead log."""

    dir_path: str = field(default_factory=_default_wal_dir)
    block_size: int = 32 * 1024
    segment_max_block_num: int = 1024
    segment_size: int = 32 * 1024 * 1024
    block_cache_num: int = 20
    file_suffix: str = ".seg"


def encode_chunk(data: bytes, chunk_type: ChunkType) -> bytes:
    """Encode *data* as one chunk of the given type."""
    payload = bytes(data)
    if len(payload) > 0xFFFF:
        raise ValueError("chunk payload longer than 65535 bytes")
    body = struct.pack("<HB", len(payload), int(chunk_type)) + payload
    return struct.pack("<I", zlib.crc32(body)) + body


def segment_file_name(dir_path: str | os.PathLike, file_suffix: str, file_id: int) -> str:
    """Return the path of the segment file with id *file_id*."""
    return os.path.join(os.fspath(dir_path), f"{file_id:09d}{file_suffix}")


def cache_key(segment_id: int, block_id: int) -> int:
    """Key of a block in the shared block cache."""
    return (segment_id & 0xFFFF) | ((block_id & 0xFFFF) << 16)


class Segment:
    """One segment file: a run of fixed-size blocks holding chunks."""

    def __init__(
        self,
        segment_id: int,
        options: WalOptions,
        cache: Optional[MutableMapping[int, bytes]] = None,
    ) -> None:
        self.segment_id = segment_id
        self.options = options
        self.first_block_id = segment_id * options.segment_max_block_num
        self.path = segment_file_name(options.dir_path, options.file_suffix, segment_id)
        self._cache = cache
        self._lock = threading.RLock()
        self._file = open(self.path, "ab+", buffering=0)

    def __enter__(self) -> "Segment":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def append(self, buf: bytes) -> int:
        """Append *buf* to the end of the file and return the number of bytes written."""
        with self._lock:
            view = memoryview(bytes(buf))
            written = 0
            while written < len(view):
                n = self._file.write(view[written:])
                if n is None:
                    continue
                written += n
            return written

    def size(self) -> int:
        """Current size of the file in bytes."""
        with self._lock:
            return os.fstat(self._file.fileno()).st_size

    def read_internal(self, block_id: int, chunk_offset: int) -> Tuple[bool, int, bytes]:
        """Read a record starting at *chunk_offset* in block *block_id*.

        Returns whether the record ended within this segment, how many blocks
        were read and the payload collected so far.
        """
        block_size = self.options.block_size
        file_size = self.size()
        cur_block = block_id - self.first_block_id
        begin = chunk_offset
        read_bytes = block_size
        blocks_read = 0
        parts: list[bytes] = []
        complete = False

        while True:
            block_start = cur_block * block_size
            if block_start + begin + block_size > file_size:
                remaining = file_size - block_start
                if remaining < 0:
                    raise EOFError(f"block {cur_block} lies beyond the end of {self.path}")
                read_bytes = min(remaining, block_size)
            if read_bytes == 0:
                break
            block = self._read_block(cur_block, read_bytes)
            chunk_type, data = self._read_chunk(block, begin)
            parts.append(data)
            blocks_read += 1
            cur_block += 1
            if chunk_type in (ChunkType.FULL, ChunkType.LAST):
                complete = True
                break
            begin = 0
        return complete, blocks_read, b"".join(parts)

    def _read_block(self, cur_block: int, read_bytes: int) -> bytes:
        block_size = self.options.block_size
        key = cache_key(
            self.segment_id,
            cur_block + self.segment_id * self.options.segment_max_block_num,
        )
        buf = self._cache.get(key) if self._cache is not None else None
        if buf is None or len(buf) < block_size:
            buf = self._read_at(block_size * cur_block, read_bytes)
            if self._cache is not None:
                self._cache[key] = buf
        return buf

    def _read_at(self, offset: int, n: int) -> bytes:
        with self._lock:
            self._file.seek(offset)
            parts: list[bytes] = []
            remaining = n
            while remaining > 0:
                chunk = self._file.read(remaining)
                if not chunk:
                    raise EOFError(f"short read at offset {offset} in {self.path}")
                parts.append(chunk)
                remaining -= len(chunk)
            return b"".join(parts)

    @staticmethod
    def _read_chunk(block: bytes, begin: int) -> Tuple[ChunkType, bytes]:
        if begin >= len(block):
            raise EOFError("chunk offset lies past the end of the block")
        header = block[begin : begin + HEADER_SIZE]
        if len(header) < HEADER_SIZE:
            raise EOFError("truncated chunk header")
        crc, length, raw_type = _HEADER.unpack(header)
        data_begin = begin + HEADER_SIZE
        data = block[data_begin : data_begin + length]
        if len(data) < length:
            raise EOFError("truncated chunk payload")
        if zlib.crc32(data, zlib.crc32(header[4:])) != crc:
            raise InvalidCrcError()
        try:
            chunk_type = ChunkType(raw_type)
        except ValueError as exc:
            raise InvalidCrcError(f"unknown chunk type {raw_type}") from exc
        return chunk_type, bytes(data)

    def sync(self) -> None:
        """Flush the file to disk."""
        with self._lock:
            os.fsync(self._file.fileno())

    def close(self) -> None:
        """Close the file."""
        with self._lock:
            if not self._file.closed:
                self._file.close()