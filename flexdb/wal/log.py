"""Write-ahead log built from fixed-size blocks spread over segment files.

Records that do not fit into the remainder of a block are split into
FIRST, MIDDLE and LAST chunks; a block too full to take another chunk
header is padded with zeros.
"""

from __future__ import annotations

import os
import threading
from typing import Dict, List, Optional, Tuple

from cachetools import LRUCache

from flexdb.wal.segment import (
    HEADER_SIZE,
    ChunkPos,
    ChunkType,
    InvalidPositionError,
    PayloadExceedsSegmentError,
    Segment,
    WalEmptyError,
    WalOptions,
)

__all__ = ["Wal"]


class Wal:
    """An append-only log of records, readable by position."""

    def __init__(self, options: Optional[WalOptions] = None) -> None:
        self.options = options if options is not None else WalOptions()
        os.makedirs(self.options.dir_path, exist_ok=True)
        self._lock = threading.RLock()
        self._cache: Optional[LRUCache] = (
            LRUCache(maxsize=self.options.block_cache_num)
            if self.options.block_cache_num > 0
            else None
        )
        self.segment_id = 0
        self.block_id = 0
        self.segment_offset = 0
        self.block_offset = 0
        self._active: Optional[Segment] = None
        self._older: Dict[int, Segment] = {}
        self._empty = True
        self._open_existing()

    def __enter__(self) -> "Wal":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _open_segment(self, segment_id: int) -> Segment:
        return Segment(segment_id, self.options, self._cache)

    def _segment_ids(self) -> List[int]:
        suffix = self.options.file_suffix
        ids = []
        for name in os.listdir(self.options.dir_path):
            if not name.endswith(suffix):
                continue
            stem = name[: len(name) - len(suffix)].lstrip("0") or "0"
            ids.append(int(stem))
        return sorted(ids)

    def _open_existing(self) -> None:
        ids = self._segment_ids()
        if not ids:
            return
        for fid in ids[:-1]:
            self._older[fid] = self._open_segment(fid)
        last = ids[-1]
        self._active = self._open_segment(last)
        self.segment_id = last
        size = self._active.size()
        block_size = self.options.block_size
        self.segment_offset = size
        self.block_offset = size % block_size
        self.block_id = (len(ids) - 1) * self.options.segment_max_block_num + size // block_size
        self._empty = False

    def _segment(self, segment_id: int) -> Segment:
        if segment_id == self.segment_id and self._active is not None:
            return self._active
        segment = self._older.get(segment_id)
        if segment is None:
            raise InvalidPositionError()
        return segment

    def write(self, data: bytes) -> ChunkPos:
        """Append *data* as one record and return where it starts."""
        payload = bytes(data)
        length = len(payload)
        block_size = self.options.block_size
        with self._lock:
            if length >= self.options.segment_size:
                raise PayloadExceedsSegmentError()
            if self._active is None:
                self._active = self._open_segment(self.segment_id)
            if HEADER_SIZE + self.block_offset >= block_size:
                self._write_padding()

            pos = ChunkPos(self.segment_id, self.block_id, self.block_offset)
            if length + HEADER_SIZE + self.block_offset <= block_size:
                pos.chunk_size = self._write_chunk(payload, ChunkType.FULL)
                self._empty = False
                return pos

            begin = 0
            while begin < length:
                if self.segment_offset + HEADER_SIZE >= self.options.segment_size:
                    self._rotate()
                if begin == 0:
                    kind = ChunkType.FIRST
                    count = block_size - self.block_offset - HEADER_SIZE
                elif length - begin + HEADER_SIZE >= block_size:
                    kind = ChunkType.MIDDLE
                    count = block_size - HEADER_SIZE
                else:
                    kind = ChunkType.LAST
                    count = length - begin
                pos.chunk_size += self._write_chunk(payload[begin : begin + count], kind)
                begin += count
            self._empty = False
            return pos

    def _rotate(self) -> None:
        assert self._active is not None
        self._active.sync()
        self._older[self.segment_id] = self._active
        self.segment_id += 1
        self._active = self._open_segment(self.segment_id)
        self.segment_offset = 0
        self.block_offset = 0

    def _write_chunk(self, data: bytes, kind: ChunkType) -> int:
        from flexdb.wal.segment import encode_chunk

        assert self._active is not None
        encoded = encode_chunk(data, kind)
        self._active.append(encoded)
        block_size = self.options.block_size
        self.block_id += (self.block_offset + len(encoded)) // block_size
        self.block_offset = (self.block_offset + len(encoded)) % block_size
        self.segment_offset += len(encoded)
        return len(encoded)

    def _write_padding(self) -> None:
        assert self._active is not None
        fill = self.options.block_size - self.block_offset
        self._active.append(bytes(fill))
        self.block_id += 1
        self.segment_offset += fill
        self.block_offset = 0

    def read(self, pos: ChunkPos) -> Tuple[bytes, ChunkPos]:
        """Read the record at *pos*; return it and the position of the next one."""
        block_size = self.options.block_size
        with self._lock:
            if self._empty:
                raise WalEmptyError()
            if pos.segment_id > self.segment_id or pos.block_id > self.block_id:
                raise InvalidPositionError()
            segment_id = pos.segment_id
            segment = self._segment(segment_id)
            block_id = pos.block_id
            offset = pos.chunk_offset
            parts: List[bytes] = []
            consumed = 0
            while True:
                complete, blocks, data = segment.read_internal(block_id, offset)
                parts.append(data)
                consumed += len(data) + HEADER_SIZE * blocks
                if complete:
                    break
                segment_id += 1
                segment = self._segment(segment_id)
                block_id += blocks
                offset = 0

            end = pos.chunk_offset + consumed
            nxt = ChunkPos(segment_id, pos.block_id + end // block_size, end % block_size)
            if nxt.chunk_offset + HEADER_SIZE >= block_size:
                # The rest of the block is padding.
                nxt.chunk_offset = 0
                nxt.block_id += 1
                if (nxt.segment_id + 1) * self.options.segment_max_block_num == nxt.block_id:
                    nxt.segment_id += 1
            return b"".join(parts), nxt

    def all_chunks(self) -> List[Tuple[ChunkPos, bytes]]:
        """Return every record in the log with its starting position, oldest first."""
        with self._lock:
            if self._empty:
                raise WalEmptyError()
            result: List[Tuple[ChunkPos, bytes]] = []
            pos = ChunkPos()
            while True:
                try:
                    data, nxt = self.read(pos.clone())
                except (EOFError, InvalidPositionError):
                    break
                result.append((pos.clone(), data))
                pos = nxt
            return result

    def sync(self) -> None:
        """Flush the active segment to disk."""
        with self._lock:
            if self._active is not None:
                self._active.sync()

    def close(self) -> None:
        """Flush and close every segment file."""
        with self._lock:
            if self._active is not None:
                self._active.sync()
                self._active.close()
            for segment in self._older.values():
                segment.close()