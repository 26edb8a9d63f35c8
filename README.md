# flexdb

Storage building blocks for a log-structured key-value store.

## What is inside

- `flexdb.wal.segment` — the chunk format and segment files of the
  write-ahead log. A chunk is `crc (4) | length (2) | type (1) | payload`,
  little-endian, with a CRC-32 over everything after the CRC field
  (`encode_chunk`). `ChunkType` has `FULL`, `FIRST`, `MIDDLE` and `LAST`.
  `WalOptions` sets the directory, block size, blocks per segment, segment
  size, number of cached blocks and file suffix. Segment files are named by
  a nine-digit id followed by the suffix (`segment_file_name`).
- `flexdb.wal.log` — `Wal`, the write-ahead log itself. Records that do not
  fit in the rest of a block are split across blocks; a block too full for
  another chunk header is padded with zeros; a new segment file is started
  when the current one is full. Recently read blocks are kept in an LRU
  cache. Opening a `Wal` on a directory that already holds segment files
  continues where they end.
- `flexdb.mvcc` — a revision index: `Revision` (with a 16-byte big-endian
  `encode`), `Generation`, `KeyIndex`, the sorted `BTree` of key indexes
  and the thread-safe `TreeIndex` built on it.
- `flexdb.options` — configuration records `Options`, `IteratorOptions`,
  `WriteBatchOptions` and the `IndexType` enumeration.
- `flexdb.keyspace` — `encode_key_with_index` / `decode_key`, which add and
  strip a one-byte database index in front of a key, and
  `wrong_number_of_args`, which builds the error for a command given the
  wrong number of arguments.
- `flexdb.utils` — `dir_size`, `available_disk_size`, `copy_dir` (with
  glob-style exclusion patterns), and the generators `get_test_key` and
  `random_value`.

## Installation

```
pip install .
```

Run the tests with:

```
pip install ".[test]"
pytest
```

## Write-ahead log

```python
from flexdb.wal.log import Wal
from flexdb.wal.segment import WalOptions

options = WalOptions(dir_path="/tmp/flexdb-wal", file_suffix=".seg")
with Wal(options) as wal:
    pos = wal.write(b"hello")
    data, next_pos = wal.read(pos)
    assert data == b"hello"

    for chunk_pos, chunk in wal.all_chunks():
        print(chunk_pos, chunk)
```

`write` returns a `ChunkPos` (segment id, block id, offset in the block and
the number of bytes the record took). `read` returns the record and the
position of the next one. `all_chunks` returns every record, oldest first,
as `(ChunkPos, bytes)` pairs.

Reading an empty log raises `WalEmptyError`; a position beyond what has
been written raises `InvalidPositionError`; a payload as large as a segment
raises `PayloadExceedsSegmentError`; a corrupted chunk raises
`InvalidCrcError`. All of them derive from `WalError`.

## Revision index

```python
from flexdb.mvcc.revision import Revision
from flexdb.mvcc.tree_index import TreeIndex

index = TreeIndex()
index.put(b"foo", Revision(2, 0))
index.put(b"foo", Revision(3, 0))
assert index.get(b"foo", 3) == Revision(2, 0)

replaced = index.tombstone(b"foo", Revision(5, 0))
assert replaced == Revision(3, 0)
```

`get` returns the newest revision whose main number is strictly below the
one asked for, or `None`. Looking up or tombstoning an unknown key raises
`RevisionNotFoundError`; so does tombstoning a key with no revision visible
at that point. A tombstone closes the key's current generation and starts a
new one.

## What this package does not do

flexdb provides components only. It has no key-value database engine:
no data files, no put/get/delete store, no write batches, no iterators,
no merging or hint files, and no compaction of the revision index. The
`Options`, `IteratorOptions` and `WriteBatchOptions` records describe such
an engine but nothing in the package consumes them. There is no network
server and no command-line program.