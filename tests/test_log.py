import os

import pytest

from flexdb.utils import random_value
from flexdb.wal.log import Wal
from flexdb.wal.segment import (
    ChunkPos,
    InvalidCrcError,
    InvalidPositionError,
    PayloadExceedsSegmentError,
    WalEmptyError,
    WalOptions,
)


@pytest.fixture
def opts(tmp_path):
    return WalOptions(
        dir_path=str(tmp_path / "wal"),
        block_size=20,
        segment_max_block_num=3,
        segment_size=60,
        block_cache_num=20,
        file_suffix=".seg",
    )


def _state(wal):
    return (wal.segment_offset, wal.block_offset, wal.block_id, wal.segment_id)


def test_write_full_then_first_last(opts):
    wal = Wal(opts)
    first = wal.write(b"asd")
    assert first == ChunkPos(0, 0, 0, 10)
    pos = wal.write(b"bcdef")
    assert pos == ChunkPos(segment_id=0, block_id=0, chunk_offset=10, chunk_size=19)
    assert _state(wal) == (29, 9, 1, 0)
    chunks = wal.all_chunks()
    assert len(chunks) == 2
    assert [data for _, data in chunks] == [b"asd", b"bcdef"]
    assert [p for p, _ in chunks] == [ChunkPos(0, 0, 0), ChunkPos(0, 0, 10)]
    wal.close()


def test_write_padding_and_segment_rollover(opts):
    wal = Wal(opts)
    values = [random_value(8), random_value(2), random_value(22)]
    wal.write(values[0])
    wal.write(values[1])
    pos = wal.write(values[2])
    assert pos == ChunkPos(segment_id=0, block_id=1, chunk_offset=9, chunk_size=43)
    assert _state(wal) == (12, 12, 3, 1)
    chunks = wal.all_chunks()
    assert len(chunks) == 3
    assert [data for _, data in chunks] == values
    assert os.path.exists(os.path.join(opts.dir_path, "000000000.seg"))
    assert os.path.exists(os.path.join(opts.dir_path, "000000001.seg"))
    wal.close()


def test_write_first_middle_last(opts):
    wal = Wal(opts)
    wal.write(random_value(2))
    wal.write(random_value(4))
    wal.write(random_value(12))
    wal.write(random_value(19))
    pos = wal.write(random_value(27))
    assert pos == ChunkPos(segment_id=1, block_id=4, chunk_offset=0, chunk_size=48)
    assert _state(wal) == (8, 8, 6, 2)
    wal.close()


def test_read_round_trip_and_reopen(opts):
    wal = Wal(opts)
    val1 = random_value(2)
    pos1 = wal.write(val1)
    res, nxt = wal.read(pos1)
    assert res == val1
    assert nxt == ChunkPos(0, 0, 9)

    val = random_value(4)
    wal.write(val)
    res, nxt = wal.read(nxt)
    assert res == val
    assert nxt == ChunkPos(0, 1, 0)

    val = random_value(12)
    wal.write(val)
    res, nxt = wal.read(nxt)
    assert res == val
    assert nxt == ChunkPos(0, 2, 0)

    val = random_value(19)
    pos = wal.write(val)
    res, nxt = wal.read(pos)
    assert res == val
    assert nxt == ChunkPos(1, 4, 0)

    val5 = random_value(27)
    pos2 = wal.write(val5)
    res, nxt = wal.read(pos2)
    assert res == val5
    assert nxt == ChunkPos(2, 6, 8)

    res, nxt = wal.read(pos1)
    assert res == val1
    assert nxt == ChunkPos(0, 0, 9)

    assert pos2 == ChunkPos(1, 4, 0, 48)
    assert _state(wal) == (8, 8, 6, 2)

    wal.close()
    wal1 = Wal(opts)
    assert _state(wal1) == (8, 8, 6, 2)

    val2 = random_value(4)
    pos3 = wal1.write(val2)
    ret, nxt = wal1.read(pos3)
    assert ret == val2
    assert nxt == ChunkPos(2, 7, 0)
    assert _state(wal1) == (19, 19, 6, 2)

    res, nxt = wal1.read(pos2)
    assert res == val5
    assert nxt == ChunkPos(2, 6, 8)
    wal1.close()

    with Wal(opts) as wal2:
        chunks = wal2.all_chunks()
    assert len(chunks) == 6
    assert chunks[0][1] == val1
    assert chunks[4][1] == val5
    assert chunks[5][1] == val2


def test_payload_exceeding_segment_is_rejected(opts):
    wal = Wal(opts)
    with pytest.raises(PayloadExceedsSegmentError):
        wal.write(bytes(60))
    wal.close()


def test_largest_payload_spans_segments(opts):
    wal = Wal(opts)
    value = random_value(59)
    pos = wal.write(value)
    res, _ = wal.read(pos)
    assert res == value
    assert wal.segment_id == 1
    wal.close()


def test_empty_log_cannot_be_read(opts):
    wal = Wal(opts)
    with pytest.raises(WalEmptyError):
        wal.read(ChunkPos())
    with pytest.raises(WalEmptyError):
        wal.all_chunks()
    wal.close()


def test_position_beyond_written_data(opts):
    wal = Wal(opts)
    wal.write(b"abc")
    with pytest.raises(InvalidPositionError):
        wal.read(ChunkPos(segment_id=5))
    with pytest.raises(InvalidPositionError):
        wal.read(ChunkPos(block_id=9))
    wal.close()


def test_corrupted_chunk_fails_crc(opts):
    wal = Wal(opts)
    wal.write(b"hello")
    wal.close()
    path = os.path.join(opts.dir_path, "000000000.seg")
    with open(path, "r+b") as fh:
        fh.seek(8)
        original = fh.read(1)
        fh.seek(8)
        fh.write(bytes([original[0] ^ 0xFF]))
    wal = Wal(opts)
    with pytest.raises(InvalidCrcError):
        wal.read(ChunkPos(0, 0, 0))
    wal.close()


def test_without_block_cache(opts):
    opts.block_cache_num = 0
    wal = Wal(opts)
    values = [random_value(n) for n in (3, 15, 30, 5)]
    positions = [wal.write(v) for v in values]
    assert [wal.read(p)[0] for p in positions] == values
    assert [data for _, data in wal.all_chunks()] == values
    wal.close()