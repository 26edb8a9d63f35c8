import pytest

from flexdb.keyspace import decode_key, encode_key_with_index, wrong_number_of_args


def test_encode_prefixes_index_byte():
    encoded = encode_key_with_index(b"name", 3)
    assert encoded[0] == 3
    assert encoded[1:] == b"name"


def test_round_trip():
    for index in (0, 15, 255):
        assert decode_key(encode_key_with_index(b"some-key", index)) == b"some-key"


def test_empty_key_round_trip():
    assert decode_key(encode_key_with_index(b"", 7)) == b""


def test_index_out_of_range():
    with pytest.raises(ValueError):
        encode_key_with_index(b"k", 256)
    with pytest.raises(ValueError):
        encode_key_with_index(b"k", -1)


def test_decode_empty_raises():
    with pytest.raises(ValueError):
        decode_key(b"")


def test_wrong_number_of_args_message():
    err = wrong_number_of_args("select")
    assert str(err) == "ERR wrong number of argument for 'select' command"
    with pytest.raises(ValueError, match="hset"):
        raise wrong_number_of_args("hset")