"""Key prefixing by logical database index, and command argument errors."""

from __future__ import annotations

__all__ = ["encode_key_with_index", "decode_key", "wrong_number_of_args"]


def encode_key_with_index(key: bytes, index: int) -> bytes:
    """Prefix *key* with the one-byte database *index*."""
    if not 0 <= index <= 0xFF:
        raise ValueError(f"database index {index} does not fit in one byte")
    return bytes([index]) + bytes(key)


def decode_key(key_with_index: bytes) -> bytes:
    """Strip the database index byte from an encoded key."""
    if not key_with_index:
        raise ValueError("encoded key is empty")
    return bytes(key_with_index[1:])


def wrong_number_of_args(cmd: str) -> ValueError:
    """Build the error reported when *cmd* gets the wrong number of arguments."""
    return ValueError(f"ERR wrong number of argument for '{cmd}' command")