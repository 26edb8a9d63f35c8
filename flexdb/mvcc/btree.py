"""Ordered map from keys to their KeyIndex."""

from __future__ import annotations

import threading

from sortedcontainers import SortedDict

from flexdb.mvcc.key_index import KeyIndex

__all__ = ["BTree"]


class BTree:
    """Keys kept in byte order, each mapped to its KeyIndex."""

    def __init__(self) -> None:
        self._tree: SortedDict = SortedDict()
        self._lock = threading.RLock()

    def size(self) -> int:
        """Number of keys stored."""
        return len(self._tree)

    def get(self, key: bytes) -> KeyIndex | None:
        """Return the KeyIndex for *key*, or None."""
        return self._tree.get(bytes(key))

    def put(self, key: bytes, key_index: KeyIndex) -> KeyIndex | None:
        """Store *key_index* under *key*, returning the one it replaced."""
        with self._lock:
            k = bytes(key)
            old = self._tree.get(k)
            self._tree[k] = key_index
            return old