"""Thread-safe index of key revisions."""

from __future__ import annotations

import threading

from flexdb.mvcc.btree import BTree
from flexdb.mvcc.key_index import KeyIndex, RevisionNotFoundError
from flexdb.mvcc.revision import Revision

__all__ = ["TreeIndex"]


class TreeIndex:
    """Maps each key to its KeyIndex inside an ordered tree."""

    def __init__(self) -> None:
        self._tree = BTree()
        self._lock = threading.RLock()

    def get(self, key: bytes, rev: int) -> Revision | None:
        """Return the newest revision of *key* visible below *rev*."""
        with self._lock:
            ki = self._tree.get(key)
            if ki is None:
                raise RevisionNotFoundError()
            return ki.get(rev)

    def put(self, key: bytes, rev: Revision) -> None:
        """Record *rev* for *key*."""
        with self._lock:
            ki = self._tree.get(key)
            if ki is None:
                ki = KeyIndex(bytes(key))
            ki.put(rev.main, rev.sub)
            self._tree.put(key, ki)

    def tombstone(self, key: bytes, rev: Revision) -> Revision:
        """Mark *key* deleted at *rev* and return the revision it replaced."""
        with self._lock:
            ki = self._tree.get(key)
            if ki is None:
                raise RevisionNotFoundError()
            old = ki.tombstone(rev.main, rev.sub)
            self._tree.put(key, ki)
            return old