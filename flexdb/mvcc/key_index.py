"""Per-key history of revisions grouped into generations."""

from __future__ import annotations

from dataclasses import dataclass, field

from flexdb.mvcc.generation import Generation
from flexdb.mvcc.revision import Revision

__all__ = ["RevisionNotFoundError", "KeyIndex"]


class RevisionNotFoundError(LookupError):
    """No revision matches the request."""

    def __init__(self, message: str = "got an unexpected empty keyIndex") -> None:
        super().__init__(message)


@dataclass
class KeyIndex:
    """All generations of a single key."""

    key: bytes
    modified: Revision = field(default_factory=Revision)
    generations: list[Generation] = field(default_factory=list)

    def find_generation(self, rev: int) -> Generation | None:
        """Return the generation that was alive just before *rev*, if any."""
        last = len(self.generations) - 1
        for i in range(last, -1, -1):
            g = self.generations[i]
            if not g.revs:
                continue
            # Every generation but the last ends with a tombstone.
            if i != last and g.revs[-1].main < rev:
                return None
            if g.created.main <= rev:
                return g
        return None

    def get(self, rev: int) -> Revision | None:
        """Return the newest revision visible below *rev*."""
        g = self.find_generation(rev)
        if g is None or g.is_empty():
            return None
        return g.find_revision(rev)

    def put(self, main: int, sub: int) -> None:
        """Append a revision to the current generation."""
        rev = Revision(main, sub)
        if not self.generations:
            self.generations.append(Generation())
        latest = self.generations[-1]
        if not latest.revs:
            latest.created = rev
        latest.revs.append(rev)
        self.modified = rev

    def tombstone(self, main: int, sub: int) -> Revision:
        """Close the current generation and return the revision it replaced."""
        rev = self.get(main)
        if rev is None:
            raise RevisionNotFoundError()
        self.put(main, sub)
        self.generations.append(Generation())
        return rev

    def is_empty(self) -> bool:
        """Whether the key has a single, empty generation."""
        return len(self.generations) == 1 and self.generations[0].is_empty()