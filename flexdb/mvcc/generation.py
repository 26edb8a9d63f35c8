"""A generation: the revisions of a key from creation to deletion."""

from __future__ import annotations

from dataclasses import dataclass, field

from flexdb.mvcc.revision import Revision

__all__ = ["Generation"]


@dataclass
class Generation:
    """Revisions of one key lifetime; a closed generation ends with a tombstone."""

    created: Revision = field(default_factory=Revision)
    revs: list[Revision] = field(default_factory=list)

    def find_revision(self, rev: int) -> Revision | None:
        """Return the newest revision whose main number is below *rev*."""
        return next((r for r in reversed(self.revs) if r.main < rev), None)

    def is_empty(self) -> bool:
        """Whether the generation holds no revisions."""
        return not self.revs