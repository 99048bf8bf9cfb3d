"""
Undo/redo timeline of graph snapshots.

The timeline is a list of Snapshot entries and a cursor pointing at the
active one. Only commit_discrete and replace_all change its length;
undo/redo only move the cursor; mutate_continuous rewrites the active entry.
"""

import logging
from typing import List, Optional, Sequence

from src.models import Edge, Node, Snapshot

logger = logging.getLogger(__name__)


class HistoryManager:
    """
    Branch-truncating undo stack.

    Args:
        entries: initial snapshots (must be non-empty)
        cursor: index of the active snapshot
        limit: optional cap on the number of entries; the oldest are dropped
    """

    def __init__(self, entries: Sequence[Snapshot], cursor: int = 0, limit: Optional[int] = None):
        if not entries:
            raise ValueError("Timeline needs at least one snapshot")
        if not 0 <= cursor < len(entries):
            raise ValueError(f"Cursor {cursor} out of range for {len(entries)} entries")
        if limit is not None and limit < 1:
            raise ValueError("History limit must be at least 1")
        self._entries: List[Snapshot] = list(entries)
        self._cursor = cursor
        self._limit = limit

    @property
    def entries(self) -> List[Snapshot]:
        return list(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def active(self) -> Snapshot:
        return self._entries[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    def commit_discrete(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> Snapshot:
        """Drop any redo branch and append a new active snapshot."""
        snapshot = Snapshot(tuple(nodes), tuple(edges))
        discarded = len(self._entries) - self._cursor - 1
        if discarded:
            logger.debug(f"Discarding {discarded} redo entr{'y' if discarded == 1 else 'ies'}")
        del self._entries[self._cursor + 1:]
        self._entries.append(snapshot)
        if self._limit is not None and len(self._entries) > self._limit:
            del self._entries[:len(self._entries) - self._limit]
        self._cursor = len(self._entries) - 1
        return snapshot

    def mutate_continuous(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> Snapshot:
        """Overwrite the active snapshot in place."""
        snapshot = Snapshot(tuple(nodes), tuple(edges))
        self._entries[self._cursor] = snapshot
        return snapshot

    def undo(self) -> bool:
        if self._cursor > 0:
            self._cursor -= 1
            return True
        return False

    def redo(self) -> bool:
        if self._cursor < len(self._entries) - 1:
            self._cursor += 1
            return True
        return False

    def replace_all(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> Snapshot:
        """Reset to a single snapshot. Prior history is gone for good."""
        snapshot = Snapshot(tuple(nodes), tuple(edges))
        logger.info(f"Replacing timeline of {len(self._entries)} entries")
        self._entries = [snapshot]
        self._cursor = 0
        return snapshot
