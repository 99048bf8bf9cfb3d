"""
Timeline persistence.

Stores the undo timeline as two independent keys in a KeyValueStore:
- 'entries': JSON list of snapshots in wire format
- 'index':   JSON integer, the cursor

The two writes are not atomic. If they disagree on the next load (missing
key, bad JSON, wrong types, cursor out of range) the seed timeline is used
instead; load() never raises.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List

from src.models import Node, Position, Snapshot
from src.storage.protocol import KeyValueStore

logger = logging.getLogger(__name__)

ENTRIES_KEY = "entries"
INDEX_KEY = "index"


def seed_snapshot() -> Snapshot:
    """The two-node diagram shown when nothing valid is stored."""
    return Snapshot(
        nodes=(
            Node(id="1", position=Position(50.0, 50.0), label="Node 1"),
            Node(id="2", position=Position(400.0, 50.0), label="Node 2"),
        ),
        edges=(),
    )


@dataclass
class Timeline:
    """Plain container for what gets persisted."""
    entries: List[Snapshot] = field(default_factory=lambda: [seed_snapshot()])
    cursor: int = 0


def seed_timeline() -> Timeline:
    return Timeline(entries=[seed_snapshot()], cursor=0)


class TimelineStateError(ValueError):
    """Stored timeline data has the wrong shape."""


def _parse_entries(raw: Any) -> List[Snapshot]:
    if not isinstance(raw, list) or not raw:
        raise TimelineStateError("entries must be a non-empty list")
    entries = []
    for item in raw:
        if not isinstance(item, dict):
            raise TimelineStateError("entry is not an object")
        if not isinstance(item.get("nodes"), list) or not isinstance(item.get("edges"), list):
            raise TimelineStateError("entry lacks node/edge lists")
        entries.append(Snapshot.from_dict(item))
    return entries


def _parse_index(raw: Any, length: int) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise TimelineStateError("index must be an integer")
    if not 0 <= raw < length:
        raise TimelineStateError(f"index {raw} out of range for {length} entries")
    return raw


class TimelinePersistence:
    """Loads and saves the timeline through an injected KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def load(self) -> Timeline:
        try:
            raw_entries = self.store.get(ENTRIES_KEY)
            raw_index = self.store.get(INDEX_KEY)
            if raw_entries is None or raw_index is None:
                logger.info("No stored timeline, starting from seed")
                return seed_timeline()
            entries = _parse_entries(json.loads(raw_entries))
            cursor = _parse_index(json.loads(raw_index), len(entries))
        except Exception as e:
            logger.warning(f"Stored timeline unusable, falling back to seed: {e}")
            return seed_timeline()
        logger.info(f"Loaded timeline with {len(entries)} entries at cursor {cursor}")
        return Timeline(entries=entries, cursor=cursor)

    def save(self, entries: List[Snapshot], cursor: int) -> None:
        """Write entries then index. Failures are logged, never raised."""
        try:
            self.store.set(ENTRIES_KEY, json.dumps([s.to_dict() for s in entries]))
            self.store.set(INDEX_KEY, json.dumps(cursor))
        except Exception as e:
            logger.error(f"Failed to persist timeline: {e}")
