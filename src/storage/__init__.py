"""
Storage layer for the diagram editor.

Supports multiple key-value backends:
- FileStore: one JSON file per key in a local directory (default)
- MemoryStore: process-local dict, used by tests

TimelinePersistence writes the undo timeline through either one.
"""

from src.storage.protocol import KeyValueStore
from src.storage.file_backend import FileStore
from src.storage.memory_backend import MemoryStore
from src.storage.factory import create_store
from src.storage.persistence import Timeline, TimelinePersistence, seed_snapshot, seed_timeline

__all__ = [
    'KeyValueStore',
    'FileStore',
    'MemoryStore',
    'create_store',
    'Timeline',
    'TimelinePersistence',
    'seed_snapshot',
    'seed_timeline',
]
