"""
In-memory Storage Backend.

Dict-backed KeyValueStore used by tests and by sessions that should not
touch the disk.
"""

from typing import Dict, Optional


class MemoryStore:
    """Key-value store that lives only as long as the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        # number of set() calls, handy for asserting write behaviour
        self.writes = 0

    @property
    def backend_type(self) -> str:
        return "memory"

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value
        self.writes += 1

    def delete(self, key: str) -> None:
        self.data.pop(key, None)
