"""
KeyValueStore Protocol Definition.

This module defines the interface the timeline persistence layer writes to.
Both FileStore (local JSON files) and MemoryStore (in-process dict) conform
to this protocol.
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Abstract protocol for durable key-value stores.

    Values are opaque strings; callers handle (de)serialization. Writes are
    synchronous and independent per key: there is no transaction spanning
    several keys.
    """

    @property
    def backend_type(self) -> str:
        """Return the backend type identifier ('file' or 'memory')."""
        ...

    def get(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            The stored string, or None if the key has never been written.
        """
        ...

    def set(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        ...
