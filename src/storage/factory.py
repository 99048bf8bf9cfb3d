"""
Store Factory.

Creates the key-value store the timeline is persisted to, based on the
application configuration.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from src.storage.file_backend import FileStore
from src.storage.memory_backend import MemoryStore
from src.storage.protocol import KeyValueStore

logger = logging.getLogger(__name__)

# Default backend type
DEFAULT_BACKEND = "file"

BACKENDS = ("file", "memory")


def create_store(
    backend_type: Optional[str] = None,
    store_dir: Optional[Union[str, Path]] = None,
) -> KeyValueStore:
    """
    Create a key-value store.

    Args:
        backend_type: 'file' or 'memory' (defaults to 'file')
        store_dir: Directory for the file backend (required for 'file')

    Returns:
        KeyValueStore instance
    """
    backend_type = (backend_type or DEFAULT_BACKEND).lower()

    if backend_type not in BACKENDS:
        logger.warning(f"Unknown store backend '{backend_type}', using {DEFAULT_BACKEND}")
        backend_type = DEFAULT_BACKEND

    if backend_type == "memory":
        return MemoryStore()

    if store_dir is None:
        raise ValueError("File store needs a directory")
    return FileStore(str(store_dir))
