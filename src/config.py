"""
Configuration management for the diagram editor.

Settings come from, in priority order:
1. Environment variables (DIAGRAM_*), also loadable from a .env file
2. config.json in the application directory
3. Built-in defaults

Keys:
- store_backend: 'file' or 'memory'
- store_dir: directory for the file store
- history_limit: max undo entries (unset = unlimited)
- log_level: logging level name
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from src.paths import get_config_path, get_db_dir

logger = logging.getLogger(__name__)

DEFAULTS = {
    "store_backend": "file",
    "store_dir": None,
    "history_limit": None,
    "log_level": "INFO",
}

ENV_KEYS = {
    "store_backend": "DIAGRAM_STORE",
    "store_dir": "DIAGRAM_STORE_DIR",
    "history_limit": "DIAGRAM_HISTORY_LIMIT",
    "log_level": "DIAGRAM_LOG_LEVEL",
}


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json."""
    config_path = Path(config_path) if config_path else get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
                return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config {config_path}: {e}")
            return {}
    return {}


def save_config(config: dict, config_path: Optional[Path] = None) -> None:
    """Save configuration to config.json."""
    config_path = Path(config_path) if config_path else get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def get_setting(key: str, config: Optional[dict] = None) -> Any:
    """Resolve a single setting: environment, then config file, then default."""
    env_name = ENV_KEYS.get(key)
    if env_name:
        env_value = os.environ.get(env_name)
        if env_value:
            return env_value
    if config is None:
        config = load_config()
    if config.get(key) is not None:
        return config[key]
    return DEFAULTS.get(key)


def get_store_backend(config: Optional[dict] = None) -> str:
    return str(get_setting("store_backend", config)).lower()


def get_store_dir(config: Optional[dict] = None) -> Path:
    value = get_setting("store_dir", config)
    return Path(value) if value else get_db_dir()


def get_history_limit(config: Optional[dict] = None) -> Optional[int]:
    """Return the undo cap, or None for unlimited. Bad values mean unlimited."""
    value = get_setting("history_limit", config)
    if value in (None, ""):
        return None
    try:
        limit = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid history_limit {value!r}, history is unlimited")
        return None
    return limit if limit > 0 else None


def get_log_level(config: Optional[dict] = None) -> int:
    name = str(get_setting("log_level", config)).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
