"""
Tests for configuration resolution (environment, config file, defaults).
"""

import json
import logging

import pytest

from src import config
from src.config import (
    get_history_limit,
    get_log_level,
    get_setting,
    get_store_backend,
    get_store_dir,
    load_config,
    save_config,
)
from src.paths import get_db_dir


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in config.ENV_KEYS.values():
        monkeypatch.delenv(name, raising=False)


class TestConfigFile:
    def test_missing_file_is_empty(self, tmp_path):
        assert load_config(tmp_path / "config.json") == {}

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"store_backend": "memory", "history_limit": 50}, path)
        assert load_config(path) == {"store_backend": "memory", "history_limit": 50}

    @pytest.mark.parametrize("content", ["{broken", "[1, 2]"])
    def test_unusable_file_is_ignored(self, tmp_path, content):
        path = tmp_path / "config.json"
        path.write_text(content, encoding="utf-8")
        assert load_config(path) == {}


class TestSettings:
    def test_defaults(self):
        assert get_store_backend({}) == "file"
        assert get_store_dir({}) == get_db_dir()
        assert get_history_limit({}) is None
        assert get_log_level({}) == logging.INFO

    def test_config_values(self, tmp_path):
        cfg = {"store_backend": "Memory", "store_dir": str(tmp_path), "log_level": "debug"}
        assert get_store_backend(cfg) == "memory"
        assert get_store_dir(cfg) == tmp_path
        assert get_log_level(cfg) == logging.DEBUG

    def test_environment_wins_over_config(self, monkeypatch):
        monkeypatch.setenv("DIAGRAM_STORE", "memory")
        monkeypatch.setenv("DIAGRAM_HISTORY_LIMIT", "25")
        cfg = {"store_backend": "file", "history_limit": 5}
        assert get_store_backend(cfg) == "memory"
        assert get_history_limit(cfg) == 25

    def test_reads_config_file_when_not_given(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"history_limit": 7}), encoding="utf-8")
        monkeypatch.setattr(config, "get_config_path", lambda: path)
        assert get_setting("history_limit") == 7

    @pytest.mark.parametrize("value, expected", [
        (10, 10),
        ("3", 3),
        ("0", None),
        (-4, None),
        ("lots", None),
        ("", None),
    ])
    def test_history_limit_parsing(self, value, expected):
        assert get_history_limit({"history_limit": value}) == expected

    def test_unknown_log_level(self):
        assert get_log_level({"log_level": "chatty"}) == logging.INFO
