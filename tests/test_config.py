"""Tests for the config module."""
import json
from pathlib import Path

from timebox.config import (
    DEFAULT_USER_ID,
    get_db_path,
    get_user_id,
    load_config,
    save_config,
    update_config,
)


class TestLoadConfig:
    def test_missing_file_returns_empty(self, tmp_path):
        assert load_config(tmp_path / "nonexistent.json") == {}

    def test_invalid_json_returns_empty(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not json", encoding="utf-8")
        assert load_config(path) == {}

    def test_loads_valid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"key": "value"}', encoding="utf-8")
        assert load_config(path) == {"key": "value"}


class TestSaveConfig:
    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "sub" / "dir" / "config.json"
        save_config({"nested": True}, path)
        assert json.loads(path.read_text()) == {"nested": True}

    def test_overwrites_existing(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"v": 1}, path)
        save_config({"v": 2}, path)
        assert json.loads(path.read_text()) == {"v": 2}


class TestSettings:
    def test_user_defaults_to_local(self, tmp_path):
        assert get_user_id(tmp_path / "config.json") == DEFAULT_USER_ID == "local"

    def test_db_path_unset(self, tmp_path):
        assert get_db_path(tmp_path / "config.json") is None

    def test_update_roundtrip(self, tmp_path):
        config_path = tmp_path / "config.json"
        update_config(config_path, user_id="alice", db_path="/data/timebox.db")
        assert get_user_id(config_path) == "alice"
        assert get_db_path(config_path) == Path("/data/timebox.db")

    def test_update_preserves_other_keys(self, tmp_path):
        config_path = tmp_path / "config.json"
        save_config({"other_key": "keep_me"}, config_path)
        update_config(config_path, user_id="bob")
        config = load_config(config_path)
        assert config["other_key"] == "keep_me"
        assert config["user_id"] == "bob"
