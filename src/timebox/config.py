"""Configuration file management for timebox.

Reads and writes ~/.timebox/config.json for settings that don't belong in the DB
(the database location and which user the CLI acts as).
"""
from __future__ import annotations

import json
from pathlib import Path

DEFAULT_CONFIG_PATH: Path = Path.home() / ".timebox" / "config.json"
DEFAULT_USER_ID = "local"


def load_config(config_path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} if file missing or invalid."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def get_db_path(config_path: Path | None = None) -> Path | None:
    """Return the configured database path, or None to use the default."""
    raw = load_config(config_path).get("db_path")
    if raw:
        return Path(raw)
    return None


def get_user_id(config_path: Path | None = None) -> str:
    """Return the configured user id, falling back to 'local'."""
    return load_config(config_path).get("user_id") or DEFAULT_USER_ID


def update_config(config_path: Path | None = None, **values: str) -> dict:
    """Merge values into the stored config and persist it."""
    config = load_config(config_path)
    config.update(values)
    save_config(config, config_path)
    return config
