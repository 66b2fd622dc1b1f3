"""User settings with JSON persistence.

Settings live in ``settings.json`` under ``$BRAMBLE_CONFIG_DIR`` (default
``~/.bramble``).  A missing or unreadable file yields defaults; a write
failure is reported to the caller.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "BRAMBLE_CONFIG_DIR"
CONFIG_DIR_NAME = ".bramble"
SETTINGS_FILE = "settings.json"


@dataclass
class Settings:
    theme_name: str = "dark"
    git_status_interval: float = 10.0
    pr_status_interval: float = 60.0
    max_toasts: int = 3
    keybindings: dict[str, str | list[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Build settings from parsed JSON, ignoring unknown or mistyped keys."""
        defaults = cls()
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if _matches_type(value, getattr(defaults, f.name)):
                values[f.name] = value
            else:
                logger.warning("Ignoring setting %r with unexpected value %r", f.name, value)
        if "keybindings" in values:
            values["keybindings"] = _clean_keybindings(values["keybindings"])
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _matches_type(value: Any, default: Any) -> bool:
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, float):
        return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0
    if isinstance(default, int):
        return isinstance(value, int) and not isinstance(value, bool) and value > 0
    return isinstance(value, type(default))


def _clean_keybindings(raw: dict[str, Any]) -> dict[str, str | list[str]]:
    cleaned: dict[str, str | list[str]] = {}
    for action, keys in raw.items():
        if isinstance(keys, str):
            cleaned[action] = keys
        elif isinstance(keys, list) and all(isinstance(k, str) for k in keys):
            cleaned[action] = list(keys)
    return cleaned


def config_dir() -> str:
    """Directory holding the settings file."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return override
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)


def settings_path() -> str:
    return os.path.join(config_dir(), SETTINGS_FILE)


def load_settings(path: str | None = None) -> Settings:
    path = path or settings_path()
    if not os.path.exists(path):
        return Settings()
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read settings from %s: %s", path, e)
        return Settings()
    if not isinstance(data, dict):
        logger.warning("Settings file %s does not hold an object", path)
        return Settings()
    return Settings.from_dict(data)


def save_settings(settings: Settings, path: str | None = None) -> None:
    """Write *settings* to disk.  Raises ``OSError`` on failure."""
    path = path or settings_path()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    Path(path).write_text(
        json.dumps(settings.to_dict(), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
