import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from .scheduler import RUNS_PER_POSITION

CONFIG_PATH = Path("config.json")
DB_PATH = "derby.db"
WEB_PORT = 8080


@dataclass
class DerbyConfig:
    db_path: str = DB_PATH
    runs_per_position: int = RUNS_PER_POSITION
    web_port: int = WEB_PORT
    # Roster to start from when nothing has been saved yet: [{"name": ..., "category": ...}]
    contestants: list[dict[str, Any]] = field(default_factory=list)


def _coerce(config_data: dict[str, Any], key: str, convert: Callable[[Any], Any], default: Any) -> Any:
    if key not in config_data:
        return default
    try:
        return convert(config_data[key])
    except (TypeError, ValueError) as e:
        logging.error(f"Bad {key} in config ({config_data[key]!r}), using {default!r}: {e}")
        return default


def _roster(entries: Any) -> list[dict[str, Any]]:
    if not isinstance(entries, list):
        logging.error(f"Config contestants should be a list, got {entries!r}")
        return []
    roster = []
    for entry in entries:
        if isinstance(entry, dict):
            roster.append(entry)
        else:
            logging.error(f"Skipping contestant from config {entry!r}: not an object")
    return roster


def load_config(config_path: Optional[Path] = None) -> DerbyConfig:
    """Reads config.json; a missing or unreadable file gives the defaults, as does any bad value."""
    config_path = config_path or CONFIG_PATH
    config = DerbyConfig()
    if not config_path.exists():
        logging.info(f"No config file at {config_path}, using defaults")
        return config

    try:
        config_data = json.loads(config_path.read_text())
    except Exception as e:
        logging.error(f"Failed to read {config_path}: {e}")
        return config
    if not isinstance(config_data, dict):
        logging.error(f"Failed to read {config_path}: expected an object, got {type(config_data).__name__}")
        return config

    config.db_path = _coerce(config_data, "db_path", _text, DB_PATH)
    config.runs_per_position = _coerce(config_data, "runs_per_position", _positive_int, RUNS_PER_POSITION)
    config.web_port = _coerce(config_data, "web_port", _positive_int, WEB_PORT)
    config.contestants = _roster(config_data.get("contestants", []))
    return config


def _text(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError("expected a non-empty string")
    return value


def _positive_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("expected a number")
    number = int(value)
    if number < 1:
        raise ValueError("must be at least 1")
    return number
