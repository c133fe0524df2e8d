"""
Editor configuration.

Settings for the file workflow around the core (backups, output naming,
verification, previews, logging), stored as JSON. The format core itself
takes no configuration.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RINGSAVE_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".ringsave.json"


class ConfigError(Exception):
    """Raised when a config file cannot be read."""


@dataclass
class EditorConfig:
    """Workflow settings, passed explicitly to SaveManager and the CLI."""
    create_backup: bool = True
    output_suffix: str = "modded"
    backup_suffix: str = "backup"
    verify_after_write: bool = True
    preview_bytes: int = 256
    full_preview_bytes: int = 1024
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: dict) -> 'EditorConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        values = {key: value for key, value in data.items() if key in known}
        for f in fields(cls):
            if f.name in values:
                _check_type(f.name, values[f.name], type(f.default))
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)


def _check_type(name: str, value, expected: type):
    # bool is an int subclass; keep the two apart in both directions
    if expected is not bool and isinstance(value, bool) or not isinstance(value, expected):
        raise ConfigError(
            f"Config key '{name}' must be {expected.__name__}, got {type(value).__name__}"
        )


def resolve_config_path(path: Optional[str] = None) -> Path:
    """Explicit path, else $RINGSAVE_CONFIG, else ~/.ringsave.json."""
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_config(path: Optional[str] = None) -> EditorConfig:
    """Load settings; a missing file gives the defaults."""
    config_path = resolve_config_path(path)
    if not config_path.is_file():
        return EditorConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must hold a JSON object")

    logger.info(f"Loaded config from {config_path}")
    return EditorConfig.from_dict(data)


def save_config(config: EditorConfig, path: Optional[str] = None) -> Path:
    """Write settings as JSON and return the path written."""
    config_path = resolve_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config.to_dict(), indent=2) + "\n", encoding="utf-8")
    return config_path
