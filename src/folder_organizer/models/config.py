"""Configuration model for folder organizer."""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from ..exceptions import ConfigurationError


def default_data_dir() -> Path:
    return Path.home() / ".cache" / "folder-organizer"


@dataclass
class OrganizerConfig:
    """Main configuration model.

    ``history_file`` and ``trash_dir`` default to locations inside
    ``data_dir`` when not given explicitly.
    """
    data_dir: Path = field(default_factory=default_data_dir)
    history_file: Optional[Path] = None
    trash_dir: Optional[Path] = None
    rules_file: Optional[Path] = None
    progress_interval: int = 100

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir).expanduser()
        if self.history_file is None:
            self.history_file = self.data_dir / "history.json"
        if self.trash_dir is None:
            self.trash_dir = self.data_dir / "trash"
        self.history_file = Path(self.history_file).expanduser()
        self.trash_dir = Path(self.trash_dir).expanduser()
        if self.rules_file is not None:
            self.rules_file = Path(self.rules_file).expanduser()

        if isinstance(self.progress_interval, bool) or not isinstance(self.progress_interval, int):
            raise ConfigurationError("progress_interval must be an integer")
        if self.progress_interval < 1:
            raise ConfigurationError("progress_interval must be at least 1")

    @classmethod
    def default(cls) -> "OrganizerConfig":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = str(value) if isinstance(value, Path) else value
        return result


def load_config(config_path: Path) -> OrganizerConfig:
    """Load configuration from JSON file."""
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {config_path}: {e.msg} at line {e.lineno}")

    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a JSON object")

    known = {f.name for f in fields(OrganizerConfig)}
    unknown = sorted(set(config_data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

    return OrganizerConfig(**config_data)


def save_config(config: OrganizerConfig, config_path: Path) -> None:
    """Save configuration to JSON file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=2)
