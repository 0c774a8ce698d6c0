"""Configuration loader."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .models import ConfigModel, SourceConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "dogscan" / "config.yaml"


def _read_yaml(path: Path, kind: str) -> Any:
    """Parse one YAML file, raising ConfigError if it is missing or malformed."""
    if not path.exists():
        raise ConfigError(f"{kind.capitalize()} file not found: {path}")
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {kind} file: {e}")


def _write_yaml(data: Any, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


class Config:
    """
    Configuration manager.

    sources.yaml and the default rules.yaml live next to config.yaml.
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config: Optional[ConfigModel] = None

    @property
    def config(self) -> ConfigModel:
        """Loaded config, read on first access."""
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    @property
    def sources_path(self) -> Path:
        return self.config_path.parent / "sources.yaml"

    @property
    def rules_path(self) -> Path:
        """Rules file; relative paths resolve against the config directory."""
        configured = self.config.filtering.rules_path
        if not configured:
            return self.config_path.parent / "rules.yaml"
        path = Path(configured).expanduser()
        return path if path.is_absolute() else self.config_path.parent / path

    def get_db_config(self) -> Dict[str, Any]:
        """Postgres settings as a dict, password resolved from the environment."""
        db_config = self.config.postgres.model_dump()
        env_name = db_config.get("password_env")
        if env_name and os.environ.get(env_name):
            db_config["password"] = os.environ[env_name]
        return db_config


def load_config(config_path: Path) -> ConfigModel:
    """Load and validate config.yaml."""
    data = _read_yaml(config_path, "config") or {}
    try:
        return ConfigModel(**data)
    except (TypeError, ValidationError) as e:
        raise ConfigError(f"Invalid configuration: {e}")


def load_sources(sources_path: Path) -> List[SourceConfig]:
    """
    Load sources.yaml.

    Invalid entries and repeated names are logged and skipped so one bad
    entry does not disable the others.
    """
    data = _read_yaml(sources_path, "sources")
    if not isinstance(data, dict):
        return []

    sources: List[SourceConfig] = []
    for entry in data.get("sources") or []:
        try:
            source = SourceConfig(**entry)
        except (TypeError, ValidationError) as e:
            name = entry.get("name", "unknown") if isinstance(entry, dict) else "unknown"
            logger.warning("Skipping invalid source %s: %s", name, e)
            continue
        if any(s.name == source.name for s in sources):
            logger.warning("Skipping duplicate source name %s", source.name)
            continue
        sources.append(source)

    return sources


def save_config(config: ConfigModel, config_path: Path) -> None:
    _write_yaml(config.model_dump(), config_path)


def save_sources(sources: List[SourceConfig], sources_path: Path) -> None:
    _write_yaml({"sources": [s.model_dump(exclude_none=True) for s in sources]}, sources_path)
