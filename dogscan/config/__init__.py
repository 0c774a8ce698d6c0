"""Configuration management for dogscan."""

from .loader import Config, load_config, load_sources, save_config, save_sources
from .models import (
    ConfigModel,
    DedupSettings,
    FilterSettings,
    PostgresConfig,
    ScanSettings,
    SourceConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "DedupSettings",
    "FilterSettings",
    "PostgresConfig",
    "ScanSettings",
    "SourceConfig",
    "load_config",
    "load_sources",
    "save_config",
    "save_sources",
]
