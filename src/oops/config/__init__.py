"""Configuration system for oops."""

from oops.config.loader import ConfigLoader, set_config_value
from oops.config.models import (
    DiffAlgorithm,
    DiffSettings,
    OopsConfig,
    SafetySettings,
    WorkspaceSettings,
)
from oops.config.sources import (
    EnvironmentSource,
    IConfigSource,
    JsonFileSource,
    YamlFileSource,
)

__all__ = [
    "ConfigLoader",
    "DiffAlgorithm",
    "DiffSettings",
    "EnvironmentSource",
    "IConfigSource",
    "JsonFileSource",
    "OopsConfig",
    "SafetySettings",
    "WorkspaceSettings",
    "YamlFileSource",
    "set_config_value",
]
