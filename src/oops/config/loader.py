"""Configuration loader for oops.

Loads configuration from layered sources and merges them into a single
validated OopsConfig.
"""

from __future__ import annotations

import copy
import threading
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from oops.config.models import OopsConfig
from oops.config.sources import (
    EnvironmentSource,
    IConfigSource,
    JsonFileSource,
    YamlFileSource,
)
from oops.core import ConfigError, get_logger
from oops.core.constants import WORKSPACE_DIR_NAME

logger = get_logger("config.loader")

SETTINGS_BASENAME = "settings"


class ConfigLoader:
    """Configuration loader with hierarchical merging.

    Load order (later overrides earlier):
    1. Defaults (from OopsConfig)
    2. User settings (~/.oops/settings.json or .yaml)
    3. Project settings (./.oops/settings.json or .yaml)
    4. Environment variables (OOPS_*)
    """

    def __init__(
        self,
        user_dir: Path | None = None,
        project_dir: Path | None = None,
        environ: dict[str, str] | None = None,
    ) -> None:
        """Initialize configuration loader.

        Args:
            user_dir: User configuration directory. Defaults to ~/.oops
            project_dir: Project configuration directory. Defaults to ./.oops
            environ: Environment mapping. Defaults to os.environ.
        """
        self._user_dir = user_dir or Path.home() / WORKSPACE_DIR_NAME
        self._project_dir = project_dir or Path.cwd() / WORKSPACE_DIR_NAME
        self._environ = environ
        self._config: OopsConfig | None = None
        self._lock = threading.Lock()

    @property
    def config(self) -> OopsConfig:
        """Get current configuration, loading if necessary."""
        with self._lock:
            if self._config is None:
                self._config = self.load_all()
            return self._config

    @property
    def user_dir(self) -> Path:
        return self._user_dir

    @property
    def project_dir(self) -> Path:
        return self._project_dir

    def load_all(self) -> OopsConfig:
        """Load and merge all configuration sources.

        Returns:
            Validated OopsConfig with all sources merged.

        Raises:
            ConfigError: If the merged configuration fails validation.
        """
        config: dict[str, Any] = OopsConfig().model_dump(mode="json")

        for directory in (self._user_dir, self._project_dir):
            config = self._load_and_merge(config, self._settings_source(directory))

        config = self._load_and_merge(config, EnvironmentSource(self._environ))

        try:
            return OopsConfig.model_validate(config)
        except ValidationError as e:
            logger.error("Configuration validation failed: %s", e)
            raise ConfigError(f"Configuration validation failed: {e}") from e

    def _settings_source(self, directory: Path) -> IConfigSource:
        """Pick the settings file in a directory (JSON preferred over YAML)."""
        json_path = directory / f"{SETTINGS_BASENAME}.json"
        if json_path.exists():
            return JsonFileSource(json_path)
        for suffix in (".yaml", ".yml"):
            yaml_path = directory / f"{SETTINGS_BASENAME}{suffix}"
            if yaml_path.exists():
                return YamlFileSource(yaml_path)
        return JsonFileSource(json_path)

    def _load_and_merge(
        self,
        base: dict[str, Any],
        source: IConfigSource,
    ) -> dict[str, Any]:
        """Merge one source over base. Unreadable sources are skipped."""
        if not source.exists():
            return base
        try:
            override = source.load()
        except ConfigError as e:
            logger.debug("Skipped config source %s: %s", source, e)
            return base
        if not override:
            return base
        logger.debug("Loaded config from %s", source)
        return self.merge(base, override)

    def load(self, path: Path) -> dict[str, Any]:
        """Load a single configuration file.

        Raises:
            ConfigError: If file format is not supported or file is invalid.
        """
        suffix = path.suffix.lower()
        if suffix == ".json":
            return JsonFileSource(path).load()
        if suffix in (".yaml", ".yml"):
            return YamlFileSource(path).load()
        raise ConfigError(f"Unsupported configuration format: {suffix}")

    def merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two configuration dictionaries.

        Returns:
            New dictionary, fully independent of both inputs. Nested
            dictionaries are merged recursively, other values replaced.
        """
        result = copy.deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self.merge(result[key], value)
            else:
                result[key] = copy.deepcopy(value)

        return result

    def validate(self, config: dict[str, Any]) -> tuple[bool, list[str]]:
        """Validate a configuration dictionary against the schema."""
        try:
            OopsConfig.model_validate(config)
            return True, []
        except ValidationError as e:
            return False, [str(e)]

    def set(self, key: str, value: Any) -> OopsConfig:
        """Set a dotted configuration key (e.g. ``"diff.context"``).

        Raises:
            ConfigError: If the key is unknown or the value invalid.
        """
        new_config = set_config_value(self.config, key, value)
        with self._lock:
            self._config = new_config
        return new_config

    def reset(self) -> OopsConfig:
        """Restore default configuration."""
        with self._lock:
            self._config = OopsConfig()
            return self._config


def set_config_value(config: OopsConfig, key: str, value: Any) -> OopsConfig:
    """Return a copy of config with a dotted key replaced and re-validated.

    Raises:
        ConfigError: If the key is unknown or the value invalid.
    """
    data = config.model_dump(mode="json")
    parts = key.split(".")
    current = data
    for part in parts[:-1]:
        if part not in current or not isinstance(current[part], dict):
            raise ConfigError(f"Unknown configuration key: {key}")
        current = current[part]
    if parts[-1] not in current or isinstance(current[parts[-1]], dict):
        raise ConfigError(f"Unknown configuration key: {key}")
    current[parts[-1]] = value

    try:
        return OopsConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {e}") from e
