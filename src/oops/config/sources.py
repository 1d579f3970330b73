"""Configuration sources for oops.

Each source turns one origin (a settings file or the process
environment) into a plain nested dict that the loader merges.
"""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, ClassVar

import yaml

from oops.core import ConfigError, get_logger

logger = get_logger("config.sources")


class IConfigSource(ABC):
    """Interface for configuration sources."""

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Return this source's settings, or ``{}`` if it has none.

        Raises:
            ConfigError: If the source exists but cannot be parsed.
        """
        ...

    @abstractmethod
    def exists(self) -> bool: ...


class FileSource(IConfigSource):
    """Settings file on disk. Subclasses supply the parser."""

    format_name: ClassVar[str] = ""
    root_kind: ClassVar[str] = "object"

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> dict[str, Any]:
        if not self.exists():
            return {}

        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot read %s: %s", self._path, e)
            raise ConfigError(f"Cannot read {self._path}: {e}") from e

        data = self._parse(text)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"{self.format_name} root must be {self.root_kind}, got {type(data).__name__}"
            )
        return data

    @abstractmethod
    def _parse(self, text: str) -> Any:
        """Parse file text; None means an empty file."""

    def _invalid(self, error: Exception) -> ConfigError:
        logger.warning("Invalid %s in %s: %s", self.format_name, self._path, error)
        return ConfigError(f"Invalid {self.format_name} in {self._path}: {error}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._path})"


class JsonFileSource(FileSource):
    """``settings.json``."""

    format_name = "JSON"
    root_kind = "object"

    def _parse(self, text: str) -> Any:
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise self._invalid(e) from e


class YamlFileSource(FileSource):
    """``settings.yaml`` / ``settings.yml``."""

    format_name = "YAML"
    root_kind = "mapping"

    def _parse(self, text: str) -> Any:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise self._invalid(e) from e


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def _to_int(value: str) -> int | str:
    try:
        return int(value)
    except ValueError:
        # Left as text so validation reports the bad value
        logger.warning("Invalid integer value in environment: %s", value)
        return value


class EnvironmentSource(IConfigSource):
    """Settings from OOPS_* environment variables.

    - OOPS_WORKSPACE -> workspace.path
    - OOPS_USE_TEMP -> workspace.use_temp
    - OOPS_DIFF_ALGORITHM -> diff.algorithm
    - OOPS_DIFF_CONTEXT -> diff.context
    """

    VARIABLES: ClassVar[dict[str, tuple[str, str, Callable[[str], Any]]]] = {
        "OOPS_WORKSPACE": ("workspace", "path", str),
        "OOPS_USE_TEMP": ("workspace", "use_temp", _to_bool),
        "OOPS_DIFF_ALGORITHM": ("diff", "algorithm", str),
        "OOPS_DIFF_CONTEXT": ("diff", "context", _to_int),
    }

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = dict(environ) if environ is not None else dict(os.environ)

    def load(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        for name, (section, key, convert) in self.VARIABLES.items():
            raw = self._environ.get(name)
            if raw is not None:
                settings.setdefault(section, {})[key] = convert(raw)
        return settings

    def exists(self) -> bool:
        return True

    def __repr__(self) -> str:
        return "EnvironmentSource()"
