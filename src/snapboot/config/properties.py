"""
Property sources.

A property source is a flat, typed key/value store addressed by dotted keys
(``web.port``, ``logger.level``...). Typed getters never raise: when a value
is missing or cannot be coerced to the requested type the caller's default is
returned.
"""
import logging
import os
import threading
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Union, runtime_checkable

from .loaders import load_file, SUPPORTED_SUFFIXES
from ..errors import ConfigError
from ..utils import expanded_path, flatten

logger = logging.getLogger(__name__)

_TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_STRINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_MISSING = object()


def parse_bool(value: Any) -> Optional[bool]:
    """Return the boolean a value stands for, or None if it is not one."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in _TRUE_STRINGS:
            return True
        if value in _FALSE_STRINGS:
            return False
    return None


def parse_int(value: Any) -> Optional[int]:
    """Return the integer a value stands for, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_float(value: Any) -> Optional[float]:
    """Return the float a value stands for, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


@runtime_checkable
class PropertySource(Protocol):
    """Typed key/value configuration store."""

    def get_property(self, key: str) -> tuple[Any, bool]:
        ...

    def get_string(self, key: str, default: str = "") -> str:
        ...

    def get_bool(self, key: str, default: bool = False) -> bool:
        ...

    def get_int(self, key: str, default: int = 0) -> int:
        ...

    def get_float(self, key: str, default: float = 0.0) -> float:
        ...

    def has_property(self, key: str) -> bool:
        ...

    def set_property(self, key: str, value: Any) -> None:
        ...


class DefaultPropertySource:
    """In-memory, thread-safe property source."""

    def __init__(self, properties: Optional[Mapping[str, Any]] = None) -> None:
        self._lock = threading.RLock()
        self._properties: dict[str, Any] = {}
        if properties:
            self.update(properties)

    def get_property(self, key: str) -> tuple[Any, bool]:
        with self._lock:
            value = self._properties.get(key, _MISSING)
        if value is _MISSING:
            return None, False
        return value, True

    def get_string(self, key: str, default: str = "") -> str:
        value, exists = self.get_property(key)
        if exists and isinstance(value, str):
            return value
        return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value, exists = self.get_property(key)
        if not exists:
            return default
        parsed = parse_bool(value)
        return default if parsed is None else parsed

    def get_int(self, key: str, default: int = 0) -> int:
        value, exists = self.get_property(key)
        if not exists:
            return default
        parsed = parse_int(value)
        return default if parsed is None else parsed

    def get_float(self, key: str, default: float = 0.0) -> float:
        value, exists = self.get_property(key)
        if not exists:
            return default
        parsed = parse_float(value)
        return default if parsed is None else parsed

    def has_property(self, key: str) -> bool:
        with self._lock:
            return key in self._properties

    def set_property(self, key: str, value: Any) -> None:
        with self._lock:
            self._properties[key] = value

    def update(self, properties: Mapping[str, Any]) -> None:
        """Merge a mapping into the source; nested mappings become dotted keys."""
        flat = flatten(dict(properties))
        with self._lock:
            self._properties.update(flat)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._properties)

    def as_dict(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._properties)

    def __len__(self) -> int:
        with self._lock:
            return len(self._properties)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self)} properties)"


class FilePropertySource(DefaultPropertySource):
    """
    Property source backed by a configuration file or directory.

    When ``config_path`` is a directory the first of ``config.yaml``,
    ``config.yml`` and ``config.json`` found in it is loaded, then the
    matching profile file (``config.<profile>.yaml`` and so on) is merged on
    top. The profile defaults to the loaded ``app.env`` value.

    :param config_path: Configuration directory or file.
    :param profile: Optional profile overlay name.
    """

    def __init__(
            self,
            config_path: Union[str, Path] = "configs",
            profile: Optional[str] = None
    ) -> None:
        super().__init__()
        self.config_path = expanded_path(config_path)
        self.profile = profile
        self.loaded_files: list[Path] = []
        self.reload()

    def reload(self) -> None:
        """(Re)load the configuration files into the source."""
        path = self.config_path
        if not path.exists():
            logger.warning("Configuration path not found, using empty configuration: %s", path)
            return

        if path.is_file():
            self._load(path)
            return

        base = self._find(path, "config")
        if base is None:
            logger.debug("No configuration file found in %s", path)
            return
        self._load(base)

        profile = self.profile or self.get_string("app.env")
        if not profile:
            return
        overlay = self._find(path, f"config.{profile}")
        if overlay is not None:
            logger.debug("Applying configuration profile %s", profile)
            self._load(overlay)

    @staticmethod
    def _find(directory: Path, stem: str) -> Optional[Path]:
        for suffix in SUPPORTED_SUFFIXES:
            candidate = directory / f"{stem}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def _load(self, path: Path) -> None:
        try:
            data = load_file(path)
        except Exception as e:
            raise ConfigError(f"failed to load configuration file {path}", cause=e) from e
        self.update(data)
        self.loaded_files.append(path)
        logger.info("Loaded configuration from %s", path)


def load_environment_variables(
        source: PropertySource,
        environ: Optional[Mapping[str, str]] = None
) -> None:
    """
    Copy environment variables into a property source.

    ``WEB_PORT=9090`` becomes the property ``web.port`` with value ``"9090"``.

    :param source: Destination property source.
    :param environ: Variables to load; defaults to ``os.environ``.
    """
    if environ is None:
        environ = os.environ
    for name, value in environ.items():
        source.set_property(name.lower().replace("_", "."), value)
