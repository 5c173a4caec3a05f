"""Configuration loading for rendertypes (.rendertypes.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from .contracts import DEFAULT_COMPONENT_WRAPPERS
from .logging import get_logger
from .transparent import TransparentRegistry

_LOGGER = get_logger("config")

CONFIG_FILENAMES = (".rendertypes.yml", ".rendertypes.yaml")
DEFAULT_MAX_DEPTH = 10

_SEVERITY_ALIASES = {
    "error": "error",
    "2": "error",
    "warn": "warning",
    "warning": "warning",
    "1": "warning",
    "off": "off",
    "0": "off",
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class RenderTypesConfig:
    """Represents the settings defined in .rendertypes.yml."""

    root: Path
    transparent_components: List[Any] = field(default_factory=list)
    component_wrappers: List[str] = field(default_factory=list)
    max_depth: int = DEFAULT_MAX_DEPTH
    rules: Dict[str, str] = field(default_factory=dict)
    exclude_paths: List[str] = field(default_factory=list)
    base_paths: List[Path] = field(default_factory=list)

    def transparent_registry(self) -> TransparentRegistry:
        """Built-in transparent components plus the configured ones."""
        return TransparentRegistry.from_settings(self.transparent_components)

    def wrappers(self) -> Tuple[str, ...]:
        """Call wrappers (``memo``, ``forwardRef``, ...) that still declare a component."""
        return tuple(dict.fromkeys([*DEFAULT_COMPONENT_WRAPPERS, *self.component_wrappers]))


def load_config(config_path: Path) -> RenderTypesConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return RenderTypesConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    transparent = data.get("transparent_components")
    transparent_items = list(transparent) if isinstance(transparent, list) else []

    max_depth = _as_int(data.get("max_depth"))
    if max_depth is None or max_depth <= 0:
        max_depth = DEFAULT_MAX_DEPTH

    rules: Dict[str, str] = {}
    for name, level in _as_dict(data.get("rules")).items():
        severity = _as_severity(level)
        if severity is None:
            _LOGGER.debug("Ignoring unknown severity %r for rule %s", level, name)
            continue
        rules[str(name)] = severity

    base_paths = [root / path for path in _as_str_list(data.get("base_paths"))]

    return RenderTypesConfig(
        root=root,
        transparent_components=transparent_items,
        component_wrappers=_as_str_list(data.get("component_wrappers")),
        max_depth=max_depth,
        rules=rules,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        base_paths=base_paths,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return _first_existing(config_path).resolve()
    if config_path.name not in CONFIG_FILENAMES and not config_path.exists():
        return _first_existing(config_path.parent).resolve()
    return config_path.resolve()


def _first_existing(directory: Path) -> Path:
    for name in CONFIG_FILENAMES:
        candidate = directory / name
        if candidate.exists():
            return candidate
    return directory / CONFIG_FILENAMES[0]


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_severity(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        # YAML reads a bare ``off`` as False.
        return "off" if value is False else None
    if isinstance(value, (list, tuple)) and value:
        value = value[0]
    return _SEVERITY_ALIASES.get(str(value).strip().lower())


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["CONFIG_FILENAMES", "ConfigError", "RenderTypesConfig", "load_config"]
