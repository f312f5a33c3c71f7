"""Scan options and configuration loading (.nlf.yml)."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigurationError
from .logging import get_logger

CONFIG_FILENAME = ".nlf.yml"
SUMMARY_MODES = ("simple", "detail")
DEFAULT_MAX_CONCURRENCY = 8

_logger = get_logger("config")

# Option spellings accepted in addition to the field names.
_ALIASES = {
    "pruneForks": "prune_forks",
    "summaryMode": "summary_mode",
    "readTimeout": "read_timeout",
    "maxConcurrency": "max_concurrency",
    "includeExtraneous": "include_extraneous",
}


@dataclass
class FindOptions:
    """Validated options for a license scan."""

    directory: Path
    production: bool = False
    depth: Optional[int] = None
    prune_forks: bool = False
    summary_mode: str = "simple"
    read_timeout: Optional[float] = None
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    include_extraneous: bool = True

    @property
    def include_dev_dependencies(self) -> bool:
        return not self.production


_OPTION_NAMES = {item.name for item in fields(FindOptions)}


def load_config(directory: Path) -> Dict[str, Any]:
    """Return option values declared in ``directory/.nlf.yml``, if present."""
    config_file = Path(directory) / CONFIG_FILENAME
    if not config_file.is_file():
        return {}

    try:
        text = config_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Unable to read {config_file}: {exc}") from exc
    if not text.strip():
        return {}

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {CONFIG_FILENAME}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    values: Dict[str, Any] = {}
    for key, value in _normalise_keys(data).items():
        if key == "directory":
            _logger.warning("Ignoring 'directory' in %s", config_file)
            continue
        if key not in _OPTION_NAMES:
            _logger.warning("Ignoring unknown option %r in %s", key, config_file)
            continue
        values[key] = value
    _logger.debug("Loaded %d option(s) from %s", len(values), config_file)
    return values


def process_options(options: FindOptions | Mapping[str, Any] | None = None) -> FindOptions:
    """Validate ``options`` and fill defaults, layering them over ``.nlf.yml``."""
    if isinstance(options, FindOptions):
        return _validate(
            {item.name: getattr(options, item.name) for item in fields(FindOptions)}
        )
    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        raise ConfigurationError("options must be a mapping")

    explicit = _normalise_keys(options)
    unknown = sorted(set(explicit) - _OPTION_NAMES)
    if unknown:
        raise ConfigurationError(f"Unknown options: {', '.join(unknown)}")

    directory = _as_directory(explicit.get("directory"))
    merged: Dict[str, Any] = dict(load_config(directory))
    merged.update({key: value for key, value in explicit.items() if value is not None})
    merged["directory"] = directory
    return _validate(merged)


def _normalise_keys(data: Mapping[Any, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in data.items():
        name = str(key)
        result[_ALIASES.get(name, name)] = value
    return result


def _validate(values: Mapping[str, Any]) -> FindOptions:
    directory = _as_directory(values.get("directory"))

    summary_mode = values.get("summary_mode", "simple")
    if not isinstance(summary_mode, str):
        raise ConfigurationError("summary_mode must be a string")
    summary_mode = summary_mode.lower()
    if summary_mode not in SUMMARY_MODES:
        raise ConfigurationError(
            f"summary_mode must be one of {', '.join(SUMMARY_MODES)}, got {summary_mode!r}"
        )

    max_concurrency = values.get("max_concurrency", DEFAULT_MAX_CONCURRENCY)
    if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int) or max_concurrency < 1:
        raise ConfigurationError("max_concurrency must be a positive integer")

    return FindOptions(
        directory=directory,
        production=_as_bool(values, "production", False),
        depth=_as_depth(values.get("depth")),
        prune_forks=_as_bool(values, "prune_forks", False),
        summary_mode=summary_mode,
        read_timeout=_as_timeout(values.get("read_timeout")),
        max_concurrency=max_concurrency,
        include_extraneous=_as_bool(values, "include_extraneous", True),
    )


def _as_directory(value: Any) -> Path:
    if value is None:
        return Path.cwd()
    if not isinstance(value, (str, os.PathLike)):
        raise ConfigurationError("directory must be a string")
    directory = Path(value).expanduser().resolve()
    if not directory.is_dir():
        raise ConfigurationError(f"directory is not a directory: {value}")
    return directory


def _as_bool(values: Mapping[str, Any], key: str, default: bool) -> bool:
    value = values.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigurationError(f"{key} must be a boolean")
    return value


def _as_depth(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, float) and math.isinf(value) and value > 0:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError("depth must be a non-negative integer")
    if value < 0:
        raise ConfigurationError("depth must be a non-negative integer")
    return value


def _as_timeout(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError("read_timeout must be a positive number of seconds")
    return float(value)


__all__ = [
    "CONFIG_FILENAME",
    "FindOptions",
    "SUMMARY_MODES",
    "load_config",
    "process_options",
]
