"""YAML configuration loader with env var interpolation."""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError as SchemaError

from shlibguard.config.defaults import CONFIG_FILE_NAMES, CONFIG_SEARCH_PATHS
from shlibguard.config.models import ShlibGuardConfig
from shlibguard.errors import InvalidConfigError, UnreadableFileError

_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)(?::([^}]*))?\}")


def _interpolate_env(value: str) -> str:
    """Replace ${VAR} or ${VAR:default} with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        default = match.group(2)
        return os.environ.get(match.group(1), default if default is not None else "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: object) -> object:
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(item) for item in obj]
    return obj


def find_config_file(explicit_path: str | Path | None = None) -> Path | None:
    """Locate a shlibguard config file.

    An explicitly named file must exist; otherwise the search paths are tried
    in order and None means "use the defaults".
    """
    if explicit_path is not None:
        p = Path(explicit_path)
        if not p.is_file():
            raise UnreadableFileError(str(p), "no such config file")
        return p

    for search_dir in CONFIG_SEARCH_PATHS:
        for name in CONFIG_FILE_NAMES:
            candidate = search_dir / name
            if candidate.is_file():
                return candidate
    return None


def load_config(path: str | Path | None = None) -> ShlibGuardConfig:
    """Load and validate configuration, falling back to defaults when none is found.

    Raises:
        UnreadableFileError: ``path`` was given but cannot be read.
        InvalidConfigError: the file is not YAML or does not match the schema.
    """
    config_path = find_config_file(path)
    if config_path is None:
        return ShlibGuardConfig()

    try:
        raw = yaml.safe_load(config_path.read_text())
    except OSError as exc:
        raise UnreadableFileError(str(config_path), exc.strerror or str(exc)) from exc
    except yaml.YAMLError as exc:
        raise InvalidConfigError(str(config_path), str(exc)) from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidConfigError(str(config_path), "top level must be a mapping")

    try:
        return ShlibGuardConfig.model_validate(_walk_and_interpolate(raw))
    except SchemaError as exc:
        raise InvalidConfigError(str(config_path), str(exc)) from exc

