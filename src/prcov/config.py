"""Run settings and optional ``.prcov.yml`` configuration."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import yaml

logger = logging.getLogger(__name__)

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

# Leading integer, as accepted by JavaScript's parseInt (e.g. "80%" -> 80)
_LEADING_INT_RE = re.compile(r"^\s*([+-]?[0-9]+)")

DEFAULT_MIN_THRESHOLD = 100
DEFAULT_CHECK_NAME = "Coverage"
CONFIG_FILE_NAME = ".prcov.yml"

_MIN_THRESHOLD = 0
_MAX_THRESHOLD = 100

INPUT_GITHUB_TOKEN = "github_token"
INPUT_MIN_THRESHOLD = "min_threshold"
INPUT_REPORT_FILE_PATH = "report_file_path"


class ConfigError(Exception):
    """Raised when a required input is missing or invalid."""


class SettingsIO(Protocol):
    """Source of named string inputs."""

    def get_input(self, name: str, *, required: bool = False) -> str: ...


class ActionInputs:
    """Inputs exposed by GitHub Actions as ``INPUT_<NAME>`` environment variables."""

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env = os.environ if env is None else env

    def get_input(self, name: str, *, required: bool = False) -> str:
        key = f"INPUT_{name.replace(' ', '_').upper()}"
        value = self._env.get(key, "").strip()
        if required and not value:
            raise ConfigError(f"Input required and not supplied: {name}")
        return value


class MappingInputs:
    """Inputs taken from a plain mapping, falling back to another source."""

    def __init__(self, values: Mapping[str, Any], fallback: SettingsIO | None = None) -> None:
        self._values = values
        self._fallback = fallback

    def get_input(self, name: str, *, required: bool = False) -> str:
        value = self._values.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
        if self._fallback is not None:
            return self._fallback.get_input(name, required=required)
        if required:
            raise ConfigError(f"Input required and not supplied: {name}")
        return ""


@dataclass(frozen=True)
class Settings:
    """Validated inputs of a single run."""

    token: str
    report_file_path: str
    min_threshold: int


def _parse_leading_int(value: str) -> int | None:
    match = _LEADING_INT_RE.match(value)
    if match is None:
        return None
    return int(match.group(1))


def _validate_threshold(threshold: int, name: str) -> int:
    if threshold < _MIN_THRESHOLD:
        raise ConfigError(f'"{name}" cannot be negative')
    if threshold > _MAX_THRESHOLD:
        raise ConfigError(f'"{name}" cannot be greater than {_MAX_THRESHOLD}')
    return threshold


class SettingsLoader:
    """Validates the three run inputs and builds :class:`Settings`.

    Args:
        default_min_threshold: Threshold used when ``min_threshold`` is absent
            or not a number.
    """

    def __init__(self, default_min_threshold: int = DEFAULT_MIN_THRESHOLD) -> None:
        self.default_min_threshold = _validate_threshold(
            default_min_threshold, "default_min_threshold"
        )

    def from_io(self, io: SettingsIO) -> Settings:
        """Read and validate every input. Any failure aborts construction."""
        return Settings(
            token=self.read_token(io),
            min_threshold=self.read_min_threshold(io),
            report_file_path=self.read_report_file_path(io),
        )

    def read_token(self, io: SettingsIO) -> str:
        token = io.get_input(INPUT_GITHUB_TOKEN, required=True)
        if not token.strip():
            raise ConfigError(f"{INPUT_GITHUB_TOKEN} is required")
        return token

    def read_min_threshold(self, io: SettingsIO) -> int:
        raw = io.get_input(INPUT_MIN_THRESHOLD)
        threshold = _parse_leading_int(raw)
        if threshold is None:
            logger.debug(
                "Using default %s=%d (input was %r)",
                INPUT_MIN_THRESHOLD,
                self.default_min_threshold,
                raw,
            )
            return self.default_min_threshold
        return _validate_threshold(threshold, INPUT_MIN_THRESHOLD)

    def read_report_file_path(self, io: SettingsIO) -> str:
        path = io.get_input(INPUT_REPORT_FILE_PATH, required=True)
        if Path(path).is_file():
            return path
        raise ConfigError(f"No coverage report found at '{path}'")


# ── .prcov.yml ───────────────────────────────────────────────────


@dataclass(frozen=True)
class PrcovConfig:
    """Repository-level defaults read from ``.prcov.yml``."""

    default_min_threshold: int = DEFAULT_MIN_THRESHOLD
    """Threshold used when the ``min_threshold`` input is not given."""

    check_name: str = DEFAULT_CHECK_NAME
    """Name of the check run created on the commit."""

    path_prefix: str = ""
    """Prefix stripped from report paths (empty = current working directory)."""


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def load_config(path: str | Path = CONFIG_FILE_NAME) -> PrcovConfig:
    """Load ``.prcov.yml``. A missing file yields the defaults.

    Raises:
        ConfigError: If the file is not valid YAML or holds invalid values.
    """
    config_path = Path(path)
    if not config_path.is_file():
        logger.debug("No config file at %s, using defaults", config_path)
        return PrcovConfig()

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if raw is None:
        return PrcovConfig()
    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    data = {
        key: _resolve_env_vars(value) if isinstance(value, str) else value
        for key, value in raw.items()
    }

    threshold = data.get("default_min_threshold", DEFAULT_MIN_THRESHOLD)
    if isinstance(threshold, str):
        parsed = _parse_leading_int(threshold)
        if parsed is None:
            raise ConfigError(f"default_min_threshold must be an integer, got {threshold!r}")
        threshold = parsed
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise ConfigError(f"default_min_threshold must be an integer, got {threshold!r}")

    check_name = str(data.get("check_name") or DEFAULT_CHECK_NAME)

    logger.info("Loaded configuration from %s", config_path)
    return PrcovConfig(
        default_min_threshold=_validate_threshold(threshold, "default_min_threshold"),
        check_name=check_name,
        path_prefix=str(data.get("path_prefix") or ""),
    )
