"""Settings loading from environment variables and an optional YAML file.

This module provides:
- Environment variable expansion for file values (${VAR} syntax)
- YAML settings file loading with Pydantic validation
- Settings file discovery (explicit path, $SCRUBLOG_CONFIG, ./scrublog.yaml,
  XDG config path)
- A cached process-wide LogSettings instance

A missing settings file is not an error: every value has a default, and the
environment name, execution context and deployment metadata come from
environment variables.
"""

from __future__ import annotations

import functools
import os
import re
import socket
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from scrublog.config.schema import LogSettings
from scrublog.paths import get_default_config_path

# Environment variables read at settings load time
ENV_NAME_VARS = ("SCRUBLOG_ENV", "APP_ENV")
CONTEXT_VAR = "SCRUBLOG_CONTEXT"
CONFIG_PATH_VAR = "SCRUBLOG_CONFIG"
REGION_VARS = ("DEPLOY_REGION", "HOSTNAME")
VERSION_VARS = ("BUILD_SHA", "GIT_COMMIT_SHA")


class ConfigError(Exception):
    """Raised when settings loading or validation fails."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        """Initialize ConfigError with message and optional path.

        Args:
            message: Error description
            path: Path to the settings file that caused the error
        """
        self.path = path
        super().__init__(message)


class ConfigNotFoundError(ConfigError):
    """Raised when an explicitly requested settings file does not exist."""


class ConfigValidationError(ConfigError):
    """Raised when settings validation fails."""

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        validation_errors: list[dict[str, Any]] | None = None,
    ) -> None:
        """Initialize ConfigValidationError.

        Args:
            message: Error description
            path: Path to the settings file
            validation_errors: List of Pydantic validation error dicts
        """
        self.validation_errors = validation_errors or []
        super().__init__(message, path)


class EnvironmentVariableError(ConfigError):
    """Raised when a referenced environment variable is not set."""

    def __init__(self, var_name: str, path: Path | None = None) -> None:
        self.var_name = var_name
        message = (
            f"Environment variable '{var_name}' is not set. "
            f"Set it or update your settings file to use a different value."
        )
        super().__init__(message, path)


# Pattern for environment variable references: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")


def expand_env_vars(value: Any) -> Any:
    """Expand environment variable references in a value.

    Args:
        value: The value to expand. Can be a string, list, or dict.

    Returns:
        The value with environment variables expanded.

    Raises:
        EnvironmentVariableError: If a referenced env var is not set.
    """
    if isinstance(value, str):
        return _expand_string(value)
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def _expand_string(s: str) -> str:
    def replace_match(match: re.Match[str]) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise EnvironmentVariableError(var_name)
        return value

    return ENV_VAR_PATTERN.sub(replace_match, s)


def discover_config_path(explicit_path: str | Path | None = None) -> Path | None:
    """Discover the settings file path using priority order.

    Discovery order:
    1. explicit_path
    2. $SCRUBLOG_CONFIG environment variable
    3. ./scrublog.yaml (current directory)
    4. XDG config path ($XDG_CONFIG_HOME/scrublog/config.yaml)

    Args:
        explicit_path: Optional explicit path

    Returns:
        Path to the settings file, or None if no file exists

    Raises:
        ConfigNotFoundError: If explicit_path or $SCRUBLOG_CONFIG points to a
            file that does not exist
    """
    requested = explicit_path or os.environ.get(CONFIG_PATH_VAR)
    if requested:
        path = Path(requested).expanduser().resolve()
        if path.exists():
            return path
        msg = f"Settings file not found: {path}"
        raise ConfigNotFoundError(msg, path)

    cwd_path = Path.cwd() / "scrublog.yaml"
    if cwd_path.exists():
        return cwd_path

    default_path = get_default_config_path()
    if default_path.exists():
        return default_path

    return None


def load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Cannot read settings file: {e}"
        raise ConfigError(msg, path) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML syntax: {e}"
        raise ConfigError(msg, path) from e

    if data is None:
        # Empty file
        return {}

    if not isinstance(data, dict):
        msg = "Settings file must contain a YAML mapping (dictionary), not a list or scalar"
        raise ConfigError(msg, path)

    return data


def _first_env(names: tuple[str, ...]) -> str | None:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def environment_overrides() -> dict[str, Any]:
    """Collect settings values supplied through environment variables."""
    overrides: dict[str, Any] = {}

    env_name = _first_env(ENV_NAME_VARS)
    if env_name:
        overrides["environment"] = env_name

    context = os.environ.get(CONTEXT_VAR)
    if context:
        overrides["context"] = context.strip().lower()

    overrides["region"] = _first_env(REGION_VARS) or socket.gethostname() or "unknown"

    version = _first_env(VERSION_VARS)
    if version:
        overrides["version"] = version

    return overrides


def load_settings(path: str | Path | None = None) -> LogSettings:
    """Load and validate logging settings.

    This function:
    1. Discovers the settings file, if any
    2. Parses the YAML content and expands ${VAR} references
    3. Applies environment variable overrides
    4. Validates against the LogSettings schema

    Args:
        path: Optional explicit path to a settings file

    Returns:
        Validated LogSettings object

    Raises:
        ConfigNotFoundError: If an explicitly requested file is missing
        ConfigError: If the file cannot be read or parsed
        EnvironmentVariableError: If a referenced env var is not set
        ConfigValidationError: If the settings fail schema validation
    """
    config_path = discover_config_path(path)

    raw: dict[str, Any] = {}
    if config_path is not None:
        raw = load_yaml(config_path)
        try:
            raw = expand_env_vars(raw)
        except EnvironmentVariableError as e:
            e.path = config_path
            raise

    overrides = environment_overrides()
    if "region" in raw:
        # An explicit region in the file wins over the detected host name
        overrides.pop("region")
    raw = {**raw, **overrides}

    try:
        return LogSettings.model_validate(raw)
    except ValidationError as e:
        errors = e.errors()
        error_msgs: list[str] = []
        for err in errors:
            loc = ".".join(str(loc) for loc in err["loc"])
            error_msgs.append(f"  - {loc}: {err['msg']}")

        message = (
            f"Settings validation failed ({len(errors)} error(s)):\n"
            + "\n".join(error_msgs)
        )
        validation_error_dicts = [dict(err) for err in errors]
        raise ConfigValidationError(
            message, path=config_path, validation_errors=validation_error_dicts
        ) from e


@functools.lru_cache(maxsize=1)
def get_settings() -> LogSettings:
    """Return the cached process-wide settings, loading them on first use."""
    return load_settings()


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    get_settings.cache_clear()
