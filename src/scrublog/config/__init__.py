"""Settings module for scrublog.

This module provides settings loading, validation, and schema definitions:
the environment classification, execution context, and per-environment
policy table that decide how loggers behave.

Usage:
    from scrublog.config import get_settings, load_settings

    settings = get_settings()  # Cached, from env vars and optional YAML
    settings = load_settings("/path/to/scrublog.yaml")  # Explicit path
"""

from scrublog.config.loader import (
    ConfigError,
    ConfigNotFoundError,
    ConfigValidationError,
    EnvironmentVariableError,
    discover_config_path,
    get_settings,
    load_settings,
    reset_settings,
)
from scrublog.config.schema import (
    DEFAULT_POLICIES,
    Environment,
    EnvironmentPolicy,
    ExecutionContext,
    LogLevel,
    LogSettings,
)

__all__ = [
    "DEFAULT_POLICIES",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    "Environment",
    "EnvironmentPolicy",
    "EnvironmentVariableError",
    "ExecutionContext",
    "LogLevel",
    "LogSettings",
    "discover_config_path",
    "get_settings",
    "load_settings",
    "reset_settings",
]
