"""Pydantic schema models for logging settings.

This module defines:
- LogLevel: Severity ranks shared by both backends
- Environment / ExecutionContext: The two inputs of backend selection
- EnvironmentPolicy: One row of the per-environment policy table
- LogSettings: Top-level process-wide settings
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


class LogLevel(IntEnum):
    """Severity levels, ordered by rank.

    TRACE and FATAL bracket the four console levels.
    """

    TRACE = 10
    DEBUG = 20
    INFO = 30
    WARN = 40
    ERROR = 50
    FATAL = 60

    @property
    def label(self) -> str:
        """Lowercase name used in structured records."""
        return self.name.lower()

    @classmethod
    def parse(cls, value: Any) -> LogLevel:
        """Parse a level from a name ('info', 'WARNING') or a rank."""
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "WARNING":
                name = "WARN"
            if name == "CRITICAL":
                name = "FATAL"
            try:
                return cls[name]
            except KeyError:
                msg = f"Unknown log level: {value!r}"
                raise ValueError(msg) from None
        return cls(value)


class Environment(str, Enum):
    """Deployment environment of the process."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"


class ExecutionContext(str, Enum):
    """Where the code runs: in a server process or on a client."""

    SERVER = "server"
    CLIENT = "client"


class EnvironmentPolicy(BaseModel):
    """Logging behaviour for one environment.

    Attributes:
        enabled: Whether anything is logged at all
        min_level: Lowest level that is emitted
        colorize: Whether console output uses ANSI colors
        use_structured: Whether server-side loggers use the structured backend
        server_only: Whether client-side loggers are silenced
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = True
    min_level: LogLevel = LogLevel.INFO
    colorize: bool = False
    use_structured: bool = False
    server_only: bool = False

    @field_validator("min_level", mode="before")
    @classmethod
    def parse_min_level(cls, v: Any) -> LogLevel:
        """Accept level names as well as ranks."""
        return LogLevel.parse(v)


DEFAULT_POLICIES: dict[Environment, EnvironmentPolicy] = {
    Environment.DEVELOPMENT: EnvironmentPolicy(
        enabled=True,
        min_level=LogLevel.DEBUG,
        colorize=True,
        use_structured=False,
    ),
    Environment.PRODUCTION: EnvironmentPolicy(
        enabled=True,
        min_level=LogLevel.INFO,
        colorize=False,
        use_structured=True,
        server_only=True,
    ),
    Environment.TEST: EnvironmentPolicy(
        enabled=False,
        min_level=LogLevel.ERROR,
        colorize=False,
        use_structured=False,
    ),
}


class LogSettings(BaseModel):
    """Process-wide logging settings.

    Attributes:
        environment: Current environment (default: development)
        context: Server or client execution context (default: server)
        app_name: Name stamped on structured records
        region: Host identifier folded into structured records
        version: Build/commit identifier folded into structured records
        policies: Per-environment overrides merged over DEFAULT_POLICIES
        install_signal_handlers: Whether backends flush on SIGINT/SIGTERM
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    environment: Environment = Environment.DEVELOPMENT
    context: ExecutionContext = ExecutionContext.SERVER
    app_name: Annotated[str, Field(min_length=1, max_length=100)] = "scrublog"
    region: str = "unknown"
    version: str = "unknown"
    policies: dict[Environment, EnvironmentPolicy] = Field(
        default_factory=lambda: dict(DEFAULT_POLICIES)
    )
    install_signal_handlers: bool = True

    @field_validator("environment", mode="before")
    @classmethod
    def normalize_environment(cls, v: Any) -> Any:
        """Fall back to development for unknown environment names."""
        if isinstance(v, str):
            name = v.strip().lower()
            if name not in {e.value for e in Environment}:
                return Environment.DEVELOPMENT
            return name
        return v

    @model_validator(mode="before")
    @classmethod
    def merge_policy_overrides(cls, data: Any) -> Any:
        """Merge partial policy rows over the defaults for their environment."""
        if not isinstance(data, dict) or not isinstance(data.get("policies"), dict):
            return data

        merged: dict[str, Any] = {env.value: policy for env, policy in DEFAULT_POLICIES.items()}
        for key, override in data["policies"].items():
            env_name = key.value if isinstance(key, Environment) else str(key).lower()
            base = DEFAULT_POLICIES.get(Environment(env_name)) if env_name in merged else None
            if base is not None and isinstance(override, dict):
                merged[env_name] = {**base.model_dump(), **override}
            else:
                merged[env_name] = override
        return {**data, "policies": merged}

    @model_validator(mode="after")
    def fill_missing_policies(self) -> LogSettings:
        """Ensure every environment has a policy row."""
        for env, policy in DEFAULT_POLICIES.items():
            self.policies.setdefault(env, policy)
        return self

    @property
    def policy(self) -> EnvironmentPolicy:
        """Policy row for the active environment."""
        return self.policies[self.environment]

    @property
    def is_server(self) -> bool:
        return self.context is ExecutionContext.SERVER
