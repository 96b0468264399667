"""Tests for settings loading and the environment policy table."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from scrublog.config import (
    DEFAULT_POLICIES,
    ConfigError,
    ConfigNotFoundError,
    ConfigValidationError,
    Environment,
    EnvironmentVariableError,
    ExecutionContext,
    LogLevel,
    LogSettings,
    discover_config_path,
    get_settings,
    load_settings,
    reset_settings,
)
from scrublog.config.loader import expand_env_vars


def write_yaml(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        yaml.safe_dump(data, f)
    return path


class TestLogLevel:
    """Tests for LogLevel."""

    def test_rank_order(self):
        assert (
            LogLevel.TRACE
            < LogLevel.DEBUG
            < LogLevel.INFO
            < LogLevel.WARN
            < LogLevel.ERROR
            < LogLevel.FATAL
        )

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("info", LogLevel.INFO),
            ("WARNING", LogLevel.WARN),
            ("warn", LogLevel.WARN),
            ("critical", LogLevel.FATAL),
            (20, LogLevel.DEBUG),
            (LogLevel.TRACE, LogLevel.TRACE),
        ],
    )
    def test_parse(self, value, expected):
        assert LogLevel.parse(value) is expected

    @pytest.mark.parametrize("value", ["verbose", 31])
    def test_parse_unknown(self, value):
        with pytest.raises(ValueError):
            LogLevel.parse(value)

    def test_label(self):
        assert LogLevel.WARN.label == "warn"


class TestPolicyTable:
    """Tests for the default per-environment policies."""

    def test_development(self):
        policy = DEFAULT_POLICIES[Environment.DEVELOPMENT]

        assert policy.enabled is True
        assert policy.min_level is LogLevel.DEBUG
        assert policy.colorize is True
        assert policy.use_structured is False

    def test_production(self):
        policy = DEFAULT_POLICIES[Environment.PRODUCTION]

        assert policy.enabled is True
        assert policy.min_level is LogLevel.INFO
        assert policy.colorize is False
        assert policy.use_structured is True
        assert policy.server_only is True

    def test_test(self):
        policy = DEFAULT_POLICIES[Environment.TEST]

        assert policy.enabled is False
        assert policy.min_level is LogLevel.ERROR


class TestLogSettings:
    """Tests for the LogSettings model."""

    def test_defaults(self):
        settings = LogSettings()

        assert settings.environment is Environment.DEVELOPMENT
        assert settings.context is ExecutionContext.SERVER
        assert settings.is_server is True
        assert settings.policy == DEFAULT_POLICIES[Environment.DEVELOPMENT]

    def test_unknown_environment_falls_back_to_development(self):
        assert LogSettings(environment="staging").environment is Environment.DEVELOPMENT

    def test_environment_name_normalized(self):
        assert LogSettings(environment=" Production ").environment is Environment.PRODUCTION

    def test_partial_policy_override_keeps_defaults(self):
        settings = LogSettings.model_validate(
            {"environment": "production", "policies": {"production": {"min_level": "debug"}}}
        )

        assert settings.policy.min_level is LogLevel.DEBUG
        assert settings.policy.use_structured is True
        assert settings.policy.server_only is True
        assert settings.policies[Environment.TEST] == DEFAULT_POLICIES[Environment.TEST]

    def test_settings_are_frozen(self):
        settings = LogSettings()

        with pytest.raises(ValueError):
            settings.environment = Environment.TEST  # type: ignore[misc]


class TestLoadSettings:
    """Tests for load_settings() and discovery."""

    def test_no_file_uses_defaults(self):
        settings = load_settings()

        assert settings.environment is Environment.DEVELOPMENT
        assert settings.app_name == "scrublog"

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("SCRUBLOG_ENV", "production")
        monkeypatch.setenv("SCRUBLOG_CONTEXT", "client")
        monkeypatch.setenv("DEPLOY_REGION", "eu-west-1")
        monkeypatch.setenv("BUILD_SHA", "deadbeef")

        settings = load_settings()

        assert settings.environment is Environment.PRODUCTION
        assert settings.context is ExecutionContext.CLIENT
        assert settings.region == "eu-west-1"
        assert settings.version == "deadbeef"

    def test_app_env_fallback(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "test")

        assert load_settings().environment is Environment.TEST

    def test_hostname_fallback(self, monkeypatch):
        monkeypatch.setenv("HOSTNAME", "web-7")
        monkeypatch.setenv("GIT_COMMIT_SHA", "cafe")

        settings = load_settings()

        assert settings.region == "web-7"
        assert settings.version == "cafe"

    def test_cwd_file(self, tmp_path):
        write_yaml(tmp_path / "scrublog.yaml", {"app_name": "billing-api"})

        assert load_settings().app_name == "billing-api"

    def test_xdg_file(self, tmp_path):
        write_yaml(tmp_path / "xdg" / "scrublog" / "config.yaml", {"app_name": "from-xdg"})

        assert load_settings().app_name == "from-xdg"

    def test_env_var_overrides_file_environment(self, tmp_path, monkeypatch):
        write_yaml(tmp_path / "scrublog.yaml", {"environment": "production"})
        monkeypatch.setenv("SCRUBLOG_ENV", "test")

        assert load_settings().environment is Environment.TEST

    def test_file_region_wins_over_host_name(self, tmp_path, monkeypatch):
        write_yaml(tmp_path / "scrublog.yaml", {"region": "us-east-1"})
        monkeypatch.setenv("HOSTNAME", "web-7")

        assert load_settings().region == "us-east-1"

    def test_expands_env_vars(self, tmp_path, monkeypatch):
        write_yaml(tmp_path / "scrublog.yaml", {"app_name": "${SERVICE_NAME}"})
        monkeypatch.setenv("SERVICE_NAME", "orders")

        assert load_settings().app_name == "orders"

    def test_missing_env_var(self, tmp_path):
        write_yaml(tmp_path / "scrublog.yaml", {"app_name": "${UNSET_SCRUBLOG_VAR}"})

        with pytest.raises(EnvironmentVariableError) as exc_info:
            load_settings()

        assert exc_info.value.var_name == "UNSET_SCRUBLOG_VAR"
        assert exc_info.value.path.name == "scrublog.yaml"

    def test_explicit_path(self, tmp_path):
        path = write_yaml(tmp_path / "custom.yaml", {"app_name": "explicit"})

        assert load_settings(path).app_name == "explicit"

    def test_explicit_path_missing(self, tmp_path):
        with pytest.raises(ConfigNotFoundError):
            load_settings(tmp_path / "missing.yaml")

    def test_env_config_path_missing(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SCRUBLOG_CONFIG", str(tmp_path / "missing.yaml"))

        with pytest.raises(ConfigNotFoundError):
            discover_config_path()

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "scrublog.yaml").write_text("app_name: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings()

    def test_non_mapping_yaml(self, tmp_path):
        write_yaml(tmp_path / "scrublog.yaml", ["a", "b"])

        with pytest.raises(ConfigError, match="mapping"):
            load_settings()

    def test_empty_file(self, tmp_path):
        (tmp_path / "scrublog.yaml").write_text("", encoding="utf-8")

        assert load_settings().app_name == "scrublog"

    def test_validation_error(self, tmp_path):
        write_yaml(tmp_path / "scrublog.yaml", {"unknown_field": 1})

        with pytest.raises(ConfigValidationError) as exc_info:
            load_settings()

        assert exc_info.value.validation_errors
        assert "unknown_field" in str(exc_info.value)

    def test_unknown_policy_environment(self, tmp_path):
        write_yaml(tmp_path / "scrublog.yaml", {"policies": {"staging": {"enabled": False}}})

        with pytest.raises(ConfigValidationError):
            load_settings()


class TestSettingsCache:
    """Tests for the process-wide settings cache."""

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_reset_reloads(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("SCRUBLOG_ENV", "production")

        assert get_settings() is first

        reset_settings()

        assert get_settings().environment is Environment.PRODUCTION


class TestExpandEnvVars:
    """Tests for ${VAR} expansion in nested settings values."""

    def test_nested_values(self, tmp_path, monkeypatch):
        write_yaml(
            tmp_path / "scrublog.yaml",
            {"environment": "production", "policies": {"production": {"min_level": "${LOG_LEVEL}"}}},
        )
        monkeypatch.setenv("LOG_LEVEL", "warn")

        assert load_settings().policy.min_level is LogLevel.WARN

    def test_lists_and_non_strings(self, monkeypatch):
        monkeypatch.setenv("REGION", "eu")

        assert expand_env_vars({"a": ["${REGION}", 1], "b": None}) == {"a": ["eu", 1], "b": None}
