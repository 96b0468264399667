"""Shared pytest fixtures for scrublog tests.

This module provides common fixtures for:
- Isolated environment variables and settings cache
- Settings and logger factories writing to in-memory streams
- Shutdown registry isolation
- Mock time (via freezegun)
"""

from __future__ import annotations

import io
import json
import signal
import weakref
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pytest

from scrublog.config import LogSettings, reset_settings
from scrublog.logging import ConsoleBackend, Logger, StructuredBackend, shutdown

if TYPE_CHECKING:
    from collections.abc import Callable, Generator
    from pathlib import Path


SETTINGS_ENV_VARS = (
    "SCRUBLOG_ENV",
    "APP_ENV",
    "SCRUBLOG_CONTEXT",
    "SCRUBLOG_CONFIG",
    "DEPLOY_REGION",
    "HOSTNAME",
    "BUILD_SHA",
    "GIT_COMMIT_SHA",
)


# ============================================================================
# Isolation Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Clear settings env vars, point config discovery at an empty dir."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def isolated_shutdown_registry(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Give each test a fresh shutdown registry and restore signal handlers."""
    saved = {signum: signal.getsignal(signum) for signum in shutdown.SHUTDOWN_SIGNALS}
    monkeypatch.setattr(shutdown, "_live", weakref.WeakSet())
    monkeypatch.setattr(shutdown, "_signals_installed", False)
    # Keep the test process from accumulating atexit hooks
    monkeypatch.setattr(shutdown, "_atexit_installed", True)
    yield
    for signum, handler in saved.items():
        signal.signal(signum, handler)


# ============================================================================
# Time Fixtures
# ============================================================================


@pytest.fixture
def frozen_time() -> datetime:
    """Return a fixed datetime for deterministic tests.

    Use with freezegun's freeze_time decorator:

        @freeze_time("2026-01-10T15:30:00Z")
        def test_something(frozen_time):
            assert datetime.now(UTC) == frozen_time
    """
    return datetime(2026, 1, 10, 15, 30, 0, tzinfo=UTC)


# ============================================================================
# Settings and Logger Fixtures
# ============================================================================


@pytest.fixture
def make_settings() -> Callable[..., LogSettings]:
    """Factory fixture building LogSettings without signal handlers.

    Args:
        environment: Environment name (default: development)
        context: 'server' or 'client' (default: server)
        **overrides: Any other LogSettings field
    """

    def _make(
        environment: str = "development",
        context: str = "server",
        **overrides: Any,
    ) -> LogSettings:
        data: dict[str, Any] = {
            "environment": environment,
            "context": context,
            "region": "test-host",
            "version": "build-42",
            "install_signal_handlers": False,
            **overrides,
        }
        return LogSettings.model_validate(data)

    return _make


@pytest.fixture
def stdout_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def stderr_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console_logger(
    make_settings: Callable[..., LogSettings],
    stdout_stream: io.StringIO,
    stderr_stream: io.StringIO,
) -> Callable[..., Logger]:
    """Factory fixture for loggers on a console backend with captured streams."""

    def _make(
        module: str = "TestModule",
        default_context: dict[str, Any] | None = None,
        **settings_kwargs: Any,
    ) -> Logger:
        settings = make_settings(**settings_kwargs)
        backend = ConsoleBackend(
            colorize=settings.policy.colorize,
            stdout=stdout_stream,
            stderr=stderr_stream,
            install_signal_handlers=False,
        )
        return Logger(module, default_context, settings=settings, backend=backend)

    return _make


@pytest.fixture
def structured_logger(
    make_settings: Callable[..., LogSettings],
    stdout_stream: io.StringIO,
) -> Callable[..., Logger]:
    """Factory fixture for loggers on a structured backend with a captured stream.

    Defaults to the production server environment, which renders JSON.
    """

    def _make(
        module: str = "TestModule",
        default_context: dict[str, Any] | None = None,
        **settings_kwargs: Any,
    ) -> Logger:
        settings_kwargs.setdefault("environment", "production")
        settings = make_settings(**settings_kwargs)
        backend = StructuredBackend(settings, stream=stdout_stream)
        return Logger(module, default_context, settings=settings, backend=backend)

    return _make


@pytest.fixture
def read_records(stdout_stream: io.StringIO) -> Callable[[], list[dict[str, Any]]]:
    """Parse every JSON line written to the captured stdout stream."""

    def _read() -> list[dict[str, Any]]:
        return [json.loads(line) for line in stdout_stream.getvalue().splitlines() if line]

    return _read
