"""Per-module logger façade.

A Logger picks its backend once, at construction:
- Server-side code in an environment whose policy sets use_structured gets
  the structured (structlog/JSON) backend
- Everything else gets the console backend

Every call merges the logger's default context with the call's keyword
context, sanitizes the result and any extra positional arguments, and hands
them to the backend. Whether a call is emitted at all is decided by the
active environment policy.

Usage:
    from scrublog import create_logger

    logger = create_logger("Billing")
    logger.info("Charged card", amount=10, customer_id="c_123")

    stop = logger.start_timer("invoice_render")
    ...
    stop()
"""

from __future__ import annotations

import sys
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import psutil

from scrublog.config import Environment, LogLevel, get_settings
from scrublog.logging.backends import ConsoleBackend, StructuredBackend
from scrublog.sanitize import redact, sanitize_log_args, sanitize_log_data

if TYPE_CHECKING:
    from collections.abc import Callable

    from scrublog.config import LogSettings
    from scrublog.logging.backends import Backend

QUERY_PREVIEW_LENGTH = 200


def select_backend(settings: LogSettings, *, structured: bool | None = None) -> Backend:
    """Choose the backend for a new logger.

    Args:
        settings: Active settings
        structured: Force (True) or forbid (False) the structured backend.
            None applies the environment policy.

    Returns:
        A new backend instance
    """
    policy = settings.policy
    if structured is None:
        structured = settings.is_server and policy.use_structured

    if structured:
        return StructuredBackend(settings)
    return ConsoleBackend(
        colorize=policy.colorize,
        pretty=settings.environment is Environment.DEVELOPMENT,
        install_signal_handlers=settings.install_signal_handlers,
    )


def _resident_memory() -> int:
    return psutil.Process().memory_info().rss


class Logger:
    """Logger bound to one module name and one backend."""

    def __init__(
        self,
        module: str,
        default_context: Mapping[str, Any] | None = None,
        *,
        settings: LogSettings | None = None,
        backend: Backend | None = None,
        structured: bool | None = None,
    ) -> None:
        """Create a logger for a module.

        Args:
            module: Module name shown on every line/record (e.g., 'Billing')
            default_context: Context merged into every call
            settings: Settings to use (defaults to the process-wide settings)
            backend: Backend to use instead of selecting one
            structured: Force or forbid the structured backend
        """
        self._module = module
        self._settings = settings if settings is not None else get_settings()
        self._default_context: dict[str, Any] = {"module": module, **(default_context or {})}
        self._backend = (
            backend if backend is not None else select_backend(self._settings, structured=structured)
        )

    def __repr__(self) -> str:
        return f"Logger(module={self._module!r}, backend={type(self._backend).__name__})"

    @property
    def module(self) -> str:
        return self._module

    @property
    def default_context(self) -> dict[str, Any]:
        """Copy of the context merged into every call."""
        return dict(self._default_context)

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def settings(self) -> LogSettings:
        return self._settings

    @property
    def is_structured(self) -> bool:
        return isinstance(self._backend, StructuredBackend)

    def should_log(self, level: LogLevel) -> bool:
        """Return whether a call at this level would be emitted.

        Production policies only log server-side; client-side loggers are
        silent there regardless of level.
        """
        policy = self._settings.policy
        if not policy.enabled:
            return False
        if policy.server_only and not self._settings.is_server:
            return False
        return level >= policy.min_level

    def _log(
        self,
        level: LogLevel,
        message: str,
        args: tuple[Any, ...],
        context: Mapping[str, Any],
    ) -> None:
        if not self.should_log(level):
            return

        include_stack = self._settings.environment is Environment.DEVELOPMENT
        fields = sanitize_log_data(
            {**self._default_context, **context}, include_stack=include_stack
        )
        sanitized_args = sanitize_log_args(args, include_stack=include_stack) if args else []
        self._backend.emit(level, self._module, redact(message), fields, sanitized_args)

    def trace(self, message: str, /, *args: Any, **context: Any) -> None:
        """Log a trace message (most verbose)."""
        self._log(LogLevel.TRACE, message, args, context)

    def debug(self, message: str, /, *args: Any, **context: Any) -> None:
        """Log a debug message.

        Use for detailed information useful while developing: variable
        values, function entry/exit, request/response payloads.
        """
        self._log(LogLevel.DEBUG, message, args, context)

    def info(self, message: str, /, *args: Any, **context: Any) -> None:
        """Log an info message.

        Use for confirmation that things work as expected: startup,
        configuration, successful operations.
        """
        self._log(LogLevel.INFO, message, args, context)

    def warn(self, message: str, /, *args: Any, **context: Any) -> None:
        """Log a warning message.

        Use for unexpected situations the application recovers from.
        """
        self._log(LogLevel.WARN, message, args, context)

    warning = warn

    def error(self, message: str, /, *args: Any, **context: Any) -> None:
        """Log an error message.

        Use for failures that still allow the application to continue.
        """
        self._log(LogLevel.ERROR, message, args, context)

    def exception(self, message: str, /, *args: Any, **context: Any) -> None:
        """Log an error message with the exception currently being handled."""
        exc = sys.exc_info()[1]
        if exc is not None:
            context.setdefault("error", exc)
        self._log(LogLevel.ERROR, message, args, context)

    def fatal(self, message: str, /, *args: Any, **context: Any) -> None:
        """Log a fatal message, for errors that may abort the application."""
        self._log(LogLevel.FATAL, message, args, context)

    def log_with_level(
        self,
        level: LogLevel | str | int,
        message: str,
        /,
        *args: Any,
        **context: Any,
    ) -> None:
        """Log at an arbitrary level. Unknown levels are logged as INFO."""
        try:
            resolved = LogLevel.parse(level)
        except ValueError:
            resolved = LogLevel.INFO
        self._log(resolved, message, args, context)

    def child(self, context: Mapping[str, Any] | None = None, /, **extra: Any) -> Logger:
        """Create a logger for the same module with additional default context.

        The child shares the backend but not the context: later changes on
        either side do not affect the other.

        Args:
            context: Context mapping to merge over this logger's default context
            **extra: More context, merged last

        Returns:
            A new Logger
        """
        merged = {**self._default_context, **(context or {}), **extra}
        return Logger(
            self._module,
            merged,
            settings=self._settings,
            backend=self._backend,
        )

    def start_timer(self, operation: str, /, **context: Any) -> Callable[[], None]:
        """Start timing an operation.

        Returns a function that logs the elapsed time and resident-memory
        change at INFO level each time it is called, measured from this call.

        Args:
            operation: Operation name
            **context: Context added to the timing record

        Returns:
            Function that logs the measurement
        """
        start = time.perf_counter()
        start_memory = _resident_memory()

        def stop() -> None:
            duration_ms = (time.perf_counter() - start) * 1000
            memory_mb = (_resident_memory() - start_memory) / 1024 / 1024
            self.info(
                f"Operation completed: {operation}",
                **{
                    **context,
                    "operation": operation,
                    "performance": {
                        "duration_ms": round(duration_ms, 2),
                        "memory_mb": round(memory_mb, 2),
                    },
                },
            )

        return stop

    def log_request(
        self,
        method: str,
        url: str,
        *,
        user_agent: str | None = None,
        ip: str | None = None,
        **context: Any,
    ) -> None:
        """Log an incoming HTTP request."""
        fields = {"method": method, "url": url, "user_agent": user_agent, "ip": ip}
        self.info("HTTP Request", **{**context, **_present(fields)})

    def log_response(
        self,
        status_code: int,
        content_length: int | None = None,
        **context: Any,
    ) -> None:
        """Log an outgoing HTTP response."""
        fields = {"status_code": status_code, "content_length": content_length}
        self.info("HTTP Response", **{**context, **_present(fields)})

    def log_query(
        self,
        query: str,
        duration_ms: float | None = None,
        **context: Any,
    ) -> None:
        """Log a database query at DEBUG level, truncating long statements."""
        if len(query) > QUERY_PREVIEW_LENGTH:
            query = f"{query[:QUERY_PREVIEW_LENGTH]}..."
        fields: dict[str, Any] = {"query": query}
        if duration_ms:
            fields["performance"] = {"duration_ms": duration_ms}
        self.debug("Database Query", **{**context, **fields})

    def log_external_call(
        self,
        url: str,
        method: str,
        status_code: int | None = None,
        duration_ms: float | None = None,
        **context: Any,
    ) -> None:
        """Log a call to an external API."""
        fields: dict[str, Any] = {"url": url, "method": method, "status_code": status_code}
        if duration_ms:
            fields["performance"] = {"duration_ms": duration_ms}
        self.info("External API Call", **{**context, **_present(fields)})

    def flush(self) -> None:
        """Flush any buffered output of the backend."""
        self._backend.flush()


def _present(fields: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


def create_logger(module: str) -> Logger:
    """Create a logger for a module, choosing the backend from the environment.

    Args:
        module: The name of the module (e.g., 'OpenAIProvider')

    Returns:
        Logger instance
    """
    return Logger(module)


def create_structured_logger(
    module: str,
    default_context: Mapping[str, Any] | None = None,
) -> Logger:
    """Create a logger that always uses the structured backend."""
    return Logger(module, default_context, structured=True)


def create_request_logger(request_id: str, module: str | None = None) -> Logger:
    """Create a structured logger pre-seeded with a request_id."""
    return create_structured_logger(module or "request", {"request_id": request_id})


def create_user_logger(user_id: str, module: str | None = None) -> Logger:
    """Create a structured logger pre-seeded with a user_id."""
    return create_structured_logger(module or "user", {"user_id": user_id})


def create_workflow_logger(workflow_id: str, module: str | None = None) -> Logger:
    """Create a structured logger pre-seeded with a workflow_id."""
    return create_structured_logger(module or "workflow", {"workflow_id": workflow_id})
