"""Output backends for the logger façade.

Two backends implement the same emit/flush capability:
- ConsoleBackend: timestamped text lines, optionally colorized, errors to stderr
- StructuredBackend: one structlog-rendered record per call (JSON outside
  development) tagged with process-wide static fields

Backends receive values that have already been sanitized.
"""

from __future__ import annotations

import json
import os
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

import structlog

from scrublog.config import Environment, LogLevel
from scrublog.logging import shutdown

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from typing import TextIO

    from scrublog.config import LogSettings

UNSERIALIZABLE = "[Circular or Non-Serializable Object]"

# Keys owned by structlog or by the record itself; static tags are added per backend
_RESERVED_FIELDS = frozenset({"event", "method_name", "msg", "level", "time", "additional_data"})


class Backend(Protocol):
    """Capability shared by all backends."""

    def emit(
        self,
        level: LogLevel,
        module: str,
        message: str,
        fields: Mapping[str, Any],
        args: Sequence[Any],
    ) -> None: ...

    def flush(self) -> None: ...


def _isatty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class _CurrentStdout:
    """Writes to whatever sys.stdout is at the time of the call."""

    def write(self, text: str) -> int:
        return sys.stdout.write(text)

    def flush(self) -> None:
        sys.stdout.flush()


def _timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ConsoleBackend:
    """Human-readable console output.

    Lines look like:
        [2026-01-10T15:30:00.000Z] [INFO] [Billing] Charged card {"amount": 10}
    """

    # ANSI color codes
    LEVEL_COLORS: ClassVar[dict[LogLevel, str]] = {
        LogLevel.TRACE: "\033[35m",  # Magenta
        LogLevel.DEBUG: "\033[34m",  # Blue
        LogLevel.INFO: "\033[32m",  # Green
        LogLevel.WARN: "\033[33m",  # Yellow
        LogLevel.ERROR: "\033[31m",  # Red
        LogLevel.FATAL: "\033[1;31m",  # Bold red
    }
    MODULE_COLOR = "\033[36m"  # Cyan
    TIMESTAMP_COLOR = "\033[90m"  # Gray
    RESET = "\033[0m"

    def __init__(
        self,
        *,
        colorize: bool = False,
        pretty: bool = False,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        install_signal_handlers: bool = True,
    ) -> None:
        """Initialize console backend.

        Args:
            colorize: Whether to use ANSI colors (only applied on a TTY).
            pretty: Whether structured arguments are rendered as indented JSON.
            stdout: Stream for levels below ERROR (defaults to sys.stdout).
            stderr: Stream for ERROR and above (defaults to sys.stderr).
            install_signal_handlers: Whether shutdown flushing may hook signals.
        """
        self._colorize = colorize
        self._pretty = pretty
        self._stdout = stdout
        self._stderr = stderr

        shutdown.register(self, install_signal_handlers=install_signal_handlers)

    @property
    def colorize(self) -> bool:
        return self._colorize

    def _stream_for(self, level: LogLevel) -> TextIO:
        # Resolved per call so redirected sys streams are honoured
        if level >= LogLevel.ERROR:
            return self._stderr or sys.stderr
        return self._stdout or sys.stdout

    def emit(
        self,
        level: LogLevel,
        module: str,
        message: str,
        fields: Mapping[str, Any],
        args: Sequence[Any],
    ) -> None:
        stream = self._stream_for(level)
        parts = [self._prefix(level, module, colorize=self._colorize and _isatty(stream))]
        parts.append(str(message))
        parts.extend(self.format_value(arg) for arg in args)

        context = {k: v for k, v in fields.items() if k != "module"}
        if context:
            parts.append(self.format_value(context))

        print(" ".join(parts), file=stream)

    def _prefix(self, level: LogLevel, module: str, *, colorize: bool) -> str:
        timestamp = f"[{_timestamp()}]"
        level_text = f"[{level.name}]"
        module_text = f"[{module}]"
        if colorize:
            timestamp = f"{self.TIMESTAMP_COLOR}{timestamp}{self.RESET}"
            level_text = f"{self.LEVEL_COLORS[level]}{level_text}{self.RESET}"
            module_text = f"{self.MODULE_COLOR}{module_text}{self.RESET}"
        return f"{timestamp} {level_text} {module_text}"

    def format_value(self, value: Any) -> str:
        """Render one argument for a console line.

        Containers become JSON; anything else uses str().
        """
        if isinstance(value, (dict, list, tuple)):
            try:
                return json.dumps(value, indent=2 if self._pretty else None, default=str)
            except (TypeError, ValueError):
                return UNSERIALIZABLE
        return str(value)

    def flush(self) -> None:
        for stream in (self._stdout or sys.stdout, self._stderr or sys.stderr):
            stream.flush()


class StructuredBackend:
    """structlog-backed backend emitting one self-describing record per call.

    Static fields (name, pid, hostname, environment, version) are bound once
    at construction and appear on every record.
    """

    def __init__(
        self,
        settings: LogSettings,
        stream: TextIO | None = None,
    ) -> None:
        """Initialize structured backend.

        Args:
            settings: Settings providing environment and deployment metadata.
            stream: Output stream (defaults to the current sys.stdout on each write).
        """
        self._stream = stream if stream is not None else _CurrentStdout()

        processors: list[Callable[..., Any]] = [
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="time"),
            structlog.processors.UnicodeDecoder(),
        ]
        if settings.environment is Environment.DEVELOPMENT:
            processors.append(structlog.dev.ConsoleRenderer(colors=settings.policy.colorize))
        else:
            processors.append(structlog.processors.EventRenamer("msg"))
            processors.append(structlog.processors.JSONRenderer())

        self.static_fields: dict[str, Any] = {
            "name": settings.app_name,
            "pid": os.getpid(),
            "hostname": settings.region,
            "environment": settings.environment.value,
            "version": settings.version,
        }
        self._reserved = _RESERVED_FIELDS | frozenset(self.static_fields)
        self._logger = structlog.wrap_logger(
            structlog.PrintLogger(file=self._stream),
            processors=processors,
            wrapper_class=structlog.BoundLogger,
            context_class=dict,
        ).bind(**self.static_fields)

        shutdown.register(self, install_signal_handlers=settings.install_signal_handlers)

    def emit(
        self,
        level: LogLevel,
        module: str,  # noqa: ARG002 - module is part of fields
        message: str,
        fields: Mapping[str, Any],
        args: Sequence[Any],
    ) -> None:
        record: dict[str, Any] = {}
        for key, value in fields.items():
            name = str(key)
            if name in self._reserved:
                name = f"{name}_"
            record[name] = value

        record["level"] = level.label
        if args:
            record["additional_data"] = list(args)

        self._logger.msg(message, **record)

    def flush(self) -> None:
        self._stream.flush()
