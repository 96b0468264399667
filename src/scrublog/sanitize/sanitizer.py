"""Recursive sanitization of values before they are logged.

The walk applies redact() to every string it finds, turns exceptions and
dates into plain JSON-friendly values, and stops at a depth budget. Cycles
are cut at the edge that closes them.
"""

from __future__ import annotations

import dataclasses
import logging
import traceback
from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel

from scrublog.config import ConfigError, Environment, get_settings
from scrublog.sanitize.patterns import redact

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10

MAX_DEPTH_SENTINEL = "[MAX_DEPTH_REACHED]"
CIRCULAR_SENTINEL = "[CIRCULAR_REFERENCE]"

_SEQUENCE_TYPES = (list, tuple, set, frozenset)
_EXCEPTION_FIELDS = frozenset({"name", "message", "stack"})


def _development_stack() -> bool:
    try:
        settings = get_settings()
    except ConfigError:
        logger.debug("Settings failed to load, omitting exception stacks")
        return False
    return settings.environment is Environment.DEVELOPMENT


def sanitize(
    value: Any,
    max_depth: int = DEFAULT_MAX_DEPTH,
    *,
    include_stack: bool | None = None,
) -> Any:
    """Sanitize a value for logging. Never raises.

    Args:
        value: Any value
        max_depth: Remaining nesting budget. At 0 or below the depth sentinel
            is returned.
        include_stack: Whether exception tracebacks are kept. None means keep
            them only in the development environment.

    Returns:
        A structure of dicts, lists, and primitives with sensitive
        substrings masked, or a diagnostic record describing the failure if
        sanitization itself broke
    """
    try:
        if include_stack is None:
            include_stack = _development_stack()
        return _walk(value, max_depth, include_stack, set())
    except Exception as e:  # noqa: BLE001
        return {
            "sanitization_error": True,
            "original_type": type(value).__name__,
            "error_message": str(e),
        }


def _walk(value: Any, depth: int, include_stack: bool, path: set[int]) -> Any:  # noqa: PLR0911
    if depth <= 0:
        return MAX_DEPTH_SENTINEL

    if value is None:
        return None

    if isinstance(value, str):
        return redact(value)

    if isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, BaseException):
        return _walk_container(value, _sanitize_exception, depth, include_stack, path)

    # datetime is a subclass of date, both have isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()

    if isinstance(value, _SEQUENCE_TYPES):
        return _walk_container(value, _sanitize_sequence, depth, include_stack, path)

    if isinstance(value, Mapping):
        return _walk_container(value, _sanitize_mapping, depth, include_stack, path)

    if isinstance(value, BaseModel):
        return _walk(value.model_dump(), depth, include_stack, path)

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return _walk_container(fields, _sanitize_mapping, depth, include_stack, path, key=id(value))

    return value


def _walk_container(
    value: Any,
    handler: Any,
    depth: int,
    include_stack: bool,
    path: set[int],
    *,
    key: int | None = None,
) -> Any:
    """Run a container handler with the container marked on the current path."""
    marker = id(value) if key is None else key
    if marker in path:
        return CIRCULAR_SENTINEL

    path.add(marker)
    try:
        return handler(value, depth, include_stack, path)
    finally:
        path.discard(marker)


def _sanitize_sequence(
    value: Any, depth: int, include_stack: bool, path: set[int]
) -> list[Any]:
    return [_walk(item, depth - 1, include_stack, path) for item in value]


def _sanitize_mapping(
    value: Mapping[Any, Any], depth: int, include_stack: bool, path: set[int]
) -> dict[Any, Any]:
    sanitized: dict[Any, Any] = {}
    for key, item in value.items():
        # Functions are not logged
        if callable(item):
            continue
        try:
            sanitized[key] = _walk(item, depth - 1, include_stack, path)
        except Exception:  # noqa: BLE001
            sanitized[key] = CIRCULAR_SENTINEL
    return sanitized


def _sanitize_exception(
    exc: BaseException, depth: int, include_stack: bool, path: set[int]
) -> dict[str, Any]:
    result: dict[str, Any] = {
        "name": type(exc).__name__,
        "message": redact(str(exc)),
    }
    if include_stack:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        result["stack"] = redact(stack)

    extra = {
        key: item
        for key, item in vars(exc).items()
        if key not in _EXCEPTION_FIELDS and not key.startswith("__")
    }
    # Extra attributes sit beside name/message, one level below the error
    result.update(_sanitize_mapping(extra, depth, include_stack, path))
    return result


def sanitize_log_data(
    value: Any,
    max_depth: int = DEFAULT_MAX_DEPTH,
    *,
    include_stack: bool | None = None,
) -> Any:
    """Sanitize any value for logging. Never raises.

    Args:
        value: The data to sanitize (can be any type)
        max_depth: Nesting budget, passed through to sanitize()
        include_stack: Passed through to sanitize()

    Returns:
        Sanitized version of the data
    """
    return sanitize(value, max_depth, include_stack=include_stack)


def sanitize_log_args(values: Any, *, include_stack: bool | None = None) -> list[Any]:
    """Sanitize each positional argument of a log call independently.

    Args:
        values: Sequence of arguments

    Returns:
        List of sanitized arguments, same order and length
    """
    return [sanitize_log_data(value, include_stack=include_stack) for value in values]
