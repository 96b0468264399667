"""Logging module for scrublog.

This module provides the per-module logger façade with:
- Backend selection (structlog JSON vs console) from the environment policy
- Sanitization of every logged context value and argument
- Child loggers and request/user/workflow-scoped constructors
- Timing and HTTP/database/external-call helpers

Usage:
    from scrublog.logging import create_logger

    logger = create_logger("Billing")
    logger.info("Charged card", amount=10)
"""

from scrublog.config import LogLevel
from scrublog.logging.backends import Backend, ConsoleBackend, StructuredBackend
from scrublog.logging.logger import (
    Logger,
    create_logger,
    create_request_logger,
    create_structured_logger,
    create_user_logger,
    create_workflow_logger,
    select_backend,
)

__all__ = [
    "Backend",
    "ConsoleBackend",
    "LogLevel",
    "Logger",
    "StructuredBackend",
    "create_logger",
    "create_request_logger",
    "create_structured_logger",
    "create_user_logger",
    "create_workflow_logger",
    "select_backend",
]
