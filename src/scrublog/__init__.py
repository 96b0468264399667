"""scrublog - logging façade with built-in secret redaction.

Usage:
    from scrublog import create_logger, sanitize_log_data

    logger = create_logger("OpenAIProvider")
    logger.debug("Request headers", headers={"Authorization": "Bearer abc"})
"""

from scrublog.config import Environment, ExecutionContext, LogLevel, LogSettings
from scrublog.logging import (
    Logger,
    create_logger,
    create_request_logger,
    create_structured_logger,
    create_user_logger,
    create_workflow_logger,
)
from scrublog.sanitize import (
    contains_sensitive_data,
    detect_sensitive_patterns,
    redact,
    sanitize_log_args,
    sanitize_log_data,
)

__version__ = "0.1.0"

__all__ = [
    "Environment",
    "ExecutionContext",
    "LogLevel",
    "LogSettings",
    "Logger",
    "__version__",
    "contains_sensitive_data",
    "create_logger",
    "create_request_logger",
    "create_structured_logger",
    "create_user_logger",
    "create_workflow_logger",
    "detect_sensitive_patterns",
    "redact",
    "sanitize_log_args",
    "sanitize_log_data",
]
