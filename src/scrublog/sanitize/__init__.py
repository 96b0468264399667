"""Sanitization of log data.

This module provides:
- Pattern-based redaction of secrets in strings (bearer tokens, API keys,
  password fields, JWTs, database connection strings)
- Depth-limited recursive sanitization of arbitrary values
- Queries to check which sensitive patterns a string contains

Usage:
    from scrublog.sanitize import sanitize_log_data, contains_sensitive_data

    safe = sanitize_log_data({"headers": {"Authorization": "Bearer abc"}})
"""

from scrublog.sanitize.patterns import (
    SENSITIVE_PATTERNS,
    ComputedReplace,
    FixedReplace,
    SensitivePattern,
    contains_sensitive_data,
    detect_sensitive_patterns,
    redact,
)
from scrublog.sanitize.sanitizer import (
    CIRCULAR_SENTINEL,
    MAX_DEPTH_SENTINEL,
    sanitize,
    sanitize_log_args,
    sanitize_log_data,
)

__all__ = [
    "CIRCULAR_SENTINEL",
    "MAX_DEPTH_SENTINEL",
    "SENSITIVE_PATTERNS",
    "ComputedReplace",
    "FixedReplace",
    "SensitivePattern",
    "contains_sensitive_data",
    "detect_sensitive_patterns",
    "redact",
    "sanitize",
    "sanitize_log_args",
    "sanitize_log_data",
]
