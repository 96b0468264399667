"""Pattern-based redaction of sensitive substrings.

This module provides:
- The ordered list of sensitive-data rules applied to every logged string
- redact() to mask matches in a string
- Read-only queries to check which rules a string trips

Rules are applied left to right, each one scanning the output of the
previous one, so a later rule only ever sees already-masked text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

REDACTED = "[REDACTED]"

# Characters allowed in an unquoted credential value
_CREDENTIAL_RUN = re.compile(r"[A-Za-z0-9._-]{16,}")
_QUOTED_VALUE = re.compile(r"[\"'][^\"']{2,}[\"']")


@dataclass(frozen=True)
class FixedReplace:
    """Replace the whole match with a template.

    Group references such as ``\\1`` are expanded against the match.
    """

    text: str

    def apply(self, pattern: re.Pattern[str], value: str) -> str:
        return pattern.sub(self.text, value)


@dataclass(frozen=True)
class ComputedReplace:
    """Replace each match with the result of a function of the match."""

    fn: Callable[[re.Match[str]], str]

    def apply(self, pattern: re.Pattern[str], value: str) -> str:
        return pattern.sub(self.fn, value)


Replacement = FixedReplace | ComputedReplace


@dataclass(frozen=True)
class SensitivePattern:
    """A single redaction rule.

    Attributes:
        pattern: Compiled matcher
        replacement: How a match is rewritten
        description: Human-readable label reported by detection
    """

    pattern: re.Pattern[str]
    replacement: Replacement
    description: str

    def matches(self, value: str) -> bool:
        return self.pattern.search(value) is not None

    def apply(self, value: str) -> str:
        return self.replacement.apply(self.pattern, value)


def _mask_credential_runs(match: re.Match[str]) -> str:
    return _CREDENTIAL_RUN.sub(REDACTED, match.group(0))


def _mask_quoted_value(match: re.Match[str]) -> str:
    return _QUOTED_VALUE.sub(f'"{REDACTED}"', match.group(0), count=1)


SENSITIVE_PATTERNS: tuple[SensitivePattern, ...] = (
    SensitivePattern(
        re.compile(r"Bearer\s+[A-Za-z0-9._-]+", re.IGNORECASE),
        FixedReplace(f"Bearer {REDACTED}"),
        "Bearer tokens",
    ),
    # Runs before vendor keys so `api_key=sk-...` keeps the key name only
    SensitivePattern(
        re.compile(
            r"\b(?:api_key|apikey|api-key)\s*[=:]\s*[\"']?[A-Za-z0-9._-]{16,}[\"']?",
            re.IGNORECASE,
        ),
        ComputedReplace(_mask_credential_runs),
        "Generic API keys",
    ),
    SensitivePattern(
        re.compile(r"\b(sk|pk|rk)-[A-Za-z0-9]{20,}"),
        FixedReplace(rf"\1-{REDACTED}"),
        "OpenAI/Stripe-style API keys",
    ),
    SensitivePattern(
        re.compile(r"\b(sk|pk|rk)_(live|test)_[A-Za-z0-9]{16,}"),
        FixedReplace(rf"\1_\2_{REDACTED}"),
        "Stripe secret keys",
    ),
    # Matches the labelled value, not the bare word "password"
    SensitivePattern(
        re.compile(r"(?:password|secret|key)\s*[=:]\s*[\"'][^\"']{2,}[\"']", re.IGNORECASE),
        ComputedReplace(_mask_quoted_value),
        "Password/secret fields",
    ),
    SensitivePattern(
        re.compile(r"\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*"),
        FixedReplace("eyJ[REDACTED_JWT]"),
        "JWT tokens",
    ),
    # Scheme, user and host stay visible
    SensitivePattern(
        re.compile(
            r"((?:postgres(?:ql)?|mysql|mariadb|mongodb(?:\+srv)?|rediss?|amqps?)"
            r"://[^:/@\s]+:)[^@\s]+(@[^/\s]+)",
            re.IGNORECASE,
        ),
        FixedReplace(rf"\1{REDACTED}\2"),
        "Database connection strings",
    ),
)


def redact(text: str) -> str:
    """Mask every sensitive substring in a string.

    Args:
        text: String to redact. Non-string values are returned unchanged.

    Returns:
        The string with each rule's matches replaced

    Examples:
        >>> redact("Authorization: Bearer abc123")
        'Authorization: Bearer [REDACTED]'
        >>> redact("api_key=sk-aaaaaaaaaaaaaaaaaaaaaaaaa")
        'api_key=[REDACTED]'
    """
    if not isinstance(text, str):
        return text

    result = text
    for rule in SENSITIVE_PATTERNS:
        result = rule.apply(result)
    return result


def contains_sensitive_data(text: str) -> bool:
    """Return True if any redaction rule matches the string."""
    if not isinstance(text, str):
        return False
    return any(rule.matches(text) for rule in SENSITIVE_PATTERNS)


def detect_sensitive_patterns(text: str) -> list[str]:
    """List the labels of every rule that matches, in rule order.

    Args:
        text: String to analyze

    Returns:
        Rule descriptions that matched (empty if none did)
    """
    if not isinstance(text, str):
        return []
    return [rule.description for rule in SENSITIVE_PATTERNS if rule.matches(text)]
