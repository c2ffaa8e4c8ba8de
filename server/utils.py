"""Shared utilities for FastAPI routes."""

from collections.abc import Mapping

SENSITIVE_HEADERS = {"x-provider-api-key", "authorization", "cookie"}


def redact_sensitive_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """
    Redact auth-bearing headers before logging.
    """
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS and value:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted
