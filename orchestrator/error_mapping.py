"""Normalize any pipeline failure into a PipelineError with a user-facing message."""

import openai

from models.errors import (
    UNEXPECTED_ERROR_MESSAGE,
    AuthenticationError,
    InsufficientFundsError,
    PipelineError,
    UnknownError,
)

API_KEY_PATTERNS = ("api key not found",)
INSUFFICIENT_FUNDS_PATTERNS = ("insufficient funds", "insufficient credits")
INSUFFICIENT_FUNDS_CODES = {"insufficient_quota"}
PAYMENT_REQUIRED = 402


def extract_status(exc: BaseException) -> int | None:
    """HTTP status of the error, or of the first error in its cause chain that has one."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, PipelineError):
            return current.http_status
        for attr in ("status_code", "status"):
            value = getattr(current, attr, None)
            if isinstance(value, int):
                return value
        current = current.__cause__
    return None


def extract_message(exc: BaseException) -> str:
    if isinstance(exc, PipelineError):
        return exc.message
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or UNEXPECTED_ERROR_MESSAGE


def _is_auth_failure(exc: BaseException, lowered: str) -> bool:
    if isinstance(exc, (openai.AuthenticationError, AuthenticationError)):
        return True
    return any(p in lowered for p in API_KEY_PATTERNS)


def _is_insufficient_funds(exc: BaseException, lowered: str, status: int | None) -> bool:
    if isinstance(exc, InsufficientFundsError) or status == PAYMENT_REQUIRED:
        return True
    if getattr(exc, "code", None) in INSUFFICIENT_FUNDS_CODES:
        return True
    return any(p in lowered for p in INSUFFICIENT_FUNDS_PATTERNS)


def normalize_error(exc: BaseException) -> PipelineError:
    """
    Map an exception from any stage to the error the API returns.

    Status comes from the error (or what it wraps), else 500. Missing/invalid
    provider keys and exhausted provider balances get fixed messages; other
    PipelineErrors pass through, anything else becomes UnknownError with its
    own message.
    """
    status = extract_status(exc)
    message = extract_message(exc)
    lowered = message.lower()

    if _is_auth_failure(exc, lowered):
        return AuthenticationError(http_status=status)
    if _is_insufficient_funds(exc, lowered, status):
        return InsufficientFundsError(http_status=status)
    if isinstance(exc, PipelineError):
        return exc
    return UnknownError(message, http_status=status)
