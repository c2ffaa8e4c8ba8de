"""
Pipeline error hierarchy.

Every failure that leaves the chat pipeline is one of these. Each carries the
already-normalized, user-facing message and the HTTP status the API layer
should answer with.
"""

from typing import Any

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"
API_KEY_NOT_FOUND_MESSAGE = "Provider API key not found. Please set it in your profile settings."
INSUFFICIENT_FUNDS_MESSAGE = "You have insufficient funds in your provider account."
QUERY_GENERATION_FAILED_MESSAGE = "Failed to generate search query from AI."
INVALID_SEARCH_RESULTS_MESSAGE = "Tavily returned invalid search results format."


class PipelineError(Exception):
    """Base class for normalized pipeline failures."""

    kind = "UnknownError"
    default_status = 500

    def __init__(self, message: str | None = None, http_status: int | None = None):
        self.message = message or UNEXPECTED_ERROR_MESSAGE
        self.http_status = http_status or self.default_status
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, http_status={self.http_status})"


class AuthenticationError(PipelineError):
    kind = "AuthenticationError"
    default_status = 401

    def __init__(self, message: str = API_KEY_NOT_FOUND_MESSAGE, http_status: int | None = None):
        super().__init__(message, http_status)


class InsufficientFundsError(PipelineError):
    kind = "InsufficientFundsError"
    default_status = 402

    def __init__(self, message: str = INSUFFICIENT_FUNDS_MESSAGE, http_status: int | None = None):
        super().__init__(message, http_status)


class QueryGenerationFailed(PipelineError):
    kind = "QueryGenerationFailed"

    def __init__(
        self, message: str = QUERY_GENERATION_FAILED_MESSAGE, http_status: int | None = None
    ):
        super().__init__(message, http_status)


class SearchProviderError(PipelineError):
    kind = "SearchProviderError"

    @classmethod
    def from_provider_message(cls, provider_message: str | None) -> "SearchProviderError":
        return cls(f"Tavily search failed: {provider_message or 'Unknown error'}")


class SearchResultShapeError(PipelineError):
    kind = "SearchResultShapeError"

    def __init__(
        self, message: str = INVALID_SEARCH_RESULTS_MESSAGE, http_status: int | None = None
    ):
        super().__init__(message, http_status)


class CompletionStreamingError(PipelineError):
    kind = "CompletionStreamingError"

    @classmethod
    def from_upstream(
        cls, upstream_message: str | None, http_status: int | None = None
    ) -> "CompletionStreamingError":
        return cls(
            f"Final answer generation failed: {upstream_message or 'Unknown streaming error'}",
            http_status,
        )


class UnknownError(PipelineError):
    kind = "UnknownError"
