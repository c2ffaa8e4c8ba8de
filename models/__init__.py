"""
Models package for chat payloads and pipeline errors.
"""

from .chat import ChatMessage, ChatPayload, ChatSettings
from .errors import (
    AuthenticationError,
    CompletionStreamingError,
    InsufficientFundsError,
    PipelineError,
    QueryGenerationFailed,
    SearchProviderError,
    SearchResultShapeError,
    UnknownError,
)

__all__ = [
    "AuthenticationError",
    "ChatMessage",
    "ChatPayload",
    "ChatSettings",
    "CompletionStreamingError",
    "InsufficientFundsError",
    "PipelineError",
    "QueryGenerationFailed",
    "SearchProviderError",
    "SearchResultShapeError",
    "UnknownError",
]
