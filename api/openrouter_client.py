from typing import Any, AsyncIterator, Callable, Sequence

import httpx
import openai

from config.config import DEFAULT_OPENROUTER_BASE_URL
from models.chat import ChatMessage, ChatSettings
from utils.logger import get_logger

from .base_client import BaseCompletionClient

logger = get_logger(__name__)

# Output ceilings for models that need one; every other model is left unbounded.
MAX_TOKENS_BY_MODEL: dict[str, int] = {
    "mistralai/mistral-7b-instruct": 16000,
}


def resolve_max_tokens(model: str) -> int | None:
    """Output-token ceiling for a model identifier, or None for no limit."""
    return MAX_TOKENS_BY_MODEL.get(model)


class OpenRouterClient(BaseCompletionClient):
    """
    OpenRouter chat-completion client.

    Uses the OpenAI SDK with OpenRouter's base URL since the API is
    OpenAI-compatible. The API key belongs to the caller, so an SDK client is
    created per call on top of one shared connection pool.
    """

    provider_name = "openrouter"

    def __init__(
        self,
        base_url: str = DEFAULT_OPENROUTER_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        client_factory: Callable[[str], Any] | None = None,
    ):
        """
        Initialize the OpenRouter client.

        Args:
            base_url: OpenAI-compatible API root
            http_client: Shared connection pool (one per process)
            client_factory: Builds an SDK-like client from an API key (used by tests)
        """
        self.base_url = base_url
        self.http_client = http_client
        self._client_factory = client_factory or self._create_sdk_client

    def _create_sdk_client(self, api_key: str) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(
            api_key=api_key, base_url=self.base_url, http_client=self.http_client
        )

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        settings: ChatSettings,
        *,
        api_key: str,
        stream: bool,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Any:
        """
        Create a chat completion.

        Args:
            messages: Conversation to complete
            settings: Caller's chat settings
            api_key: Caller's OpenRouter key
            stream: Stream token deltas
            temperature: Override settings.temperature
            max_tokens: Override the per-model ceiling

        Returns:
            ChatCompletion, or AsyncStream[ChatCompletionChunk] when stream=True
        """
        request: dict[str, Any] = {
            "model": settings.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": settings.temperature if temperature is None else temperature,
            "stream": stream,
        }
        ceiling = resolve_max_tokens(settings.model) if max_tokens is None else max_tokens
        if ceiling is not None:
            request["max_tokens"] = ceiling

        logger.debug(
            "OpenRouter completion request",
            extra={
                "extra_fields": {
                    "model": settings.model,
                    "messages": len(request["messages"]),
                    "max_tokens": ceiling,
                    "stream": stream,
                }
            },
        )

        client = self._client_factory(api_key)
        return await client.chat.completions.create(**request)

    async def iter_text(self, response: Any) -> AsyncIterator[bytes]:
        """Yield each non-empty content delta of a completion stream as UTF-8 bytes."""
        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta.encode("utf-8")
        finally:
            await response.close()
