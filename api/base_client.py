from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Sequence

from models.chat import ChatMessage, ChatSettings


class BaseCompletionClient(ABC):
    """
    Abstract base class for chat-completion providers.

    Implementations are built once per process and must be safe to call from
    many concurrent requests; anything request-specific (the caller's API key)
    is passed per call.
    """

    provider_name: str = "provider"

    @abstractmethod
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
        Send one chat-completion request.

        Args:
            messages: Conversation to complete
            settings: Caller's chat settings (model, temperature)
            api_key: Caller's provider API key
            stream: Return a token stream instead of a single completion
            temperature: Override settings.temperature
            max_tokens: Override the model's output ceiling

        Returns:
            The provider completion object, or the provider stream when
            stream=True. Provider errors propagate unchanged.
        """

    @abstractmethod
    def iter_text(self, response: Any) -> AsyncIterator[bytes]:
        """
        Adapt a provider stream into UTF-8 encoded text deltas.

        Closing the returned iterator must release the provider connection.
        """
