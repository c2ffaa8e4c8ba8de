"""
Chat domain objects consumed by the request pipeline.

These are request-scoped and immutable: the pipeline never mutates a payload,
it builds new message lists when it needs a different conversation.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ChatSettings:
    """
    Per-request model settings.

    Attributes:
        model: Provider model identifier (e.g. "openai/gpt-4o-mini")
        temperature: Sampling temperature forwarded to the provider
        max_output_tokens: Accepted for completeness; the completion client
            decides the real ceiling from the model identifier
        context_length: Context window the caller selected
        prompt_template: Caller prompt template (carried, not used here)
        embeddings_provider: "openai" or "local" (carried, not used here)
    """

    model: str
    temperature: float = 0.5
    max_output_tokens: int | None = None
    context_length: int | None = None
    prompt_template: str = ""
    embeddings_provider: str = "openai"
    include_profile_context: bool = False
    include_workspace_instructions: bool = False


@dataclass(frozen=True)
class ChatPayload:
    chat_settings: ChatSettings
    messages: tuple[ChatMessage, ...] = field(default_factory=tuple)
    is_web_search_enabled: bool = False

    @property
    def wants_web_search(self) -> bool:
        """Web search only runs when requested and there is a question to search for."""
        return self.is_web_search_enabled and len(self.messages) > 0

    def message_dicts(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self.messages]
