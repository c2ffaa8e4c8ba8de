"""Pydantic request models for FastAPI endpoints."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional, List

from models.chat import ChatMessage, ChatPayload, ChatSettings


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatMessageItem(CamelModel):
    role: str = Field(..., pattern="^(user|assistant|system)$")
    content: str

    def to_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)


class ChatSettingsRequest(CamelModel):
    model: str = Field(..., min_length=1)
    temperature: float = Field(0.5, ge=0.0, le=2.0)
    max_output_tokens: Optional[int] = Field(None, gt=0, alias="maxOutputTokens")
    context_length: Optional[int] = Field(None, gt=0, alias="contextLength")
    prompt_template: str = Field(
        "", validation_alias=AliasChoices("promptTemplate", "prompt", "prompt_template")
    )
    embeddings_provider: str = Field(
        "openai", pattern="^(openai|local)$", alias="embeddingsProvider"
    )
    include_profile_context: bool = Field(False, alias="includeProfileContext")
    include_workspace_instructions: bool = Field(False, alias="includeWorkspaceInstructions")

    def to_settings(self) -> ChatSettings:
        return ChatSettings(
            model=self.model,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            context_length=self.context_length,
            prompt_template=self.prompt_template,
            embeddings_provider=self.embeddings_provider,
            include_profile_context=self.include_profile_context,
            include_workspace_instructions=self.include_workspace_instructions,
        )


class ChatRequest(CamelModel):
    chat_settings: ChatSettingsRequest = Field(..., alias="chatSettings")
    messages: List[ChatMessageItem]
    is_web_search_enabled: Optional[bool] = Field(False, alias="isWebSearchEnabled")

    def to_payload(self) -> ChatPayload:
        return ChatPayload(
            chat_settings=self.chat_settings.to_settings(),
            messages=tuple(m.to_message() for m in self.messages),
            is_web_search_enabled=bool(self.is_web_search_enabled),
        )
