"""Turn the user's latest message into a web search query."""

from api.base_client import BaseCompletionClient
from models.chat import ChatMessage, ChatSettings
from models.errors import QueryGenerationFailed
from utils.logger import get_logger

logger = get_logger(__name__)

QUERY_TEMPERATURE = 0.1
QUERY_MAX_TOKENS = 50


def build_query_prompt(user_message: str) -> str:
    return (
        "You are an AI assistant. Your task is to generate a concise and effective search "
        "query based on the user's last message. Return only the search query itself, "
        "with no additional text or explanation.\n"
        f'User\'s message: "{user_message}"\n'
        "Search Query:"
    )


class SearchQueryDeriver:
    """One short, non-streaming completion that returns nothing but a query."""

    def __init__(self, completion_client: BaseCompletionClient):
        self.completion_client = completion_client

    async def derive(self, user_message: str, settings: ChatSettings, *, api_key: str) -> str:
        """
        Args:
            user_message: Verbatim content of the last message
            settings: Caller's chat settings; the same model is used for the query

        Returns:
            The trimmed search query

        Raises:
            QueryGenerationFailed: No choices or message, or an empty query after trimming
        """
        response = await self.completion_client.complete(
            [ChatMessage(role="system", content=build_query_prompt(user_message))],
            settings,
            api_key=api_key,
            stream=False,
            temperature=QUERY_TEMPERATURE,
            max_tokens=QUERY_MAX_TOKENS,
        )

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        query = (content or "").strip()

        if not query:
            logger.error(
                "Query generation failed",
                extra={"extra_fields": {"model": settings.model, "choices": len(choices)}},
            )
            raise QueryGenerationFailed()

        logger.info(f"Generated search query: {query}")
        return query
