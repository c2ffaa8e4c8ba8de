"""Web search tools: Tavily client, result contracts and context composition."""

from .contracts import WebSearchImage, WebSearchResult, WebSearchSource
from .factory import create_search_client_from_config
from .research_pack import build_search_context, compose_augmented_messages
from .tavily_client import TavilySearchClient

__all__ = [
    "TavilySearchClient",
    "WebSearchImage",
    "WebSearchResult",
    "WebSearchSource",
    "build_search_context",
    "compose_augmented_messages",
    "create_search_client_from_config",
]
