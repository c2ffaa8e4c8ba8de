"""Tavily API client for web search.

Tavily returns extracted page content together with the result links, so a
single call gives the pipeline everything it needs to ground an answer:
- ranked results (title, url, content)
- related images, optionally with descriptions
"""

from collections.abc import Sequence
from typing import Any

from tavily import AsyncTavilyClient

from models.errors import SearchProviderError, SearchResultShapeError
from utils.logger import get_logger

from .contracts import WebSearchImage, WebSearchResult, WebSearchSource

logger = get_logger(__name__)

SEARCH_DEPTH = "advanced"
MAX_RESULTS = 8


class TavilySearchClient:
    """
    Stateless Tavily search handle.

    Built once at process start and shared by every request; the underlying
    AsyncTavilyClient only holds its API key and connection settings.
    """

    def __init__(self, api_key: str | None = None, client: Any | None = None):
        """
        Initialize Tavily client.

        Args:
            api_key: Tavily API key
            client: Pre-built async Tavily client (used by tests)
        """
        if client is None:
            if not api_key:
                raise ValueError("TAVILY_API_KEY not found in environment")
            client = AsyncTavilyClient(api_key=api_key)

        self.client = client
        logger.info("Tavily client initialized")

    async def search(self, query: str) -> WebSearchResult:
        """
        Search the web using Tavily API.

        The answer and image descriptions are always requested so the
        response shape stays the same across calls, even though only
        results and images are read.

        Args:
            query: Search query

        Returns:
            WebSearchResult with sources and images in provider order

        Raises:
            SearchProviderError: The Tavily call itself failed
            SearchResultShapeError: Tavily answered without a results list
        """
        logger.info(
            f"Tavily search: '{query}' (max_results={MAX_RESULTS}, depth={SEARCH_DEPTH})"
        )

        try:
            response = await self.client.search(
                query=query,
                search_depth=SEARCH_DEPTH,
                max_results=MAX_RESULTS,
                include_answer=True,
                include_images=True,
                include_image_descriptions=True,
            )
        except Exception as e:
            logger.error(f"Tavily search failed: {e}", exc_info=True)
            raise SearchProviderError.from_provider_message(str(e) or None) from e

        return self._normalize(query, response)

    def _normalize(self, query: str, response: Any) -> WebSearchResult:
        results = response.get("results") if isinstance(response, dict) else None
        if not _is_sequence(results):
            logger.error(
                "Tavily returned invalid search results format",
                extra={"extra_fields": {"response_type": type(response).__name__}},
            )
            raise SearchResultShapeError()

        sources = tuple(
            WebSearchSource(
                title=item.get("title", ""),
                url=item.get("url", ""),
                content=item.get("content", ""),
            )
            for item in results
        )

        raw_images = response.get("images")
        images = tuple(_to_image(image) for image in raw_images) if _is_sequence(raw_images) else ()

        logger.info(
            f"Tavily returned {len(sources)} sources, {len(images)} images",
            extra={"extra_fields": {"query": query}},
        )
        return WebSearchResult(query=query, sources=sources, images=images)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _to_image(image: Any) -> WebSearchImage:
    # Without image descriptions Tavily sends bare URL strings
    if isinstance(image, str):
        return WebSearchImage(url=image)
    return WebSearchImage(url=image.get("url", ""), description=image.get("description") or "")
