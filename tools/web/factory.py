"""Factory for creating the Tavily search client from configuration."""

from config.config import Config
from utils.logger import get_logger

from .tavily_client import TavilySearchClient

logger = get_logger(__name__)


def create_search_client_from_config(config: Config) -> TavilySearchClient | None:
    """
    Create the process-wide Tavily client.

    Returns:
        Configured TavilySearchClient, or None when TAVILY_API_KEY is not set
        (web-search requests then fail with a search provider error)
    """
    if not config.TAVILY_API_KEY:
        logger.warning("TAVILY_API_KEY not set; web search is unavailable")
        return None

    logger.info("Using Tavily for web search")
    return TavilySearchClient(api_key=config.TAVILY_API_KEY)
