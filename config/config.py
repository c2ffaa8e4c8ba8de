import os
from dotenv import load_dotenv
from pathlib import Path

from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class Config:
    """Configuration management for the chat service."""

    def __init__(self):
        """Initialize configuration with environment variables."""
        # Load environment variables from .env file if it exists
        env_path = Path(__file__).parent.parent / '.env'
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)

        # Completion provider (OpenRouter, OpenAI-compatible API)
        self.OPENROUTER_API_KEY = os.getenv('OPENROUTER_API_KEY')
        self.OPENROUTER_BASE_URL = os.getenv('OPENROUTER_BASE_URL', DEFAULT_OPENROUTER_BASE_URL)

        # Web search provider
        self.TAVILY_API_KEY = os.getenv('TAVILY_API_KEY')

        # HTTP
        origins = os.getenv('CORS_ALLOW_ORIGINS', '*')
        self.CORS_ALLOW_ORIGINS = [o.strip() for o in origins.split(',') if o.strip()]

    def validate(self) -> list[str]:
        """
        Check which required settings are missing.

        Provider keys can also arrive per request, so missing values are
        reported rather than treated as fatal.

        Returns:
            list[str]: Names of the missing settings (empty when complete)
        """
        missing = [
            name for name in ('OPENROUTER_API_KEY', 'TAVILY_API_KEY')
            if not getattr(self, name)
        ]
        for name in missing:
            logger.warning(f"{name} is not set. Please set it in the .env file.")
        return missing

    def get_provider_info(self) -> str:
        """
        Describe the configured completion provider.

        Returns:
            str: Formatted string with provider information
        """
        return f"OpenRouter ({self.OPENROUTER_BASE_URL})"
