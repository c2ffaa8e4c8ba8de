"""FastAPI dependencies for provider credentials and pipeline access."""

from fastapi import Header, Request

from orchestrator.core import ChatPipeline
from server.utils import redact_sensitive_headers
from utils.logger import get_logger

logger = get_logger(__name__)


async def get_provider_api_key(
    request: Request, x_provider_api_key: str | None = Header(None)
) -> str | None:
    """
    Resolve the caller's completion-provider key.

    The key sent by the caller wins; the server-wide OPENROUTER_API_KEY is the
    fallback. Returns None when neither is available.
    """
    api_key = x_provider_api_key or request.app.state.config.OPENROUTER_API_KEY
    if not api_key:
        logger.warning(
            "Provider API key missing",
            extra={
                "extra_fields": {
                    "request_id": getattr(request.state, "request_id", "unknown"),
                    "headers": redact_sensitive_headers(dict(request.headers)),
                }
            },
        )
    return api_key or None


def get_pipeline(request: Request) -> ChatPipeline:
    """Dependency returning the process-wide pipeline built during startup."""
    return request.app.state.pipeline
