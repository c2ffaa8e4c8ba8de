"""FastAPI application factory."""

from contextlib import asynccontextmanager

import openai
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.openrouter_client import OpenRouterClient
from config.config import Config
from orchestrator.core import ChatPipeline
from server.middleware import RequestIDMiddleware
from server.routes import chat, health
from server.schemas.responses import ErrorResponseDTO
from tools.web.factory import create_search_client_from_config
from utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the process-wide provider clients on startup, release them on shutdown."""
    logger.info("FastAPI server starting up")
    config: Config = app.state.config
    config.validate()

    http_client = None
    if getattr(app.state, "pipeline", None) is None:
        http_client = openai.DefaultAsyncHttpxClient()
        completion_client = OpenRouterClient(
            base_url=config.OPENROUTER_BASE_URL, http_client=http_client
        )
        app.state.pipeline = ChatPipeline(
            completion_client=completion_client,
            search_client=create_search_client_from_config(config),
        )
        logger.info(f"Chat pipeline ready: {config.get_provider_info()}")

    yield

    if http_client is not None:
        await http_client.aclose()
    logger.info("FastAPI server shutting down")


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed bodies with the same `{"message": ...}` shape as pipeline errors."""
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'][1:])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=422,
        content=ErrorResponseDTO(message=f"Invalid request: {problems}").model_dump(),
    )


def create_app(config: Config | None = None, pipeline: ChatPipeline | None = None) -> FastAPI:
    """
    Factory function to create FastAPI application.

    Args:
        config: Configuration (read from the environment by default)
        pipeline: Pre-built pipeline; when omitted it is built at startup
    """
    config = config or Config()

    app = FastAPI(
        title="Web Search Chat API",
        description="Streaming chat completions augmented with live web search",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.pipeline = pipeline

    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health.router)
    app.include_router(chat.router)

    return app
