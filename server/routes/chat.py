"""Chat endpoint streaming a (optionally web-search augmented) completion."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from models.errors import AuthenticationError, PipelineError
from orchestrator.core import ChatPipeline
from orchestrator.pipeline_state import PipelineRun
from server.dependencies import get_pipeline, get_provider_api_key
from server.schemas.requests import ChatRequest
from server.schemas.responses import ErrorResponseDTO
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["Chat"])

STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"


class PipelineStreamingResponse(StreamingResponse):
    """Streams a pipeline run and releases its provider response however the send ends."""

    def __init__(self, run: PipelineRun, **kwargs):
        super().__init__(run.stream, **kwargs)
        self.run = run

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.run.aclose()


def error_response(error: PipelineError) -> JSONResponse:
    return JSONResponse(
        status_code=error.http_status,
        content=ErrorResponseDTO.from_pipeline_error(error).model_dump(),
    )


@router.post(
    "/chat",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"text/plain": {}}, "description": "Metadata line, then token deltas"},
        401: {"model": ErrorResponseDTO},
        500: {"model": ErrorResponseDTO},
    },
)
async def chat(
    request: ChatRequest,
    http_request: Request,
    pipeline: ChatPipeline = Depends(get_pipeline),
    api_key: str | None = Depends(get_provider_api_key),
):
    """
    Stream an answer for the conversation in `messages`.

    With `isWebSearchEnabled`, the first line of the body is a JSON metadata
    frame with the search sources, images and query. Failures before the
    stream starts are answered as `{"message": ...}` with the upstream status;
    after that the stream is aborted instead.
    """
    request_id = getattr(http_request.state, "request_id", None)
    run = PipelineRun(request_id=request_id) if request_id else PipelineRun()

    try:
        if not api_key:
            raise AuthenticationError()
        run = await pipeline.execute(request.to_payload(), api_key=api_key, run=run)
    except PipelineError as e:
        return error_response(e)

    logger.info(
        "Streaming chat response",
        extra={
            "extra_fields": {
                "request_id": run.request_id,
                "search_query": run.search_query,
                "sources": len(run.search_result.sources) if run.search_result else 0,
            }
        },
    )
    return PipelineStreamingResponse(run, media_type=STREAM_MEDIA_TYPE)
