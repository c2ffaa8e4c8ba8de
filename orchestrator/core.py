"""
ChatPipeline - request orchestration for web-search augmented chat.

Key guarantees:
- Stages run strictly in order: derive query, search, compose, complete, stream
- Every failure before streaming leaves execute() as a normalized PipelineError
- No state is kept between requests; collaborators are injected and shared read-only
"""

from typing import Any, AsyncIterator, Sequence

from api.base_client import BaseCompletionClient
from models.chat import ChatMessage, ChatPayload
from models.errors import CompletionStreamingError, SearchProviderError
from orchestrator.error_mapping import extract_message, extract_status, normalize_error
from orchestrator.pipeline_state import PipelineRun, PipelineState
from orchestrator.query_deriver import SearchQueryDeriver
from orchestrator.stream_multiplexer import multiplex
from tools.web.contracts import WebSearchResult
from tools.web.research_pack import compose_augmented_messages
from tools.web.tavily_client import TavilySearchClient
from utils.logger import get_logger

logger = get_logger(__name__)


class ChatPipeline:
    def __init__(
        self,
        completion_client: BaseCompletionClient,
        search_client: TavilySearchClient | None = None,
        query_deriver: SearchQueryDeriver | None = None,
    ):
        self.completion_client = completion_client
        self.search_client = search_client
        self.query_deriver = query_deriver or SearchQueryDeriver(completion_client)

    async def execute(
        self, payload: ChatPayload, *, api_key: str, run: PipelineRun | None = None
    ) -> PipelineRun:
        """
        Run every stage up to the point where the provider stream is open.

        Args:
            payload: Validated chat request
            api_key: Caller's completion-provider key
            run: Pre-created run to record state into (a new one by default)

        Returns:
            The run, in state COMPLETING, with `run.stream` ready to iterate.
            Iterating the stream moves it through STREAMING to DONE. The
            caller must `await run.aclose()` when done with it.

        Raises:
            PipelineError: Any stage failed; the run is left in FAILED
        """
        run = run or PipelineRun()
        log_fields = {
            "request_id": run.request_id,
            "model": payload.chat_settings.model,
            "web_search": payload.wants_web_search,
            "messages": len(payload.messages),
        }
        logger.info("Chat pipeline started", extra={"extra_fields": log_fields})

        try:
            if payload.wants_web_search:
                messages = await self._augment(run, payload, api_key)
            else:
                messages = list(payload.messages)
            response = await self._open_completion(run, payload, messages, api_key)
        except Exception as e:
            error = normalize_error(e)
            run.fail(error)
            logger.error(
                f"Chat pipeline failed: {error.message}",
                exc_info=e,
                extra={
                    "extra_fields": {
                        **log_fields,
                        "error_kind": error.kind,
                        "status": error.http_status,
                        "failed_after": run.history[-2].value,
                    }
                },
            )
            if error is e:
                raise
            raise error from e

        run.response = response
        run.stream = self._relay(
            run, self.completion_client.iter_text(response), run.search_result
        )
        return run

    async def _augment(
        self, run: PipelineRun, payload: ChatPayload, api_key: str
    ) -> list[ChatMessage]:
        settings = payload.chat_settings

        run.advance(PipelineState.DERIVING_QUERY)
        question = payload.messages[-1].content
        run.search_query = await self.query_deriver.derive(question, settings, api_key=api_key)

        run.advance(PipelineState.SEARCHING)
        if self.search_client is None:
            raise SearchProviderError.from_provider_message("search provider is not configured")
        run.search_result = await self.search_client.search(run.search_query)

        run.advance(PipelineState.COMPOSING)
        return compose_augmented_messages(payload.messages, run.search_result)

    async def _open_completion(
        self,
        run: PipelineRun,
        payload: ChatPayload,
        messages: Sequence[ChatMessage],
        api_key: str,
    ) -> Any:
        run.advance(PipelineState.COMPLETING)
        try:
            return await self.completion_client.complete(
                messages, payload.chat_settings, api_key=api_key, stream=True
            )
        except Exception as e:
            if run.search_result is None:
                raise
            raise CompletionStreamingError.from_upstream(
                extract_message(e), extract_status(e)
            ) from e

    async def _relay(
        self,
        run: PipelineRun,
        upstream: AsyncIterator[bytes],
        metadata: WebSearchResult | None,
    ) -> AsyncIterator[bytes]:
        run.advance(PipelineState.STREAMING)
        frames = multiplex(upstream, metadata, request_id=run.request_id)
        try:
            async for frame in frames:
                yield frame
            run.advance(PipelineState.DONE)
        except Exception as e:
            run.fail(e)
            raise
        finally:
            await frames.aclose()
            if not run.is_terminal:
                logger.warning(
                    "Client disconnected before the stream finished",
                    extra={"extra_fields": {"request_id": run.request_id}},
                )
