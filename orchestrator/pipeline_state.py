import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator

from tools.web.contracts import WebSearchResult
from utils.logger import get_logger

logger = get_logger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    DERIVING_QUERY = "deriving_query"
    SEARCHING = "searching"
    COMPOSING = "composing"
    COMPLETING = "completing"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({PipelineState.DONE, PipelineState.FAILED})

ALLOWED_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.DERIVING_QUERY, PipelineState.COMPLETING}),
    PipelineState.DERIVING_QUERY: frozenset({PipelineState.SEARCHING}),
    PipelineState.SEARCHING: frozenset({PipelineState.COMPOSING}),
    PipelineState.COMPOSING: frozenset({PipelineState.COMPLETING}),
    PipelineState.COMPLETING: frozenset({PipelineState.STREAMING}),
    PipelineState.STREAMING: frozenset({PipelineState.DONE}),
}


class InvalidTransition(RuntimeError):
    pass


@dataclass
class PipelineRun:
    """
    State of one request moving through the pipeline.

    Created per request and never shared, so no locking is needed.
    """

    request_id: str = field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")
    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    search_query: str | None = None
    search_result: WebSearchResult | None = None
    error: Exception | None = None
    stream: AsyncIterator[bytes] | None = None
    response: Any = None

    def advance(self, target: PipelineState) -> None:
        if target is PipelineState.FAILED:
            if self.state in TERMINAL_STATES:
                raise InvalidTransition(f"{self.state.value} -> {target.value}")
        elif target not in ALLOWED_TRANSITIONS.get(self.state, frozenset()):
            raise InvalidTransition(f"{self.state.value} -> {target.value}")
        logger.debug(
            f"Pipeline state {self.state.value} -> {target.value}",
            extra={"extra_fields": {"request_id": self.request_id}},
        )
        self.state = target
        self.history.append(target)

    async def aclose(self) -> None:
        """
        Release the relay and the provider response.

        Safe to call more than once, and required when the relay was never
        iterated: an unstarted generator's cleanup never runs on its own.
        """
        if self.state is PipelineState.COMPLETING and self.response is not None:
            logger.warning(
                "Client disconnected before the stream started",
                extra={"extra_fields": {"request_id": self.request_id}},
            )
        if self.stream is not None:
            aclose = getattr(self.stream, "aclose", None)
            if aclose is not None:
                await aclose()
        response, self.response = self.response, None
        if response is not None:
            close = getattr(response, "aclose", None) or getattr(response, "close", None)
            if close is not None:
                await close()

    def fail(self, error: Exception) -> None:
        self.error = error
        if self.state not in TERMINAL_STATES:
            self.advance(PipelineState.FAILED)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
