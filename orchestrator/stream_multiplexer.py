"""
Stream multiplexer: one metadata line, then the provider's token stream.

Output framing:

    {"metadata": {"webSearchSources": {"sources": [...], "images": [...], "query": "..."},
                  "isWebSearch": true}}\\n
    <token bytes exactly as produced upstream>...

The metadata line is only present for web-search requests and is always
yielded on its own before the upstream stream is read. Chunks are relayed one
at a time and never split or merged.
"""

import json
from typing import Any, AsyncIterator

from models.errors import CompletionStreamingError, PipelineError
from tools.web.contracts import WebSearchResult
from utils.logger import get_logger

logger = get_logger(__name__)


def build_metadata_payload(result: WebSearchResult) -> dict[str, Any]:
    return {"metadata": {"webSearchSources": result.to_dict(), "isWebSearch": True}}


def encode_metadata_frame(result: WebSearchResult) -> bytes:
    return (json.dumps(build_metadata_payload(result)) + "\n").encode("utf-8")


async def multiplex(
    upstream: AsyncIterator[bytes],
    metadata: WebSearchResult | None = None,
    *,
    request_id: str | None = None,
) -> AsyncIterator[bytes]:
    """
    Relay `upstream` chunk by chunk, prefixed by the metadata frame when given.

    If the consumer stops early (client disconnect), the upstream iterator is
    closed so the provider connection is released. An upstream failure
    surfaces as CompletionStreamingError; nothing after the failing chunk is
    emitted.
    """
    relayed = 0
    try:
        if metadata is not None:
            yield encode_metadata_frame(metadata)

        async for chunk in upstream:
            relayed += 1
            yield chunk
    except PipelineError:
        raise
    except Exception as e:
        logger.error(
            f"Upstream stream failed after {relayed} chunks: {e}",
            exc_info=True,
            extra={"extra_fields": {"request_id": request_id, "chunks": relayed}},
        )
        raise CompletionStreamingError.from_upstream(str(e) or None) from e
    finally:
        aclose = getattr(upstream, "aclose", None)
        if aclose is not None:
            await aclose()

    logger.info(
        "Stream relayed",
        extra={
            "extra_fields": {
                "request_id": request_id,
                "chunks": relayed,
                "web_search": metadata is not None,
            }
        },
    )
