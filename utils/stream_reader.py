"""
Client-side reader for the chat stream.

The body of a successful /v1/chat response is an optional first JSON line
carrying web search metadata, followed by plain text deltas.
"""

import codecs
import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

METADATA_KEY = "metadata"


@dataclass
class ChatStreamResult:
    text: str = ""
    metadata: dict[str, Any] | None = None
    chunks: list[bytes] = field(default_factory=list)

    @property
    def is_web_search(self) -> bool:
        return bool(self.metadata and self.metadata.get("isWebSearch"))

    @property
    def sources(self) -> list[dict[str, Any]]:
        if not self.metadata:
            return []
        return self.metadata.get("webSearchSources", {}).get("sources", [])


def split_metadata(first_line: bytes) -> dict[str, Any] | None:
    """Return the metadata object when `first_line` is a metadata frame, else None."""
    try:
        decoded = json.loads(first_line)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if isinstance(decoded, dict) and isinstance(decoded.get(METADATA_KEY), dict):
        return decoded[METADATA_KEY]
    return None


def iter_stream(chunks: Iterable[bytes]) -> Iterator[tuple[str, Any]]:
    """
    Turn raw body chunks into ("metadata", dict) and ("text", str) events.

    Only the very first line may be metadata; until its newline arrives the
    head of the stream is held back. Text is decoded incrementally so a
    character split across chunks is not mangled.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    head = b""
    head_done = False

    for chunk in chunks:
        if head_done:
            text = decoder.decode(chunk)
            if text:
                yield "text", text
            continue

        head += chunk
        if b"\n" not in head and head.startswith(b"{"):
            continue

        head_done = True
        body = head
        if b"\n" in head:
            line, rest = head.split(b"\n", 1)
            metadata = split_metadata(line)
            if metadata is not None:
                yield "metadata", metadata
                body = rest
        text = decoder.decode(body)
        if text:
            yield "text", text

    if not head_done and head:
        text = decoder.decode(head)
        if text:
            yield "text", text

    tail = decoder.decode(b"", final=True)
    if tail:
        yield "text", tail


def parse_stream(chunks: Iterable[bytes]) -> ChatStreamResult:
    """Collect a whole response body into text plus optional metadata."""
    chunks = list(chunks)
    result = ChatStreamResult(chunks=chunks)
    parts = []
    for kind, value in iter_stream(chunks):
        if kind == "metadata":
            result.metadata = value
        else:
            parts.append(value)
    result.text = "".join(parts)
    return result
