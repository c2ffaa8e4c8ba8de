import asyncio
from types import SimpleNamespace

import pytest
from dotenv import load_dotenv

from api.base_client import BaseCompletionClient
from models.chat import ChatMessage, ChatPayload, ChatSettings
from tools.web.contracts import WebSearchImage, WebSearchResult, WebSearchSource

# Load environment variables from .env file for tests
load_dotenv()


def run(coro):
    return asyncio.run(coro)


async def collect(stream):
    return [chunk async for chunk in stream]


def completion(content):
    """Non-streaming completion object shaped like the OpenAI SDK's."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeProviderError(Exception):
    """Provider error carrying an HTTP status, like the OpenAI SDK's APIStatusError."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class FakeUpstream:
    """Async byte stream that can fail after its chunks and records being closed."""

    def __init__(self, chunks, fail_with: Exception | None = None):
        self.chunks = list(chunks)
        self.fail_with = fail_with
        self.read = 0
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.read < len(self.chunks):
            chunk = self.chunks[self.read]
            self.read += 1
            return chunk
        if self.fail_with is not None:
            raise self.fail_with
        raise StopAsyncIteration

    async def aclose(self):
        self.closed = True


class FakeCompletionClient(BaseCompletionClient):
    provider_name = "fake"

    def __init__(
        self,
        query: str | None = "latest python release",
        chunks=(b"Hello", b" world"),
        query_response=None,
        query_error: Exception | None = None,
        stream_error: Exception | None = None,
        fail_mid_stream: Exception | None = None,
    ):
        self.query_response = query_response if query_response is not None else completion(query)
        self.query_error = query_error
        self.stream_error = stream_error
        self.upstream = FakeUpstream(chunks, fail_with=fail_mid_stream)
        self.calls: list[dict] = []

    async def complete(
        self, messages, settings, *, api_key, stream, temperature=None, max_tokens=None
    ):
        self.calls.append(
            {
                "messages": list(messages),
                "model": settings.model,
                "api_key": api_key,
                "stream": stream,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if not stream:
            if self.query_error is not None:
                raise self.query_error
            return self.query_response
        if self.stream_error is not None:
            raise self.stream_error
        return self.upstream

    def iter_text(self, response):
        return response

    @property
    def stream_calls(self):
        return [c for c in self.calls if c["stream"]]


class FakeSearchClient:
    def __init__(self, result: WebSearchResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.queries: list[str] = []

    async def search(self, query: str) -> WebSearchResult:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.result or WebSearchResult(query=query)


class FakeTavilySDK:
    """Stands in for tavily.AsyncTavilyClient."""

    def __init__(self, response=None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    async def search(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def settings():
    return ChatSettings(model="openai/gpt-4o-mini", temperature=0.7)


@pytest.fixture
def conversation():
    return (
        ChatMessage(role="user", content="Who won the 2022 World Cup?"),
        ChatMessage(role="assistant", content="Argentina won it."),
        ChatMessage(role="user", content="What is the newest Python release?"),
    )


@pytest.fixture
def search_result():
    return WebSearchResult(
        query="latest python release",
        sources=(
            WebSearchSource(
                title="Python Releases", url="https://python.org/downloads", content="3.13 is out."
            ),
            WebSearchSource(
                title="What's New", url="https://docs.python.org/3/whatsnew", content="Changelog."
            ),
        ),
        images=(
            WebSearchImage(url="https://python.org/logo.png", description="Python logo"),
            WebSearchImage(url="https://python.org/banner.png"),
        ),
    )


@pytest.fixture
def web_payload(settings, conversation):
    return ChatPayload(chat_settings=settings, messages=conversation, is_web_search_enabled=True)


@pytest.fixture
def plain_payload(settings, conversation):
    return ChatPayload(chat_settings=settings, messages=conversation, is_web_search_enabled=False)
