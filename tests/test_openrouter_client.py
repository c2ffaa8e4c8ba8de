from types import SimpleNamespace

import pytest

from api.openrouter_client import MAX_TOKENS_BY_MODEL, OpenRouterClient, resolve_max_tokens
from conftest import collect, run
from models.chat import ChatMessage, ChatSettings


class FakeCompletions:
    def __init__(self):
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return "provider-response"


class FakeSDK:
    def __init__(self):
        self.chat = SimpleNamespace(completions=FakeCompletions())


class FakeChunkStream:
    def __init__(self, deltas):
        self.chunks = [
            SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=d))])
            for d in deltas
        ]
        self.chunks.insert(1, SimpleNamespace(choices=[]))
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            yield chunk

    async def close(self):
        self.closed = True


@pytest.fixture
def sdk_factory():
    created = {}

    def factory(api_key):
        sdk = FakeSDK()
        created[api_key] = sdk
        return sdk

    factory.created = created
    return factory


MESSAGES = [ChatMessage(role="user", content="hi")]


def test_quirky_model_gets_fixed_ceiling():
    assert resolve_max_tokens("mistralai/mistral-7b-instruct") == 16000


@pytest.mark.parametrize(
    "model", ["openai/gpt-4o-mini", "mistralai/mistral-7b-instruct:free", "anthropic/claude-3.5"]
)
def test_other_models_are_unbounded(model):
    assert model not in MAX_TOKENS_BY_MODEL
    assert resolve_max_tokens(model) is None


def test_complete_forwards_settings_without_max_tokens(sdk_factory):
    client = OpenRouterClient(client_factory=sdk_factory)
    settings = ChatSettings(model="openai/gpt-4o-mini", temperature=0.3, max_output_tokens=99)

    response = run(client.complete(MESSAGES, settings, api_key="sk-or-1", stream=True))

    assert response == "provider-response"
    assert sdk_factory.created["sk-or-1"].chat.completions.calls == [
        {
            "model": "openai/gpt-4o-mini",
            "messages": [{"role": "user", "content": "hi"}],
            "temperature": 0.3,
            "stream": True,
        }
    ]


def test_complete_uses_quirk_ceiling(sdk_factory):
    client = OpenRouterClient(client_factory=sdk_factory)
    settings = ChatSettings(model="mistralai/mistral-7b-instruct", temperature=0.5)

    run(client.complete(MESSAGES, settings, api_key="k", stream=True))

    assert sdk_factory.created["k"].chat.completions.calls[0]["max_tokens"] == 16000


def test_complete_overrides_take_precedence(sdk_factory):
    client = OpenRouterClient(client_factory=sdk_factory)
    settings = ChatSettings(model="mistralai/mistral-7b-instruct", temperature=0.5)

    run(
        client.complete(
            MESSAGES, settings, api_key="k", stream=False, temperature=0.1, max_tokens=50
        )
    )

    call = sdk_factory.created["k"].chat.completions.calls[0]
    assert call["temperature"] == 0.1
    assert call["max_tokens"] == 50
    assert call["stream"] is False


def test_iter_text_yields_utf8_deltas_and_closes_stream():
    client = OpenRouterClient(client_factory=lambda key: FakeSDK())
    stream = FakeChunkStream(["Hel", "", None, "lo ", "wörld"])

    chunks = run(collect(client.iter_text(stream)))

    assert chunks == [b"Hel", b"lo ", "wörld".encode("utf-8")]
    assert stream.closed is True


def test_sdk_client_uses_openrouter_base_url():
    client = OpenRouterClient()

    sdk = client._create_sdk_client("sk-or-test")

    assert str(sdk.base_url).rstrip("/") == "https://openrouter.ai/api/v1"
    assert sdk.api_key == "sk-or-test"
