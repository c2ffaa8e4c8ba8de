from types import SimpleNamespace

import pytest

from conftest import FakeCompletionClient, completion, run
from models.errors import QueryGenerationFailed
from orchestrator.query_deriver import SearchQueryDeriver, build_query_prompt


def test_derive_uses_one_short_non_streaming_call(settings):
    client = FakeCompletionClient(query="  python 3.13 release date \n")

    query = run(SearchQueryDeriver(client).derive("When is 3.13 out?", settings, api_key="k"))

    assert query == "python 3.13 release date"
    assert len(client.calls) == 1
    call = client.calls[0]
    assert call["stream"] is False
    assert call["temperature"] == 0.1
    assert call["max_tokens"] == 50
    assert call["model"] == settings.model
    assert call["api_key"] == "k"
    assert [m.role for m in call["messages"]] == ["system"]
    assert call["messages"][0].content == build_query_prompt("When is 3.13 out?")


def test_prompt_embeds_user_message_verbatim():
    prompt = build_query_prompt('say "hi" & <bye>')

    assert 'User\'s message: "say "hi" & <bye>"' in prompt
    assert "Return only the search query itself" in prompt
    assert prompt.endswith("Search Query:")


@pytest.mark.parametrize(
    "response",
    [
        completion(""),
        completion("   \n\t"),
        completion(None),
        SimpleNamespace(choices=[]),
        SimpleNamespace(choices=None),
        SimpleNamespace(choices=[SimpleNamespace(message=None)]),
        SimpleNamespace(choices=[SimpleNamespace()]),
    ],
)
def test_unusable_response_fails_query_generation(settings, response):
    client = FakeCompletionClient(query_response=response)

    with pytest.raises(QueryGenerationFailed) as exc_info:
        run(SearchQueryDeriver(client).derive("question", settings, api_key="k"))

    assert exc_info.value.message == "Failed to generate search query from AI."
    assert exc_info.value.http_status == 500


def test_provider_errors_propagate_unchanged(settings):
    error = RuntimeError("boom")
    client = FakeCompletionClient(query_error=error)

    with pytest.raises(RuntimeError) as exc_info:
        run(SearchQueryDeriver(client).derive("question", settings, api_key="k"))

    assert exc_info.value is error
