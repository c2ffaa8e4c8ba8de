import json

import pytest

from conftest import FakeUpstream, collect, run
from models.errors import CompletionStreamingError
from orchestrator.stream_multiplexer import encode_metadata_frame, multiplex


def test_metadata_frame_comes_first_and_alone(search_result):
    upstream = FakeUpstream([b"Hello", b" world"])

    chunks = run(collect(multiplex(upstream, search_result)))

    assert chunks[1:] == [b"Hello", b" world"]
    first = chunks[0]
    assert first.endswith(b"\n")
    assert first.count(b"\n") == 1
    frame = json.loads(first)
    assert frame == {
        "metadata": {
            "webSearchSources": {
                "sources": [
                    {
                        "title": "Python Releases",
                        "url": "https://python.org/downloads",
                        "content": "3.13 is out.",
                    },
                    {
                        "title": "What's New",
                        "url": "https://docs.python.org/3/whatsnew",
                        "content": "Changelog.",
                    },
                ],
                "images": [
                    {"url": "https://python.org/logo.png", "description": "Python logo"},
                    {"url": "https://python.org/banner.png", "description": ""},
                ],
                "query": "latest python release",
            },
            "isWebSearch": True,
        }
    }


def test_metadata_is_written_before_upstream_is_read(search_result):
    upstream = FakeUpstream([b"a"])
    frames = multiplex(upstream, search_result)

    async def first_frame():
        frame = await frames.__anext__()
        await frames.aclose()
        return frame

    assert run(first_frame()) == encode_metadata_frame(search_result)
    assert upstream.read == 0


def test_without_metadata_bytes_pass_through_exactly():
    raw = [b"\x00{not json}\n", "ünïcode".encode("utf-8"), b"", b"tail"]

    chunks = run(collect(multiplex(FakeUpstream(raw))))

    assert chunks == raw
    assert b"".join(chunks) == b"".join(raw)


def test_empty_upstream_with_metadata_emits_only_the_frame(search_result):
    chunks = run(collect(multiplex(FakeUpstream([]), search_result)))

    assert chunks == [encode_metadata_frame(search_result)]


def test_upstream_failure_terminates_with_error(search_result):
    upstream = FakeUpstream([b"partial"], fail_with=ConnectionError("connection reset"))
    received = []

    async def consume():
        async for chunk in multiplex(upstream, search_result):
            received.append(chunk)

    with pytest.raises(CompletionStreamingError) as exc_info:
        run(consume())

    assert received == [encode_metadata_frame(search_result), b"partial"]
    assert "connection reset" in exc_info.value.message
    assert upstream.closed is True


def test_consumer_stopping_early_closes_upstream():
    upstream = FakeUpstream([b"one", b"two", b"three"])

    async def take_one():
        frames = multiplex(upstream)
        chunk = await frames.__anext__()
        await frames.aclose()
        return chunk

    assert run(take_one()) == b"one"
    assert upstream.read == 1
    assert upstream.closed is True
