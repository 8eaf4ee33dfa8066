"""Tests for the chat session controller."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest

from lmchat.constants import ABORTED_MESSAGE, ERROR_HINT, NO_CONTENT_MESSAGE
from lmchat.session import ChatSession

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from lmchat.core.transcript import Transcript


def _session(transport: httpx.MockTransport, **kwargs: object) -> ChatSession:
    return ChatSession(base_url="http://lmstudio.test:1234", transport=transport, **kwargs)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_refresh_models_selects_first(mock_server: Callable) -> None:
    """The first model is selected when nothing is selected yet."""
    transport, _ = mock_server()
    session = _session(transport)
    models = await session.refresh_models()
    assert [m.id for m in models] == ["qwen3-8b", "gemma-3-4b"]
    assert session.selected_model == "qwen3-8b"
    assert session.connection_error is None


@pytest.mark.asyncio
async def test_refresh_models_keeps_valid_selection(mock_server: Callable) -> None:
    """A selection that is still offered survives a refresh."""
    transport, _ = mock_server()
    session = _session(transport, selected_model="gemma-3-4b")
    session.transcript.append_user_turn("keep me")
    await session.refresh_models()
    assert session.selected_model == "gemma-3-4b"
    assert len(session.transcript) == 1


@pytest.mark.asyncio
async def test_refresh_models_http_error_clears_list_and_selection(mock_server: Callable) -> None:
    """An HTTP error clears the model list and the selection."""
    transport, _ = mock_server(models=httpx.Response(500))
    session = _session(transport, selected_model="qwen3-8b")
    assert await session.refresh_models() == []
    assert session.models == []
    assert session.selected_model is None
    assert "500" in (session.connection_error or "")


@pytest.mark.asyncio
async def test_refresh_models_connectivity_error_keeps_transcript() -> None:
    """A connection failure is reported without touching the transcript."""

    def handler(request: httpx.Request) -> httpx.Response:
        msg = "refused"
        raise httpx.ConnectError(msg, request=request)

    session = _session(httpx.MockTransport(handler), selected_model="qwen3-8b")
    session.transcript.append_user_turn("Hi")
    await session.refresh_models()
    assert session.connection_error is not None
    assert len(session.transcript) == 1
    assert session.selected_model == "qwen3-8b"


def test_select_model_clears_transcript() -> None:
    """Changing the model clears a non-empty transcript."""
    session = ChatSession(selected_model="qwen3-8b")
    session.transcript.append_user_turn("Hi")
    assert session.select_model("gemma-3-4b")
    assert session.transcript.turns == []


def test_select_same_model_keeps_transcript() -> None:
    """Re-selecting the current model is not a change."""
    session = ChatSession(selected_model="qwen3-8b")
    session.transcript.append_user_turn("Hi")
    assert not session.select_model("qwen3-8b")
    assert len(session.transcript) == 1


@pytest.mark.asyncio
async def test_send_streams_into_transcript(mock_server: Callable, sse_body: Callable[..., bytes]) -> None:
    """Each delta is folded and reported before the next one."""
    transport, requests = mock_server(chat=sse_body("<think>hmm</think>", "Hel", "lo"))
    session = _session(transport, selected_model="qwen3-8b")
    snapshots: list[tuple[str, bool]] = []

    def on_update(transcript: Transcript) -> None:
        turn = transcript.turns[-1]
        snapshots.append((turn.text, turn.streaming))

    turn = await session.send("Hi", on_update=on_update)

    assert turn is not None
    assert turn.text == "<think>hmm</think>Hello"
    assert not turn.streaming
    assert not session.sending
    assert snapshots == [
        ("", True),
        ("<think>hmm</think>", True),
        ("<think>hmm</think>Hel", True),
        ("<think>hmm</think>Hello", True),
        ("<think>hmm</think>Hello", False),
    ]
    body = json.loads(requests[0].content)
    assert body["model"] == "qwen3-8b"
    assert body["messages"] == [{"role": "user", "content": "Hi"}]


@pytest.mark.asyncio
async def test_send_includes_history(mock_server: Callable, sse_body: Callable[..., bytes]) -> None:
    """Earlier turns are sent with the new message."""
    transport, requests = mock_server(chat=sse_body("Fine."))
    session = _session(transport, selected_model="qwen3-8b")
    await session.send("Hi")
    await session.send("How are you?")
    body = json.loads(requests[-1].content)
    assert body["messages"] == [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Fine."},
        {"role": "user", "content": "How are you?"},
    ]


@pytest.mark.asyncio
async def test_send_ignored_without_model_or_text(mock_server: Callable) -> None:
    """Nothing is sent for blank text or without a model."""
    transport, requests = mock_server()
    session = _session(transport)
    assert await session.send("Hi") is None
    session.selected_model = "qwen3-8b"
    assert await session.send("   ") is None
    assert requests == []
    assert session.transcript.turns == []


@pytest.mark.asyncio
async def test_send_ignored_while_sending(mock_server: Callable) -> None:
    """The sending flag blocks a second message."""
    transport, requests = mock_server()
    session = _session(transport, selected_model="qwen3-8b", sending=True)
    assert await session.send("Hi") is None
    assert requests == []


@pytest.mark.asyncio
async def test_send_http_error_replaces_placeholder(mock_server: Callable) -> None:
    """A failed request leaves exactly one system error turn."""
    response = httpx.Response(400, json={"error": {"message": "Model is not loaded"}})
    transport, _ = mock_server(chat=response)
    session = _session(transport, selected_model="qwen3-8b")
    turn = await session.send("Hi")
    assert [t.role for t in session.transcript.turns] == ["user", "system"]
    assert turn is session.transcript.turns[-1]
    assert turn.text == f"Error: Model is not loaded. {ERROR_HINT}"
    assert turn.is_error


@pytest.mark.asyncio
async def test_send_interrupted_keeps_partial(mock_server: Callable, sse_frame: Callable[..., str]) -> None:
    """A dropped connection keeps the partial reply and appends the error."""

    async def chunks() -> AsyncIterator[bytes]:
        yield sse_frame("Partial").encode()
        msg = "reset"
        raise httpx.ReadError(msg)

    transport, _ = mock_server(chat=httpx.Response(200, content=chunks()))
    session = _session(transport, selected_model="qwen3-8b")
    await session.send("Hi")
    turns = session.transcript.turns
    assert [t.role for t in turns] == ["user", "assistant", "system"]
    assert turns[1].text == "Partial"
    assert not turns[1].streaming
    assert "Connection lost" in turns[2].text
    assert not session.sending


@pytest.mark.asyncio
async def test_send_without_streaming(mock_server: Callable) -> None:
    """In non-streaming mode the whole reply is folded at once."""
    response = httpx.Response(200, json={"choices": [{"message": {"content": "All at once"}}]})
    transport, requests = mock_server(chat=response)
    session = _session(transport, selected_model="qwen3-8b", stream=False)
    turn = await session.send("Hi")
    assert turn is not None
    assert turn.text == "All at once"
    assert json.loads(requests[0].content)["stream"] is False


@pytest.mark.asyncio
async def test_send_without_streaming_empty_reply(mock_server: Callable) -> None:
    """An empty non-streamed reply is replaced by a notice."""
    transport, _ = mock_server(chat=httpx.Response(200, json={"choices": []}))
    session = _session(transport, selected_model="qwen3-8b", stream=False)
    turn = await session.send("Hi")
    assert turn is not None
    assert turn.text == NO_CONTENT_MESSAGE


@pytest.mark.asyncio
async def test_send_undecodable_stream_fails_turn(mock_server: Callable) -> None:
    """A decoding failure ends in an error turn and no streaming placeholder."""
    response = httpx.Response(
        200,
        stream=httpx.ByteStream(b"definitely not gzip"),
        headers={"content-encoding": "gzip", "content-type": "text/event-stream"},
    )
    transport, _ = mock_server(chat=response)
    session = _session(transport, selected_model="qwen3-8b")
    turn = await session.send("Hi")
    assert turn is not None
    assert turn.is_error
    assert [t.role for t in session.transcript.turns] == ["user", "system"]
    assert not any(t.streaming for t in session.transcript.turns)
    assert not session.sending


@pytest.mark.asyncio
async def test_send_callback_error_finalizes_turn(
    mock_server: Callable,
    sse_body: Callable[..., bytes],
) -> None:
    """A failing update callback propagates without leaving a streaming turn."""
    transport, _ = mock_server(chat=sse_body("Hello"))
    session = _session(transport, selected_model="qwen3-8b")

    def on_update(_transcript: Transcript) -> None:
        msg = "render failed"
        raise RuntimeError(msg)

    with pytest.raises(RuntimeError, match="render failed"):
        await session.send("Hi", on_update=on_update)

    turns = session.transcript.turns
    assert [t.role for t in turns] == ["user", "system"]
    assert turns[-1].text == ABORTED_MESSAGE
    assert not any(t.streaming for t in turns)
    assert not session.sending

    turn = await session.send("Again")
    assert turn is not None
    assert turn.text == "Hello"
    assert [t.role for t in session.transcript.turns] == ["user", "system", "user", "assistant"]
    assert not any(t.streaming for t in session.transcript.turns)
