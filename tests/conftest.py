"""Shared test fixtures and configuration."""

from __future__ import annotations

import contextlib
import io
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx
import pytest
from rich.console import Console

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Set default timeout for all tests."""
    for item in items:
        with contextlib.suppress(AttributeError):
            item.add_marker(pytest.mark.timeout(3))


@pytest.fixture
def mock_console() -> Console:
    """Provide a console that writes to a StringIO for testing."""
    return Console(file=io.StringIO(), width=80, force_terminal=True)


@pytest.fixture
def mock_logger() -> logging.Logger:
    """Provide a mock logger for testing."""
    logger = logging.getLogger("test")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture(autouse=True)
def state_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep persisted preferences out of the user's home directory."""
    path = tmp_path / "state.json"
    monkeypatch.setattr("lmchat.core.preferences.STATE_PATH", path)
    return path


def _sse_frame(content: str | None = None, *, role: str | None = None) -> str:
    """Build one `data:` line of a streamed completion."""
    delta: dict[str, Any] = {}
    if role is not None:
        delta["role"] = role
    if content is not None:
        delta["content"] = content
    chunk = {"object": "chat.completion.chunk", "choices": [{"index": 0, "delta": delta}]}
    return f"data: {json.dumps(chunk, ensure_ascii=False)}\n\n"


def _sse_body(*contents: str, done: bool = True) -> bytes:
    """Build a complete event-stream body from content deltas."""
    body = _sse_frame(role="assistant") + "".join(_sse_frame(c) for c in contents)
    if done:
        body += "data: [DONE]\n\n"
    return body.encode()


@pytest.fixture
def sse_frame() -> Callable[..., str]:
    """Builder for single `data:` lines."""
    return _sse_frame


@pytest.fixture
def sse_body() -> Callable[..., bytes]:
    """Builder for complete event-stream bodies."""
    return _sse_body


@pytest.fixture
def models_payload() -> dict[str, Any]:
    """A `/v1/models` response body."""
    return {
        "object": "list",
        "data": [
            {"id": "qwen3-8b", "object": "model", "owned_by": "organization_owner"},
            {"id": "gemma-3-4b", "object": "model", "owned_by": "organization_owner"},
        ],
    }


@pytest.fixture
def mock_server(
    models_payload: dict[str, Any],
) -> Callable[..., tuple[httpx.MockTransport, list[httpx.Request]]]:
    """Build a fake OpenAI-compatible server.

    The returned factory takes the streamed chat body (or a response) and
    returns the transport plus the list of requests it received.
    """

    def factory(
        chat: bytes | httpx.Response = b"",
        models: httpx.Response | None = None,
    ) -> tuple[httpx.MockTransport, list[httpx.Request]]:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path == "/v1/models":
                return models or httpx.Response(200, json=models_payload)
            if request.url.path == "/v1/chat/completions":
                if isinstance(chat, httpx.Response):
                    return chat
                return httpx.Response(
                    200,
                    content=chat,
                    headers={"content-type": "text/event-stream"},
                )
            return httpx.Response(404, json={"error": {"message": "Not found"}})

        return httpx.MockTransport(handler), requests

    return factory
