"""HTTP client for OpenAI-compatible inference servers."""

from __future__ import annotations

import base64
import json
import logging
import mimetypes
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from lmchat import errors
from lmchat.constants import DEFAULT_REQUEST_TIMEOUT, DEFAULT_TEMPERATURE
from lmchat.core.sse import SSEDecoder, iter_content_deltas
from lmchat.models import (
    ApiError,
    ChatCompletion,
    ChatMessage,
    ChatRequest,
    ModelDescriptor,
    ModelList,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

LOGGER = logging.getLogger(__name__)


def _endpoint(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/v1/{path}"


def _request_failed(base_url: str, e: httpx.HTTPError) -> errors.ConnectivityError:
    if isinstance(e, httpx.TransportError):
        msg = f"Could not connect to {base_url}: {e}"
    else:
        msg = f"Request to {base_url} failed: {e}"
    return errors.ConnectivityError(msg)


def error_message_from_body(body: bytes, status_code: int) -> str:
    """Return the server's error message, or a generic one for the status."""
    try:
        parsed: Any = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        parsed = None
    if isinstance(parsed, dict):
        if isinstance(parsed.get("error"), str):
            return parsed["error"]
        try:
            detail = ApiError.model_validate(parsed).error
        except ValidationError:
            detail = None
        if detail is not None and detail.message:
            return detail.message
    return f"API Error: {status_code}"


def encode_image(path: Path) -> str:
    """Read an image file and return it as a data URL."""
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is None or not mime_type.startswith("image/"):
        msg = f"Not an image file: {path}"
        raise ValueError(msg)
    data = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{data}"


def build_payload(
    model: str,
    messages: list[ChatMessage],
    *,
    stream: bool,
    temperature: float = DEFAULT_TEMPERATURE,
) -> dict[str, Any]:
    """Serialize a chat completion request body."""
    request = ChatRequest(model=model, messages=messages, stream=stream, temperature=temperature)
    return request.model_dump(mode="json")


async def fetch_models(
    base_url: str,
    *,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[ModelDescriptor]:
    """List the models offered by the server."""
    url = _endpoint(base_url, "models")
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(url)
    except httpx.HTTPError as e:
        LOGGER.warning("Could not reach %s: %s", url, e)
        raise _request_failed(base_url, e) from e

    if not response.is_success:
        msg = f"Failed to fetch models. Status: {response.status_code}"
        raise errors.HTTPStatusError(response.status_code, msg)
    try:
        return ModelList.model_validate(response.json()).data
    except (ValueError, ValidationError) as e:
        msg = f"Unexpected response from {url}"
        raise errors.HTTPStatusError(response.status_code, msg) from e


async def complete_chat(
    base_url: str,
    model: str,
    messages: list[ChatMessage],
    *,
    temperature: float = DEFAULT_TEMPERATURE,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str | None:
    """Send a non-streaming chat request and return the reply text."""
    url = _endpoint(base_url, "chat/completions")
    payload = build_payload(model, messages, stream=False, temperature=temperature)
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=payload)
    except httpx.HTTPError as e:
        raise _request_failed(base_url, e) from e

    if not response.is_success:
        LOGGER.error("Upstream error %s: %s", response.status_code, response.text)
        msg = error_message_from_body(response.content, response.status_code)
        raise errors.HTTPStatusError(response.status_code, msg)

    try:
        completion = ChatCompletion.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        msg = f"Unexpected response from {url}"
        raise errors.HTTPStatusError(response.status_code, msg) from e
    if not completion.choices:
        return None
    return completion.choices[0].message.content


async def stream_chat(
    base_url: str,
    model: str,
    messages: list[ChatMessage],
    *,
    temperature: float = DEFAULT_TEMPERATURE,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncGenerator[str, None]:
    """Stream a chat completion, yielding content deltas as they arrive.

    Raises:
        ConnectivityError: The server could not be reached.
        HTTPStatusError: The server answered with a non-2xx status.
        TransportInterruptedError: The connection failed mid-stream.
        ServerStreamError: The server sent an error frame.

    """
    url = _endpoint(base_url, "chat/completions")
    payload = build_payload(model, messages, stream=True, temperature=temperature)
    decoder = SSEDecoder()
    started = False
    try:
        async with (
            httpx.AsyncClient(timeout=timeout, transport=transport) as client,
            client.stream("POST", url, json=payload) as response,
        ):
            if not response.is_success:
                body = await response.aread()
                LOGGER.error("Upstream error %s: %s", response.status_code, body[:500])
                msg = error_message_from_body(body, response.status_code)
                raise errors.HTTPStatusError(response.status_code, msg)

            started = True
            async for delta in iter_content_deltas(response.aiter_bytes(), decoder):
                yield delta
    except httpx.HTTPError as e:
        if not started:
            raise _request_failed(base_url, e) from e
        LOGGER.warning("Stream from %s interrupted: %s", url, e)
        msg = f"Connection lost while streaming: {e}"
        raise errors.TransportInterruptedError(msg) from e

    if decoder.skipped_frames:
        LOGGER.info("Skipped %d malformed frame(s)", decoder.skipped_frames)