"""Decoding of OpenAI-style server-sent event streams into content deltas.

The body of a streamed chat completion is a sequence of lines such as::

    data: {"choices":[{"delta":{"content":"Hel"}}]}
    data: {"choices":[{"delta":{"content":"lo"}}]}
    data: [DONE]

Bytes arrive in arbitrary chunks, so a chunk may end inside a line or even
inside a multi-byte character. `SSEDecoder` keeps the state needed to
reassemble complete lines and is independent of any transport.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from lmchat.constants import SSE_DATA_PREFIX, SSE_DONE_PAYLOAD
from lmchat.errors import ServerStreamError, StreamDecodeError
from lmchat.models import ApiError, ChatCompletionChunk

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterable

LOGGER = logging.getLogger(__name__)


def parse_chunk(line: str) -> dict[str, Any] | None:
    """Return the JSON object of a `data:` line, or None for any other line.

    Raises `StreamDecodeError` when the payload is not a JSON object.
    """
    line = line.strip()
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    payload = line[len(SSE_DATA_PREFIX) :].strip()
    if payload == SSE_DONE_PAYLOAD:
        return None
    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON in event frame: {e}"
        raise StreamDecodeError(msg) from e
    if not isinstance(parsed, dict):
        msg = f"Expected a JSON object, got {type(parsed).__name__}"
        raise StreamDecodeError(msg)
    return parsed


def extract_content_from_chunk(chunk: dict[str, Any]) -> str | None:
    """Return the first choice's content delta of a parsed frame."""
    if "error" in chunk and "choices" not in chunk:
        raise ServerStreamError(_stream_error_message(chunk))
    try:
        frame = ChatCompletionChunk.model_validate(chunk)
    except ValidationError as e:
        msg = f"Unexpected frame shape: {e.error_count()} validation error(s)"
        raise StreamDecodeError(msg) from e
    if not frame.choices:
        return None
    return frame.choices[0].delta.content or None


def _stream_error_message(chunk: dict[str, Any]) -> str:
    try:
        detail = ApiError.model_validate(chunk).error
    except ValidationError:
        return str(chunk["error"])
    return detail.message or "Unknown server error"


def is_done_line(line: str) -> bool:
    """Whether the line is the terminal `data: [DONE]` sentinel."""
    line = line.strip()
    if not line.startswith(SSE_DATA_PREFIX):
        return False
    return line[len(SSE_DATA_PREFIX) :].strip() == SSE_DONE_PAYLOAD


class SSEDecoder:
    """Incremental decoder from raw body bytes to content deltas.

    Feed it every chunk read from the transport. The deltas returned across
    all calls are the same no matter where the chunk boundaries fall.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self.done = False
        self.error: ServerStreamError | None = None
        self.skipped_frames = 0

    def feed(self, data: bytes) -> list[str]:
        """Consume one chunk of bytes and return the deltas it completes."""
        if self.done:
            return []
        self._buffer += self._decoder.decode(data)
        *lines, self._buffer = self._buffer.split("\n")
        return self._process_lines(lines)

    def flush(self) -> list[str]:
        """Process whatever is left once the transport has closed."""
        if self.done:
            return []
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        deltas = self._process_lines([tail])
        self.done = True
        return deltas

    def _process_lines(self, lines: list[str]) -> list[str]:
        deltas: list[str] = []
        for line in lines:
            if is_done_line(line):
                self.done = True
                self._buffer = ""
                break
            try:
                chunk = parse_chunk(line)
                if chunk is None:
                    continue
                piece = extract_content_from_chunk(chunk)
            except ServerStreamError as e:
                # Deltas decoded before the error are still delivered.
                self.error = e
                self.done = True
                self._buffer = ""
                break
            except StreamDecodeError as e:
                self.skipped_frames += 1
                LOGGER.debug("Skipping malformed frame %r: %s", line, e)
                continue
            if piece:
                deltas.append(piece)
        return deltas


async def iter_content_deltas(
    chunks: AsyncIterable[bytes],
    decoder: SSEDecoder | None = None,
) -> AsyncGenerator[str, None]:
    """Yield content deltas from an async iterable of body chunks."""
    decoder = decoder or SSEDecoder()
    async for data in chunks:
        for delta in decoder.feed(data):
            yield delta
        if decoder.done:
            break
    else:
        for delta in decoder.flush():
            yield delta
    if decoder.error is not None:
        raise decoder.error
