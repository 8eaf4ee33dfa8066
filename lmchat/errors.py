"""Exception hierarchy for talking to an OpenAI-compatible server."""

from __future__ import annotations

from lmchat.constants import ERROR_HINT


class ChatClientError(Exception):
    """Base class for all recoverable client errors."""

    def user_message(self) -> str:
        """Return the text shown to the user when a chat turn fails."""
        return f"Error: {self}. {ERROR_HINT}"


class ConnectivityError(ChatClientError):
    """The request never reached the server."""


class HTTPStatusError(ChatClientError):
    """The server answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class StreamDecodeError(ChatClientError):
    """A single server-sent event frame could not be decoded."""


class TransportInterruptedError(ChatClientError):
    """The connection dropped while the response was streaming."""


class ServerStreamError(ChatClientError):
    """The server reported an error inside the event stream."""


class TranscriptStateError(RuntimeError):
    """A transcript operation was called in the wrong state."""
