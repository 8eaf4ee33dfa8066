"""Wire models for the OpenAI-compatible chat API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class ModelDescriptor(BaseModel):
    """A model offered by the server's `/v1/models` endpoint."""

    model_config = ConfigDict(extra="allow")

    id: str
    object: str = "model"
    owned_by: str = ""


class ModelList(BaseModel):
    """Response body of `/v1/models`."""

    model_config = ConfigDict(extra="allow")

    data: list[ModelDescriptor] = []


# --- Requests ---


class ImageURL(BaseModel):
    """Image reference, always a data URL here."""

    url: str


class TextPart(BaseModel):
    """Text content part."""

    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    """Image content part."""

    type: Literal["image_url"] = "image_url"
    image_url: ImageURL


class ChatMessage(BaseModel):
    """A message in the request `messages` array."""

    role: Literal["user", "assistant", "system"]
    content: str | list[TextPart | ImagePart]


class ChatRequest(BaseModel):
    """Chat completion request body."""

    model: str
    messages: list[ChatMessage]
    stream: bool = False
    temperature: float = 0.7


# --- Responses ---


class ChunkDelta(BaseModel):
    """Incremental message fields in a streamed chunk."""

    model_config = ConfigDict(extra="allow")

    role: str | None = None
    content: str | None = None


class ChunkChoice(BaseModel):
    """One choice of a streamed chunk."""

    model_config = ConfigDict(extra="allow")

    index: int = 0
    delta: ChunkDelta = ChunkDelta()
    finish_reason: str | None = None


class ChatCompletionChunk(BaseModel):
    """A single `data:` frame of a streamed completion."""

    model_config = ConfigDict(extra="allow")

    choices: list[ChunkChoice]
    model: str | None = None


class ResponseMessage(BaseModel):
    """Assistant message of a non-streamed completion."""

    model_config = ConfigDict(extra="allow")

    role: str = "assistant"
    content: str | None = None


class CompletionChoice(BaseModel):
    """One choice of a non-streamed completion."""

    model_config = ConfigDict(extra="allow")

    index: int = 0
    message: ResponseMessage = ResponseMessage()
    finish_reason: str | None = None


class ChatCompletion(BaseModel):
    """Body of a non-streamed completion."""

    model_config = ConfigDict(extra="allow")

    choices: list[CompletionChoice] = []


class ApiErrorDetail(BaseModel):
    """The `error` object of an error body."""

    model_config = ConfigDict(extra="allow")

    message: str | None = None
    type: str | None = None
    param: str | None = None
    code: str | int | None = None


class ApiError(BaseModel):
    """Error body returned by the server in any mode."""

    error: ApiErrorDetail
