"""The conversation transcript and the operations that mutate it.

A `Transcript` is owned by one conversation. Turns are identified by their
position; at most one turn is streaming, and it is always the last one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal

from lmchat.errors import TranscriptStateError
from lmchat.models import ChatMessage, ImagePart, ImageURL, TextPart

LOGGER = logging.getLogger(__name__)

Role = Literal["user", "assistant", "system"]


@dataclass
class ConversationTurn:
    """A single turn in the conversation."""

    role: Role
    text: str
    attachments: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    streaming: bool = False
    is_error: bool = False

    def to_message(self) -> ChatMessage:
        """Convert the turn to an API message."""
        if not self.attachments:
            return ChatMessage(role=self.role, content=self.text)
        parts: list[TextPart | ImagePart] = [TextPart(text=self.text)]
        parts.extend(ImagePart(image_url=ImageURL(url=url)) for url in self.attachments)
        return ChatMessage(role=self.role, content=parts)


@dataclass
class Transcript:
    """Ordered list of conversation turns."""

    turns: list[ConversationTurn] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.turns)

    @property
    def streaming_turn(self) -> ConversationTurn | None:
        """Return the streaming turn, if any."""
        if self.turns and self.turns[-1].streaming:
            return self.turns[-1]
        return None

    def append_user_turn(self, text: str, attachments: list[str] | None = None) -> ConversationTurn:
        """Append a user turn."""
        turn = ConversationTurn(role="user", text=text, attachments=list(attachments or []))
        self.turns.append(turn)
        return turn

    def begin_assistant_turn(self) -> ConversationTurn:
        """Append an empty, streaming assistant turn."""
        if any(turn.streaming for turn in self.turns):
            msg = "Cannot begin an assistant turn while another turn is streaming."
            raise TranscriptStateError(msg)
        turn = ConversationTurn(role="assistant", text="", streaming=True)
        self.turns.append(turn)
        return turn

    def fold_delta(self, delta: str) -> bool:
        """Append a delta to the streaming assistant turn.

        Returns False, leaving the transcript untouched, when the last turn
        is not a streaming assistant turn.
        """
        turn = self.streaming_turn
        if turn is None or turn.role != "assistant":
            LOGGER.debug("Dropping delta, no streaming assistant turn: %r", delta)
            return False
        turn.text += delta
        return True

    def complete_streaming(self) -> None:
        """Mark the streaming turn as finished."""
        turn = self.streaming_turn
        if turn is not None:
            turn.streaming = False

    def fail_streaming(self, error_message: str) -> None:
        """Finish the streaming turn with an error.

        Partial output stays in the transcript and the error follows it as a
        system turn. An empty placeholder is replaced by the error turn.
        """
        error_turn = ConversationTurn(role="system", text=error_message, is_error=True)
        turn = self.streaming_turn
        if turn is None:
            self.turns.append(error_turn)
            return
        if turn.text:
            turn.streaming = False
            self.turns.append(error_turn)
        else:
            self.turns[-1] = error_turn

    def reset_on_model_change(self) -> int:
        """Clear the transcript. Returns the number of turns removed."""
        count = len(self.turns)
        self.turns.clear()
        return count

    def request_messages(self) -> list[ChatMessage]:
        """Build the `messages` array for the next request."""
        return [
            turn.to_message()
            for turn in self.turns
            if not turn.is_error and not turn.streaming
        ]
