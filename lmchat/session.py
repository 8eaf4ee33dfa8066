"""State of one chat conversation against one server."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lmchat import client
from lmchat.constants import (
    ABORTED_MESSAGE,
    DEFAULT_BASE_URL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TEMPERATURE,
    NO_CONTENT_MESSAGE,
)
from lmchat.core.transcript import ConversationTurn, Transcript
from lmchat.errors import ChatClientError, HTTPStatusError

if TYPE_CHECKING:
    import httpx

    from lmchat.models import ModelDescriptor

LOGGER = logging.getLogger(__name__)

UpdateCallback = Callable[[Transcript], None]


@dataclass
class ChatSession:
    """Connection settings, model selection, and the transcript.

    Only one request is in flight at a time; `send` ignores new messages
    while `sending` is set.
    """

    base_url: str = DEFAULT_BASE_URL
    temperature: float = DEFAULT_TEMPERATURE
    timeout: float = DEFAULT_REQUEST_TIMEOUT
    stream: bool = True
    transport: httpx.AsyncBaseTransport | None = None
    transcript: Transcript = field(default_factory=Transcript)
    models: list[ModelDescriptor] = field(default_factory=list)
    selected_model: str | None = None
    connection_error: str | None = None
    sending: bool = False

    @property
    def model_ids(self) -> list[str]:
        """Identifiers of the models offered by the server."""
        return [m.id for m in self.models]

    def select_model(self, model_id: str | None) -> bool:
        """Select a model. The transcript is cleared when the selection changes."""
        if model_id == self.selected_model:
            return False
        previous = self.selected_model
        self.selected_model = model_id
        cleared = self.transcript.reset_on_model_change()
        LOGGER.debug("Model %s -> %s, cleared %d turn(s)", previous, model_id, cleared)
        return True

    async def refresh_models(self) -> list[ModelDescriptor]:
        """Fetch the model list and keep the selection consistent with it."""
        self.connection_error = None
        try:
            models = await client.fetch_models(
                self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            )
        except ChatClientError as e:
            LOGGER.warning("Fetching models failed: %s", e)
            self.connection_error = str(e)
            self.models = []
            if isinstance(e, HTTPStatusError):
                self.select_model(None)
            return []

        self.models = models
        if not models:
            self.select_model(None)
        elif self.selected_model not in self.model_ids:
            self.select_model(models[0].id)
        return models

    async def send(
        self,
        text: str,
        attachments: list[str] | None = None,
        on_update: UpdateCallback | None = None,
    ) -> ConversationTurn | None:
        """Send a user message and fold the reply into the transcript.

        Returns the last turn after the exchange (the assistant reply or the
        error turn), or None when nothing was sent.
        """
        if not text.strip() or not self.selected_model or self.sending:
            return None

        def notify() -> None:
            if on_update is not None:
                on_update(self.transcript)

        self.sending = True
        try:
            self.transcript.append_user_turn(text, attachments)
            messages = self.transcript.request_messages()
            self.transcript.begin_assistant_turn()
            try:
                notify()
                if self.stream:
                    async for delta in client.stream_chat(
                        self.base_url,
                        self.selected_model,
                        messages,
                        temperature=self.temperature,
                        timeout=self.timeout,
                        transport=self.transport,
                    ):
                        self.transcript.fold_delta(delta)
                        notify()
                else:
                    content = await client.complete_chat(
                        self.base_url,
                        self.selected_model,
                        messages,
                        temperature=self.temperature,
                        timeout=self.timeout,
                        transport=self.transport,
                    )
                    self.transcript.fold_delta(content or NO_CONTENT_MESSAGE)
            except ChatClientError as e:
                LOGGER.warning("Chat request failed: %s", e)
                self.transcript.fail_streaming(e.user_message())
            except BaseException:
                # Never leave the placeholder streaming, even on cancellation.
                self.transcript.fail_streaming(ABORTED_MESSAGE)
                raise
            else:
                self.transcript.complete_streaming()
        finally:
            self.sending = False
        notify()
        return self.transcript.turns[-1]
