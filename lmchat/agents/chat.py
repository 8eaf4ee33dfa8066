"""An interactive chat with a locally served model.

This command will:
- Connect to the server and pick a model.
- Read messages and slash commands from the terminal.
- Stream each reply, showing the model's reasoning while it thinks.
- Clear the conversation whenever the model changes.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import TYPE_CHECKING

import typer
from rich.live import Live

from lmchat import opts
from lmchat.agents._command_setup import connect, make_session, setup_command
from lmchat.cli import app
from lmchat.core.chat_state import ChatUIState, handle_slash_command, parse_slash_command
from lmchat.core.preferences import save_preferences
from lmchat.core.render import TranscriptView
from lmchat.core.utils import console, print_with_style

if TYPE_CHECKING:
    from lmchat.core.transcript import Transcript

LOGGER = logging.getLogger(__name__)

PROMPT = "[bold]› [/bold]"


async def _read_input() -> str | None:
    try:
        return await asyncio.to_thread(console.input, PROMPT)
    except (EOFError, KeyboardInterrupt):
        return None


async def _handle_message(text: str, state: ChatUIState) -> None:
    """Send one message and render the streamed reply in place."""
    session = state.session
    start = len(session.transcript)
    attachments = state.take_attachments()
    with Live(console=console, refresh_per_second=12) as live:

        def on_update(transcript: Transcript) -> None:
            live.update(state.view.render_turns(transcript, start=start))

        await session.send(text, attachments, on_update=on_update)


async def _async_main(state: ChatUIState, model: str | None) -> None:
    """Main async function, consumes parsed arguments."""
    session = state.session
    if not await connect(session, model):
        return

    print_with_style(
        f"💬 Chatting with {session.selected_model} at {session.base_url}. Type /help for commands.",
    )
    while not state.should_exit:
        text = await _read_input()
        if text is None:
            break
        if not text.strip():
            continue

        command = parse_slash_command(text)
        if command is not None:
            response = await handle_slash_command(*command, state)
            if not session.transcript.turns:
                state.view.reset()
            console.print(response, markup=False)
            if command[0] == "think" and (index := state.view.latest_panel_index()) is not None:
                console.print(state.view.render_turn(index, session.transcript.turns[index]))
            continue

        if not session.selected_model:
            print_with_style("No model selected. Use /models and /model <id>.", style="yellow")
            continue
        await _handle_message(text, state)


@app.command("chat")
def chat(
    *,
    base_url: str | None = opts.BASE_URL,
    model: str | None = opts.MODEL,
    temperature: float = opts.TEMPERATURE,
    timeout: float = opts.TIMEOUT,
    stream: bool = opts.STREAM,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    quiet: bool = opts.QUIET,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """Chat interactively with a model on a local OpenAI-compatible server."""
    cfg = setup_command(
        base_url=base_url,
        model=model,
        temperature=temperature,
        timeout=timeout,
        stream=stream,
        log_level=log_level,
        log_file=log_file,
        quiet=quiet,
    )
    session = make_session(cfg.server_cfg)
    state = ChatUIState(session=session, view=TranscriptView(theme=cfg.preferences.theme))

    with suppress(KeyboardInterrupt):
        asyncio.run(_async_main(state, cfg.server_cfg.model))

    if session.models:
        cfg.preferences.base_url = session.base_url
    cfg.preferences.theme = state.view.theme
    try:
        save_preferences(cfg.preferences)
    except OSError as e:
        LOGGER.warning("Could not save preferences: %s", e)
