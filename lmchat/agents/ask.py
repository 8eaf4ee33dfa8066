"""Ask a single question and stream the answer."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.live import Live

from lmchat import opts
from lmchat.agents._command_setup import connect, make_session, remember_base_url, setup_command
from lmchat.cli import app
from lmchat.client import encode_image
from lmchat.core.reasoning import ReasoningPanelState, split_reasoning
from lmchat.core.render import TranscriptView
from lmchat.core.utils import console, print_error_message

if TYPE_CHECKING:
    from lmchat.core.transcript import Transcript
    from lmchat.session import ChatSession


async def _async_main(
    session: ChatSession,
    prompt: str,
    images: list[Path],
    *,
    model: str | None,
    view: TranscriptView,
    show_reasoning: bool,
    quiet: bool,
) -> int:
    """Main async function, consumes parsed arguments. Returns the exit code."""
    if not await connect(session, model):
        return 1

    try:
        attachments = [encode_image(path.expanduser()) for path in images]
    except (OSError, ValueError) as e:
        print_error_message(f"Could not attach image: {e}")
        return 1

    if quiet:
        turn = await session.send(prompt, attachments)
    else:
        if show_reasoning:
            # The assistant reply is the second turn.
            view.panels[1] = ReasoningPanelState(expanded=True, user_override=True)
        with Live(console=console, refresh_per_second=12) as live:

            def on_update(transcript: Transcript) -> None:
                live.update(view.render_turns(transcript))

            turn = await session.send(prompt, attachments, on_update=on_update)

    if turn is None:
        return 1
    if quiet:
        if turn.is_error:
            print(turn.text)
            return 1
        result = split_reasoning(turn.text, streaming=False)
        if show_reasoning and result.reasoning_text:
            print(result.reasoning_text, end="\n\n")
        print(result.answer_text)
    return 1 if turn.is_error else 0


@app.command("ask")
def ask(
    prompt: str = typer.Argument(..., help="The question to ask."),
    *,
    images: list[Path] | None = typer.Option(  # noqa: B008
        None,
        "--image",
        "-i",
        help="Image file to attach (repeatable).",
    ),
    show_reasoning: bool = typer.Option(
        False,
        "--show-reasoning",
        help="Keep the model's reasoning visible after it finishes.",
    ),
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
    """Ask a single question and stream the answer."""
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
    exit_code = asyncio.run(
        _async_main(
            session,
            prompt,
            images or [],
            model=cfg.server_cfg.model,
            view=TranscriptView(theme=cfg.preferences.theme),
            show_reasoning=show_reasoning,
            quiet=quiet,
        ),
    )
    if session.models:
        remember_base_url(cfg.preferences, session.base_url)
    if exit_code:
        raise typer.Exit(exit_code)
