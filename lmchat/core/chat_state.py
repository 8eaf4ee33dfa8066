"""Interactive chat state and slash command handling.

This module provides state for the interactive `chat` command and handles
slash commands like /model, /image, /think, /clear, /help.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from lmchat.client import encode_image

if TYPE_CHECKING:
    from lmchat.core.render import TranscriptView
    from lmchat.session import ChatSession


@dataclass
class ChatUIState:
    """Runtime state of an interactive chat."""

    session: ChatSession
    view: TranscriptView
    pending_attachments: list[str] = field(default_factory=list)
    should_exit: bool = False

    def take_attachments(self) -> list[str]:
        """Return and clear the images queued for the next message."""
        attachments, self.pending_attachments = self.pending_attachments, []
        return attachments

    def toggle_theme(self) -> str:
        """Switch between the dark and light theme and return the new one."""
        self.view.theme = "light" if self.view.theme == "dark" else "dark"
        return self.view.theme


def parse_slash_command(text: str) -> tuple[str, list[str]] | None:
    """Parse a slash command from text.

    Args:
        text: The input text to parse

    Returns:
        Tuple of (command, args) if it's a slash command, None otherwise

    """
    text = text.strip()
    if not text.startswith("/"):
        return None

    parts = text[1:].split()
    if not parts:
        return None

    command = parts[0].lower()
    args = parts[1:]
    return command, args


async def handle_slash_command(
    command: str,
    args: list[str],
    state: ChatUIState,
) -> str:
    """Execute a slash command and return a response message.

    Args:
        command: The command name (without slash)
        args: Command arguments
        state: The chat state

    Returns:
        Response message to display to the user

    """
    if command == "help":
        return _handle_help()

    if command in ("quit", "exit"):
        state.should_exit = True
        return "Bye!"

    if command == "clear":
        return _handle_clear(state)

    if command == "models":
        return await _handle_models(state)

    if command == "model":
        return _handle_model(args, state)

    if command == "image":
        return _handle_image(args, state)

    if command == "think":
        return _handle_think(state)

    if command == "theme":
        return f"Theme is now {state.toggle_theme()}"

    return f"Unknown command: /{command}. Type /help for available commands."


def _handle_help() -> str:
    """Show help message."""
    return """\
Available commands:
  /models        Refresh and list the server's models
  /model <id>    Switch model (clears the conversation)
  /image <path>  Attach an image to the next message
  /think         Expand or collapse the latest reasoning
  /theme         Toggle dark/light theme
  /clear         Clear the conversation
  /help          Show this help message
  /quit          Exit chat"""


def _handle_clear(state: ChatUIState) -> str:
    """Handle /clear command."""
    count = state.session.transcript.reset_on_model_change()
    state.view.reset()
    return f"Cleared {count} turns from the conversation"


async def _handle_models(state: ChatUIState) -> str:
    """Handle /models command."""
    session = state.session
    models = await session.refresh_models()
    if session.connection_error:
        return f"Could not list models: {session.connection_error}"
    if not models:
        return "No models found"
    lines = ["Available models:"]
    for model in models:
        marker = "*" if model.id == session.selected_model else " "
        owner = f" ({model.owned_by})" if model.owned_by else ""
        lines.append(f"  {marker} {model.id}{owner}")
    return "\n".join(lines)


def _handle_model(args: list[str], state: ChatUIState) -> str:
    """Handle /model command."""
    session = state.session
    if not args:
        return f"Current model: {session.selected_model or 'none'}. Use /model <id>"
    model_id = args[0]
    if session.models and model_id not in session.model_ids:
        return f"Unknown model: {model_id}. Use /models to see available models."
    if session.select_model(model_id):
        state.view.reset()
        return f"Switched to {model_id}, conversation cleared"
    return f"Already using {model_id}"


def _handle_image(args: list[str], state: ChatUIState) -> str:
    """Handle /image command."""
    if not args:
        return "Usage: /image <path>"
    path = Path(" ".join(args)).expanduser()
    if not path.is_file():
        return f"File not found: {path}"
    try:
        state.pending_attachments.append(encode_image(path))
    except ValueError as e:
        return str(e)
    return f"Attached {path.name} ({len(state.pending_attachments)} image(s) pending)"


def _handle_think(state: ChatUIState) -> str:
    """Handle /think command."""
    expanded = state.view.toggle_latest()
    if expanded is None:
        return "No reasoning to show"
    return "Reasoning expanded" if expanded else "Reasoning collapsed"
