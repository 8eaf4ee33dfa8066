"""Common command setup utilities."""

from __future__ import annotations

import logging
from typing import NamedTuple

import typer
from pydantic import ValidationError
from rich.markup import escape

from lmchat.config import GeneralConfig, ServerConfig
from lmchat.core.preferences import Preferences, load_preferences, save_preferences
from lmchat.core.utils import print_error_message
from lmchat.session import ChatSession

LOGGER = logging.getLogger(__name__)


class CommandConfig(NamedTuple):
    """Configuration for a command."""

    general_cfg: GeneralConfig
    server_cfg: ServerConfig
    preferences: Preferences


def setup_command(
    *,
    base_url: str | None,
    model: str | None,
    temperature: float,
    timeout: float,
    stream: bool,
    log_level: str,
    log_file: str | None,
    quiet: bool,
) -> CommandConfig:
    """Common setup for commands: logging, preferences, validated config."""
    # Import locally to avoid circular imports
    from lmchat.cli import setup_logging  # noqa: PLC0415

    setup_logging(log_level, log_file, quiet=quiet)
    general_cfg = GeneralConfig(log_level=log_level, log_file=log_file, quiet=quiet)
    preferences = load_preferences()
    try:
        server_cfg = ServerConfig(
            base_url=base_url or preferences.base_url,
            model=model,
            temperature=temperature,
            timeout=timeout,
            stream=stream,
        )
    except ValidationError as e:
        print_error_message("Invalid server settings.", escape(str(e)))
        raise typer.Exit(1) from e
    return CommandConfig(general_cfg, server_cfg, preferences)


def make_session(server_cfg: ServerConfig) -> ChatSession:
    """Create a chat session from the server settings."""
    return ChatSession(
        base_url=server_cfg.base_url,
        temperature=server_cfg.temperature,
        timeout=server_cfg.timeout,
        stream=server_cfg.stream,
    )


async def connect(session: ChatSession, model: str | None) -> bool:
    """Fetch models and apply the requested model. Returns False on failure."""
    await session.refresh_models()
    if session.connection_error:
        print_error_message(
            session.connection_error,
            f"Please check that the server at [cyan]{session.base_url}[/cyan] is running.",
        )
        return False
    if model:
        if model not in session.model_ids:
            print_error_message(
                f"Model {model!r} is not offered by {session.base_url}.",
                "Available: " + (", ".join(session.model_ids) or "none"),
            )
            return False
        session.select_model(model)
    if not session.selected_model:
        print_error_message("The server does not offer any models.", "Load a model and try again.")
        return False
    return True


def remember_base_url(preferences: Preferences, base_url: str) -> None:
    """Persist the base URL after a successful connection."""
    if preferences.base_url == base_url:
        return
    preferences.base_url = base_url
    try:
        save_preferences(preferences)
    except OSError as e:
        LOGGER.warning("Could not save preferences: %s", e)
