"""Shared CLI options for lmchat commands."""

from __future__ import annotations

import typer

from lmchat.constants import DEFAULT_REQUEST_TIMEOUT, DEFAULT_TEMPERATURE


def _conf_callback(ctx: typer.Context, value: str | None) -> str | None:
    from lmchat.cli import set_config_defaults  # noqa: PLC0415

    set_config_defaults(ctx, value)
    return value


# --- Server Options ---
BASE_URL = typer.Option(
    None,
    "--base-url",
    "-u",
    help="Base URL of the OpenAI-compatible server (defaults to the last used one).",
    rich_help_panel="Server Options",
)
MODEL = typer.Option(
    None,
    "--model",
    "-m",
    help="Model to chat with (defaults to the first model the server offers).",
    rich_help_panel="Server Options",
)
TEMPERATURE = typer.Option(
    DEFAULT_TEMPERATURE,
    "--temperature",
    help="Sampling temperature.",
    rich_help_panel="Server Options",
)
TIMEOUT = typer.Option(
    DEFAULT_REQUEST_TIMEOUT,
    "--timeout",
    help="Request timeout in seconds.",
    rich_help_panel="Server Options",
)
STREAM = typer.Option(
    True,
    "--stream/--no-stream",
    help="Stream the response as it is generated.",
    rich_help_panel="Server Options",
)

# --- General Options ---
LOG_LEVEL = typer.Option(
    "WARNING",
    "--log-level",
    help="Set the log level (e.g., DEBUG, INFO, WARNING).",
    rich_help_panel="General Options",
)
LOG_FILE = typer.Option(
    None,
    "--log-file",
    help="Path to a file to write logs to.",
    rich_help_panel="General Options",
)
QUIET = typer.Option(
    False,
    "--quiet",
    "-q",
    help="Suppress all output except for the final result.",
    rich_help_panel="General Options",
)
CONFIG_FILE = typer.Option(
    None,
    "--config-file",
    help="Path to a custom config file.",
    is_eager=True,
    callback=_conf_callback,
    rich_help_panel="General Options",
)
