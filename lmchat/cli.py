"""Shared CLI functionality for lmchat."""

from __future__ import annotations

import typer

from .config import load_config
from .core.utils import console, setup_logging

__all__ = ["app", "set_config_defaults", "setup_logging"]

app = typer.Typer(
    name="lmchat",
    help="Chat with models served by a local OpenAI-compatible server (LM Studio, llama.cpp, ...).",
    add_completion=True,
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
) -> None:
    """Chat with local models."""
    if ctx.invoked_subcommand is None:
        console.print("[bold red]lmchat needs a command.[/bold red]")
        console.print(
            "Try [cyan]lmchat chat[/cyan] for a conversation, [cyan]lmchat ask \"...\"[/cyan]"
            " for a single answer, or [cyan]lmchat models[/cyan] to see what the server offers.",
        )
        console.print(ctx.get_help())
        raise typer.Exit
    import dotenv  # noqa: PLC0415

    dotenv.load_dotenv()


def set_config_defaults(ctx: typer.Context, config_file: str | None) -> None:
    """Set the default values for the CLI based on the config file."""
    config = load_config(config_file)
    wildcard_config = config.get("defaults", {})
    # This function is executed inside the subcommand, so the command is the sub command.
    subcommand = ctx.command.name

    if not subcommand:
        ctx.default_map = wildcard_config
        return

    command_config = config.get(subcommand, {})
    defaults = {**wildcard_config, **command_config}
    ctx.default_map = defaults


# Import commands from other modules to register them
from .agents import ask, chat, models  # noqa: E402, F401
