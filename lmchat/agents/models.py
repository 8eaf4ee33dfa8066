"""List the models offered by the server."""

from __future__ import annotations

import asyncio

import typer
from rich.table import Table

from lmchat import opts
from lmchat.agents._command_setup import make_session, remember_base_url, setup_command
from lmchat.cli import app
from lmchat.constants import DEFAULT_TEMPERATURE
from lmchat.core.utils import console, print_error_message


@app.command("models")
def models(
    *,
    base_url: str | None = opts.BASE_URL,
    timeout: float = opts.TIMEOUT,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    quiet: bool = opts.QUIET,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """List the models offered by the server."""
    cfg = setup_command(
        base_url=base_url,
        model=None,
        temperature=DEFAULT_TEMPERATURE,
        timeout=timeout,
        stream=True,
        log_level=log_level,
        log_file=log_file,
        quiet=quiet,
    )
    session = make_session(cfg.server_cfg)
    asyncio.run(session.refresh_models())
    if session.connection_error:
        print_error_message(
            session.connection_error,
            f"Please check that the server at [cyan]{session.base_url}[/cyan] is running.",
        )
        raise typer.Exit(1)
    remember_base_url(cfg.preferences, session.base_url)

    if quiet:
        for model_id in session.model_ids:
            print(model_id)
        return

    table = Table(title=f"Models at {session.base_url}")
    table.add_column("ID", style="cyan")
    table.add_column("Owned by")
    for model in session.models:
        table.add_row(model.id, model.owned_by)
    console.print(table)
