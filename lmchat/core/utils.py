"""Console output and logging helpers shared by the commands."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

console = Console()
err_console = Console(stderr=True)


def setup_logging(log_level: str, log_file: str | None, *, quiet: bool) -> None:
    """Configure logging to use Rich on stderr and, optionally, a file.

    Args:
        log_level: Logging level name (debug, info, warning, error).
        log_file: Optional path of a file that receives every record.
        quiet: Only show warnings and errors on the console.

    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = RichHandler(
        console=err_console,
        show_time=True,
        show_level=True,
        show_path=False,  # Don't show file:line - too verbose
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(max(level, logging.WARNING) if quiet else level)
    handlers: list[logging.Handler] = [handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        )
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)

    # httpx logs every request at INFO
    if level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def print_with_style(message: str, style: str = "bold green") -> None:
    """Print a message with a given style."""
    console.print(f"[{style}]{message}[/{style}]")


def print_error_message(message: str, suggestion: str | None = None) -> None:
    """Print an error message in a red panel."""
    body = f"[bold red]{escape(message)}[/bold red]"
    if suggestion:
        body += f"\n\n[yellow]{suggestion}[/yellow]"
    console.print(Panel(body, title="Error", border_style="red"))
