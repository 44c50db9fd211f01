"""
Rich traceback handler with secret filtering.

Provides global traceback installation and short failure summaries.
Reference: https://rich.readthedocs.io/en/stable/traceback.html

Locals are NOT shown in tracebacks by default. To enable them in debug mode
set POLYINSTALL_TRACEBACK_LOCALS=1.
"""
import os
from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.traceback import install as install_rich_traceback

SECRET_PATTERNS = ["key=", "token=", "password=", "secret="]


def install_traceback_handler(debug: bool = False) -> None:
    """
    Install Rich traceback handler globally.

    Args:
        debug: If True, show extra context lines around each frame.
    """
    console = Console(stderr=True)

    show_locals = os.getenv("POLYINSTALL_TRACEBACK_LOCALS", "").lower() in ("1", "true", "yes")

    if show_locals:
        console.print(
            "[dim yellow]Warning: Traceback locals display is enabled. "
            "Secrets may be visible in error output.[/dim yellow]"
        )

    install_rich_traceback(
        console=console,
        show_locals=show_locals,
        locals_max_length=10 if show_locals else 0,
        locals_max_string=80 if show_locals else 0,
        suppress=[],
        width=None,
        extra_lines=3 if debug else 1,
        theme=None,
        word_wrap=True,
    )


def mask_secrets(message: str) -> str:
    """Mask anything following key=/token=/password=/secret= in a message."""
    for pattern in SECRET_PATTERNS:
        lowered = message.lower()
        idx = lowered.find(pattern)
        if idx == -1:
            continue
        end_idx = message.find(" ", idx + len(pattern))
        if end_idx == -1:
            end_idx = len(message)
        message = message[:idx + len(pattern)] + "***" + message[end_idx:]
    return message


def print_failure_summary(
    stage: str,
    error: Exception,
    console: Optional[Console] = None
) -> None:
    """
    Print a short error summary for unexpected exceptions.

    Full tracebacks are reserved for debug mode.

    Args:
        stage: Stage name where error occurred (e.g., "download", "install")
        error: The exception that was raised
        console: Optional Console instance (defaults to stderr)
    """
    if console is None:
        console = Console(stderr=True)

    console.print(f"[bold red]<x> {stage} | failed[/bold red]")
    console.print(f"[red]    cause: {escape(mask_secrets(str(error)))}[/red]")

    if os.getenv("LOG_LEVEL", "").lower() != "debug":
        console.print("[dim]    run with --debug for full traceback[/dim]")
