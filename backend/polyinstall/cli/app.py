"""
Root Typer app for the polyinstall CLI.
"""
import os
import typer
from typing import Optional

from polyinstall.core.logger import refresh_log_levels

VERSION = "0.1.0"
APP_NAME = "polyinstall"

app = typer.Typer(
    name=APP_NAME,
    help="Install the latest verified release binary",
    add_completion=False,
    no_args_is_help=False,  # A bare invocation runs the install
)

from polyinstall.cli.commands import doctor, install  # noqa: E402

app.command("install")(install.install)
app.command("doctor")(doctor.doctor)


def version_callback(value: bool) -> None:
    """Display version information."""
    if value:
        typer.echo(f"{APP_NAME} {VERSION}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        help="Show version and exit",
        is_eager=True,
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging and full tracebacks",
    ),
    install_dir: Optional[str] = typer.Option(
        None, "--install-dir", help="Directory to install into (default: /usr/local/bin)"
    ),
    plain: bool = typer.Option(False, "--plain", help="Disable colors and progress bars"),
) -> None:
    """
    Install the latest release binary for this platform.

    With no command, runs `install`.
    """
    if debug:
        os.environ["LOG_LEVEL"] = "debug"
        refresh_log_levels()

    # Subcommands fall back to these when their own options are unset
    ctx.obj = {"install_dir": install_dir, "plain": plain}

    if ctx.invoked_subcommand is not None:
        return

    install.install(ctx, install_dir=install_dir, plain=plain)
