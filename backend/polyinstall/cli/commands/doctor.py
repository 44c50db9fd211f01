"""
Doctor command - read-only diagnostics for the install environment.

Makes no network calls.
"""
import os
import shutil

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from polyinstall.core.checksums import select_hash_backend
from polyinstall.core.config_manager import ConfigManager
from polyinstall.core.errors import InstallerError
from polyinstall.core.target import detect_target

def doctor(
    ctx: typer.Context,
    plain: bool = typer.Option(False, "--plain", help="Disable colors"),
) -> None:
    """
    Check whether this host can install the release binary.

    Reports the detected target triple, the SHA-256 backend, the effective
    configuration and whether the install directory needs sudo.
    Exits 1 if an install would certainly fail.
    """
    plain = plain or (ctx.obj or {}).get("plain", False)
    console = Console(highlight=False, no_color=plain)

    problems = []

    console.print(Panel("[bold]Installer Diagnostics[/bold]", border_style="cyan"))
    console.print()

    try:
        target = detect_target()
        console.print(f"[green]>[/green] Target: {target}")
    except InstallerError as e:
        console.print(f"[red]x[/red] {escape(str(e))}")
        problems.append(str(e))

    try:
        backend, _ = select_hash_backend()
        console.print(f"[green]>[/green] SHA-256 backend: {backend}")
    except InstallerError as e:
        console.print(f"[red]x[/red] {escape(str(e))}")
        problems.append(str(e))

    config = ConfigManager()
    if config.check_toml_file_exists():
        console.print(f"[green]>[/green] config.toml: {escape(str(config.toml_path))}")
    else:
        console.print(f"[dim]-[/dim] No config.toml (using defaults): {escape(str(config.toml_path))}")

    try:
        settings = config.resolve()
    except InstallerError as e:
        console.print(f"[red]x[/red] {escape(str(e))}")
        problems.append(str(e))
        settings = None

    if settings is not None:
        console.print(f"[green]>[/green] Repository: {escape(settings.repo)}")
        console.print(f"[green]>[/green] Binary: {escape(settings.binary)}")

        install_dir = settings.install_dir
        if not install_dir.is_dir():
            console.print(f"[red]x[/red] Install directory missing: {escape(str(install_dir))}")
            problems.append(f"install directory does not exist: {install_dir}")
        elif os.access(install_dir, os.W_OK):
            console.print(f"[green]>[/green] Install directory writable: {escape(str(install_dir))}")
        elif shutil.which("sudo"):
            console.print(
                f"[yellow]![/yellow] Install directory not writable, sudo will be used: "
                f"{escape(str(install_dir))}"
            )
        else:
            console.print(
                f"[red]x[/red] Install directory not writable and sudo not found: "
                f"{escape(str(install_dir))}"
            )
            problems.append(f"cannot write to {install_dir}")

    console.print()
    if problems:
        console.print(f"[bold red]Found {len(problems)} blocking issue(s).[/bold red]")
        console.print()
        raise typer.Exit(code=1)

    console.print("[bold green]All checks passed![/bold green]")
    console.print()
