"""
Install command - download, verify and install the latest release binary.
"""
from typing import Optional

import typer

from polyinstall.cli.output import InstallerConsole
from polyinstall.core.config_manager import ConfigManager
from polyinstall.core.errors import InstallerError
from polyinstall.core.logger import setup_logger
from polyinstall.core.pipeline import run_install

logger = setup_logger(__name__)


def install(
    ctx: typer.Context,
    install_dir: Optional[str] = typer.Option(
        None, "--install-dir", help="Directory to install into (default: /usr/local/bin)"
    ),
    plain: bool = typer.Option(False, "--plain", help="Disable colors and progress bars"),
) -> None:
    """
    Install the latest release for this platform.

    Resolves the latest tag, downloads the platform tarball and checksums.txt,
    verifies the SHA-256, and moves the binary into the install directory
    (using sudo only if that directory is not writable).
    """
    root = ctx.obj or {}
    if install_dir is None:
        install_dir = root.get("install_dir")
    plain = plain or root.get("plain", False)

    console = InstallerConsole(plain=plain)

    try:
        settings = ConfigManager().resolve(install_dir=install_dir)
        result = run_install(settings, reporter=console)
    except InstallerError as e:
        logger.debug(f"Install aborted at {e.stage}: {e}")
        console.print_error(e)
        raise typer.Exit(code=1)
    finally:
        console.finish_progress()

    console.print_installed(str(result.path), result.binary, result.tag)
