"""
Installer console output using Rich.
"""
import os
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from polyinstall.core.errors import ChecksumMismatchError, InstallerError
from polyinstall.core.releases import ProgressHook


class InstallerConsole:
    """
    Centralized console for installer output.

    Progress goes to stdout, failures to stderr. Respects --plain and NO_COLOR.
    """

    SIGILS = {
        "detect": "⟁",
        "resolve": "⌬",
        "download": "⇩",
        "verify": "◇",
        "install": "■",
        "config": "⊢",
        "main": "×",
    }

    def __init__(self, plain: bool = False):
        """
        Initialize InstallerConsole.

        Args:
            plain: If True, disable colors and progress bars (for CI/logs)
        """
        self.plain = plain or os.getenv("NO_COLOR", "").lower() in ("1", "true", "yes")

        self.console = Console(no_color=self.plain, highlight=False)
        self.err_console = Console(stderr=True, no_color=self.plain, highlight=False)

        self.colors = {
            "success": "green" if not self.plain else None,
            "processing": "cyan" if not self.plain else None,
            "warning": "yellow" if not self.plain else None,
            "error": "bold red" if not self.plain else None,
        }
        self._progress: Optional[Progress] = None

    def _sigil(self, stage: str) -> str:
        return "" if self.plain else self.SIGILS.get(stage, ">>")

    def stage(self, stage: str, message: str) -> None:
        """Print an in-progress stage line."""
        self.finish_progress()
        self.console.print(
            f"{self._sigil(stage)} {escape(message)}".strip(),
            style=self.colors["processing"],
        )

    def stage_ok(self, stage: str, message: str) -> None:
        """
        Print a stage success line with uniform alignment.

        Args:
            stage: Stage name
            message: Success message
        """
        self.finish_progress()
        t = Table.grid(padding=(0, 1))
        t.add_column(width=2, style="bold")
        t.add_column(width=9, style="bold")
        t.add_column()
        mark = "ok" if self.plain else "[green]✓[/green]"
        t.add_row(self._sigil(stage), stage, f"{mark} {escape(message)}")
        self.console.print(t)

    def download_hook(self, label: str) -> Optional[ProgressHook]:
        """
        Build a progress hook that drives a Rich download bar.

        Returns None in plain mode. The bar starts on the first chunk of a
        response with a known length and stops when the download completes.
        """
        if self.plain:
            return None

        state = {"task": None}

        def hook(downloaded: int, total: Optional[int]) -> None:
            if total is None:
                return
            if state["task"] is None:
                self.finish_progress()
                self._progress = Progress(
                    TextColumn("  [bold]{task.description}[/bold]"),
                    BarColumn(bar_width=None),
                    DownloadColumn(),
                    TransferSpeedColumn(),
                    TimeRemainingColumn(),
                    console=self.console,
                    transient=True,
                )
                self._progress.start()
                state["task"] = self._progress.add_task(escape(label), total=total)
            if self._progress is not None:
                self._progress.update(state["task"], completed=downloaded)
                if downloaded >= total:
                    self.finish_progress()

        return hook

    def finish_progress(self) -> None:
        """Stop any running progress bar."""
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

    def print_installed(self, path: str, binary: str, tag: str) -> None:
        """
        Print the completion panel.

        Args:
            path: Installed binary path
            binary: Binary name
            tag: Installed release tag
        """
        self.finish_progress()
        lines = [
            f"Installed {escape(binary)} to {escape(path)}",
            f"[dim]release: {escape(tag)}[/dim]",
            f"Run '{escape(binary)} --help' to get started.",
        ]
        if self.plain:
            for line in lines:
                self.console.print(line)
            return
        self.console.print(
            Panel.fit(
                "\n".join(lines),
                title="INSTALL COMPLETE",
                border_style=self.colors["success"],
                padding=(0, 1),
            )
        )

    def print_failure(self, stage: str, cause: str) -> None:
        """
        Print a failure rune on stderr.

        Args:
            stage: Stage name where the error occurred
            cause: Error cause/message
        """
        self.finish_progress()
        self.err_console.print(f"<x> {stage} | failed", style=self.colors["error"], markup=False)
        self.err_console.print(f"    └─ cause: {cause}", style=self.colors["error"], markup=False)

    def print_error(self, error: InstallerError) -> None:
        """Render an installer error, with details for checksum mismatches."""
        self.print_failure(error.stage, str(error))
        if isinstance(error, ChecksumMismatchError):
            self.err_console.print(f"  Expected: {error.expected}", markup=False)
            self.err_console.print(f"  Got:      {error.actual}", markup=False)
            self.err_console.print(
                "The downloaded file may have been tampered with. Aborting.",
                style=self.colors["warning"],
                markup=False,
            )
