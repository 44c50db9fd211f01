"""
Install pipeline: Detect -> Resolve -> Download -> Verify -> Install.

Stages run strictly in order; the first failure aborts the run. The temporary
download directory is removed on every exit path, including SIGTERM/SIGHUP.
"""
import signal
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional, Protocol

from .config_manager import InstallSettings
from .checksums import verify_checksum
from .installer import extract_archive, install_binary
from .logger import setup_logger
from .releases import ProgressHook, download_file, release_assets, resolve_latest_tag
from .target import detect_target

logger = setup_logger(__name__)

TERMINATION_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


class Reporter(Protocol):
    """Receives stage progress from the pipeline."""

    def stage(self, stage: str, message: str) -> None: ...

    def stage_ok(self, stage: str, message: str) -> None: ...

    def download_hook(self, label: str) -> Optional[ProgressHook]: ...


class NullReporter:
    def stage(self, stage: str, message: str) -> None:
        pass

    def stage_ok(self, stage: str, message: str) -> None:
        pass

    def download_hook(self, label: str) -> Optional[ProgressHook]:
        return None


@dataclass(frozen=True)
class InstallResult:
    binary: str
    tag: str
    target: str
    path: Path
    sha256: str


@contextmanager
def exit_on_signals() -> Iterator[None]:
    """
    Turn termination signals into SystemExit for the duration of the block.

    Unwinding through SystemExit lets enclosing context managers (the temp
    directory) clean up. Previous handlers are restored afterwards.
    """
    def _handler(signum, frame):
        raise SystemExit(128 + signum)

    previous = {}
    for sig in TERMINATION_SIGNALS:
        try:
            previous[sig] = signal.signal(sig, _handler)
        except ValueError:
            # Not on the main thread; rely on normal unwinding only
            pass
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def run_install(
    settings: InstallSettings,
    reporter: Optional[Reporter] = None,
    detect: Optional[Callable[[], str]] = None,
) -> InstallResult:
    """
    Run the full install sequence.

    Args:
        settings: Resolved install settings
        reporter: Progress sink (defaults to a silent reporter)
        detect: Target detector, called before any network access

    Returns:
        InstallResult describing the installed binary

    Raises:
        InstallerError: Subclass matching the stage that failed
    """
    reporter = reporter or NullReporter()
    detect = detect or detect_target

    target = detect()
    reporter.stage_ok("detect", f"target {target}")

    reporter.stage("resolve", f"resolving latest release of {settings.repo}")
    tag = resolve_latest_tag(settings)
    reporter.stage_ok("resolve", f"latest release {tag}")

    assets = release_assets(settings, tag, target)
    reporter.stage("download", f"Installing {settings.binary} {tag} ({target})...")

    with exit_on_signals(), tempfile.TemporaryDirectory(prefix="polyinstall-") as tmp:
        tmpdir = Path(tmp)
        logger.debug(f"Working directory: {tmpdir}")

        tarball = download_file(
            assets.tarball_url,
            tmpdir / assets.tarball_name,
            settings.timeout,
            reporter.download_hook(assets.tarball_name),
        )
        manifest = download_file(
            assets.checksums_url,
            tmpdir / "checksums.txt",
            settings.timeout,
            reporter.download_hook("checksums.txt"),
        )
        reporter.stage_ok("download", f"downloaded {assets.tarball_name}")

        digest = verify_checksum(tarball, manifest, assets.tarball_name)
        reporter.stage_ok("verify", "Checksum verified.")

        extract_archive(tarball, tmpdir)
        installed = install_binary(tmpdir / settings.binary, settings.install_dir, settings.binary)
        reporter.stage_ok("install", f"placed {installed}")

    return InstallResult(
        binary=settings.binary,
        tag=tag,
        target=target,
        path=installed,
        sha256=digest,
    )
