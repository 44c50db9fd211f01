"""
Archive extraction and binary placement.

The move into the install directory escalates through sudo only when the
directory is not writable by the current user.
"""
import os
import shutil
import stat
import subprocess
import tarfile
from pathlib import Path
from typing import List

from .errors import InstallationError
from .logger import setup_logger

logger = setup_logger(__name__)

EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def extract_archive(tarball: Path, dest: Path) -> None:
    """
    Extract a gzip tarball into dest.

    Members with absolute paths or parent-directory escapes are rejected.

    Raises:
        InstallationError: If the archive is unreadable or unsafe
    """
    if not hasattr(tarfile, "data_filter"):
        raise InstallationError(
            "this Python has no tarfile extraction filters; use 3.12+, 3.11.4+ or 3.10.12+"
        )
    try:
        with tarfile.open(tarball, mode="r:gz") as tf:
            tf.extractall(dest, filter="data")
    except (tarfile.TarError, OSError) as e:
        raise InstallationError(f"failed to extract {tarball.name}: {e}") from e
    logger.debug(f"Extracted {tarball.name} into {dest}")


def _sudo(args: List[str]) -> None:
    if not shutil.which("sudo"):
        raise InstallationError(
            f"'{' '.join(args)}' needs elevated privileges but sudo was not found"
        )
    logger.debug(f"Running: sudo {' '.join(args)}")
    result = subprocess.run(["sudo"] + args, check=False)
    if result.returncode != 0:
        raise InstallationError(f"sudo {args[0]} failed (exit {result.returncode})")


def is_writable(directory: Path) -> bool:
    return os.access(directory, os.W_OK)


def make_executable(path: Path) -> None:
    """Add the executable bits to path, escalating only if chmod is refused."""
    try:
        mode = path.stat().st_mode
        os.chmod(path, mode | EXEC_BITS)
    except PermissionError:
        _sudo(["chmod", "+x", str(path)])


def install_binary(source: Path, install_dir: Path, binary: str) -> Path:
    """
    Move the extracted binary into install_dir and mark it executable.

    Args:
        source: Extracted binary path
        install_dir: Destination directory
        binary: Installed file name

    Returns:
        Final installed path

    Raises:
        InstallationError: If the binary is missing or cannot be placed
    """
    if not source.is_file():
        raise InstallationError(f"archive did not contain '{binary}'")
    if not install_dir.is_dir():
        raise InstallationError(f"install directory does not exist: {install_dir}")

    target = install_dir / binary

    if is_writable(install_dir):
        try:
            shutil.move(str(source), str(target))
        except OSError as e:
            raise InstallationError(f"failed to move {binary} to {target}: {e}") from e
    else:
        logger.info(f"{install_dir} is not writable, using sudo")
        _sudo(["mv", str(source), str(target)])

    make_executable(target)
    logger.debug(f"Installed {target}")
    return target
