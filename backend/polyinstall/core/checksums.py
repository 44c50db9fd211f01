"""
SHA-256 integrity verification against a release checksum manifest.

Manifest lines look like "<64 hex chars><whitespace><filename>", the format
written by sha256sum and shasum.
"""
import hashlib
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Optional, Tuple

from .errors import ChecksumMismatchError, ChecksumNotFoundError, HashUnavailableError
from .logger import setup_logger

logger = setup_logger(__name__)

HASH_CHUNK_SIZE = 1024 * 1024


def find_expected_hash(manifest_text: str, tarball_name: str) -> str:
    """
    Look up the expected hash for a file in a checksum manifest.

    The matching line is the one whose filename field equals tarball_name
    exactly (a leading "*" binary-mode marker is ignored). Only the first
    token is returned; anything after the filename is ignored.

    Raises:
        ChecksumNotFoundError: If no line references tarball_name
    """
    for line in manifest_text.splitlines():
        tokens = line.split()
        if len(tokens) < 2:
            continue
        if tokens[1].lstrip("*") == tarball_name:
            return tokens[0]
    raise ChecksumNotFoundError(f"no checksum found for {tarball_name}")


def _hashlib_sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            digest.update(block)
    return digest.hexdigest()


def _external_sha256(command: list) -> Callable[[Path], str]:
    def run(path: Path) -> str:
        result = subprocess.run(
            command + [str(path)],
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0 or not result.stdout.split():
            raise HashUnavailableError(
                f"{command[0]} failed: {result.stderr.strip() or 'no output'}"
            )
        return result.stdout.split()[0]
    return run


def select_hash_backend() -> Tuple[str, Callable[[Path], str]]:
    """
    Pick a SHA-256 implementation available on this host.

    Order: hashlib, then the sha256sum utility, then shasum -a 256.

    Returns:
        Tuple of (backend name, function computing the hex digest of a path)

    Raises:
        HashUnavailableError: If none is available
    """
    if "sha256" in hashlib.algorithms_available:
        return "hashlib", _hashlib_sha256
    if shutil.which("sha256sum"):
        return "sha256sum", _external_sha256(["sha256sum"])
    if shutil.which("shasum"):
        return "shasum", _external_sha256(["shasum", "-a", "256"])
    raise HashUnavailableError("need sha256sum or shasum to verify download")


def compute_sha256(path: Path) -> str:
    """Compute the hex SHA-256 digest of a file."""
    backend, digest = select_hash_backend()
    actual = digest(path)
    logger.debug(f"sha256({path.name}) = {actual} via {backend}")
    return actual


def verify_checksum(tarball: Path, manifest: Path, tarball_name: Optional[str] = None) -> str:
    """
    Verify a downloaded tarball against the checksum manifest.

    Args:
        tarball: Downloaded tarball path
        manifest: Downloaded checksum manifest path
        tarball_name: Name to look up in the manifest (defaults to tarball.name)

    Returns:
        The verified hash

    Raises:
        ChecksumNotFoundError: If the manifest has no entry for the tarball
        HashUnavailableError: If no SHA-256 implementation is available
        ChecksumMismatchError: If the hashes differ
    """
    name = tarball_name or tarball.name
    expected = find_expected_hash(manifest.read_text(encoding="utf-8", errors="replace"), name)
    actual = compute_sha256(tarball)

    if actual != expected:
        logger.warning(f"Checksum mismatch for {name}: expected {expected}, got {actual}")
        raise ChecksumMismatchError(name, expected, actual)

    return actual
