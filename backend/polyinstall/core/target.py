"""
Host platform detection: maps OS and CPU architecture to a release target triple.
"""
import platform
from typing import Dict, Optional, Tuple

from .errors import UnsupportedPlatformError
from .logger import setup_logger

logger = setup_logger(__name__)

# OS (platform.system()) -> arch (platform.machine()) -> target triple
TARGETS: Dict[str, Dict[str, str]] = {
    "Darwin": {
        "x86_64": "x86_64-apple-darwin",
        "arm64": "aarch64-apple-darwin",
    },
    "Linux": {
        "x86_64": "x86_64-unknown-linux-gnu",
        "aarch64": "aarch64-unknown-linux-gnu",
    },
}


def supported_targets() -> Dict[Tuple[str, str], str]:
    """Flatten the lookup table into {(os, arch): triple}."""
    return {
        (os_name, arch): triple
        for os_name, arches in TARGETS.items()
        for arch, triple in arches.items()
    }


def detect_target(system: Optional[str] = None, machine: Optional[str] = None) -> str:
    """
    Map the host OS and architecture to a target triple.

    Args:
        system: OS name (defaults to platform.system())
        machine: Architecture (defaults to platform.machine())

    Returns:
        Target triple, e.g. "x86_64-unknown-linux-gnu"

    Raises:
        UnsupportedPlatformError: If the OS or architecture is not in the table
    """
    os_name = platform.system() if system is None else system
    arch = platform.machine() if machine is None else machine

    arches = TARGETS.get(os_name)
    if arches is None:
        raise UnsupportedPlatformError(f"Unsupported OS: {os_name}")

    triple = arches.get(arch)
    if triple is None:
        raise UnsupportedPlatformError(f"Unsupported architecture: {arch}")

    logger.debug(f"Detected target {triple} ({os_name}/{arch})")
    return triple
