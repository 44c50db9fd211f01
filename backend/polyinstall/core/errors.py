"""
Installer error taxonomy.

Every fatal condition maps to one exception type. Core modules raise these;
the CLI layer renders them and exits non-zero.
"""
from typing import Optional


class InstallerError(Exception):
    """Base class for all fatal installer conditions."""

    stage = "main"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        if stage:
            self.stage = stage


class ConfigError(InstallerError):
    stage = "config"


class UnsupportedPlatformError(InstallerError):
    stage = "detect"


class ReleaseResolutionError(InstallerError):
    stage = "resolve"


class DownloadError(InstallerError):
    stage = "download"


class ChecksumNotFoundError(InstallerError):
    stage = "verify"


class HashUnavailableError(InstallerError):
    stage = "verify"


class ChecksumMismatchError(InstallerError):
    """Raised when the downloaded tarball does not match the manifest hash."""

    stage = "verify"

    def __init__(self, filename: str, expected: str, actual: str):
        super().__init__(f"checksum mismatch for {filename}")
        self.filename = filename
        self.expected = expected
        self.actual = actual


class InstallationError(InstallerError):
    stage = "install"
