"""
GitHub release resolution and asset download.

The latest tag is pulled out of the releases API response by text matching on
the "tag_name" field. Downloads are fail-fast: any transport error or non-2xx
status aborts.
"""
import re
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .config_manager import InstallSettings
from .errors import DownloadError, ReleaseResolutionError
from .logger import setup_logger

logger = setup_logger(__name__)

USER_AGENT = "polyinstall"
CHECKSUMS_FILENAME = "checksums.txt"
CHUNK_SIZE = 64 * 1024

_TAG_NAME_RE = re.compile(r'"tag_name"\s*:\s*"([^"]*)"')

ProgressHook = Callable[[int, Optional[int]], None]


@dataclass(frozen=True)
class ReleaseAssets:
    """Deterministic names and URLs for one release/target pair."""

    binary: str
    tag: str
    target: str
    tarball_name: str
    tarball_url: str
    checksums_url: str


def release_assets(settings: InstallSettings, tag: str, target: str) -> ReleaseAssets:
    """
    Build the tarball name and both download URLs.

    Args:
        settings: Resolved install settings (repo, binary, download base)
        tag: Release tag, e.g. "v1.2.3"
        target: Target triple

    Returns:
        ReleaseAssets for the tag/target
    """
    tarball_name = f"{settings.binary}-{tag}-{target}.tar.gz"
    base = f"{settings.download_base}/{settings.repo}/releases/download/{tag}"
    return ReleaseAssets(
        binary=settings.binary,
        tag=tag,
        target=target,
        tarball_name=tarball_name,
        tarball_url=f"{base}/{tarball_name}",
        checksums_url=f"{base}/{CHECKSUMS_FILENAME}",
    )


def _request(url: str, accept: Optional[str] = None) -> urllib.request.Request:
    req = urllib.request.Request(url)
    req.add_header("User-Agent", USER_AGENT)
    if accept:
        req.add_header("Accept", accept)
    return req


def extract_tag_name(body: str) -> str:
    """
    Pull the "tag_name" value out of a releases API document.

    Returns:
        The tag, or "" if the field is missing
    """
    match = _TAG_NAME_RE.search(body)
    return match.group(1).strip() if match else ""


def resolve_latest_tag(settings: InstallSettings) -> str:
    """
    Query the releases API for the latest tag.

    Raises:
        ReleaseResolutionError: If the request fails or no tag is present
    """
    url = f"{settings.api_base}/repos/{settings.repo}/releases/latest"
    logger.debug(f"Fetching latest release metadata: {url}")

    try:
        with urllib.request.urlopen(
            _request(url, accept="application/vnd.github+json"), timeout=settings.timeout
        ) as response:
            body = response.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        raise ReleaseResolutionError(
            f"could not determine latest release (HTTP {e.code} from {url})"
        ) from e
    except (urllib.error.URLError, OSError) as e:
        raise ReleaseResolutionError(f"could not determine latest release: {e}") from e

    tag = extract_tag_name(body)
    if not tag:
        raise ReleaseResolutionError("could not determine latest release")

    logger.debug(f"Latest release tag: {tag}")
    return tag


def download_file(
    url: str,
    dest: Path,
    timeout: float,
    progress_hook: Optional[ProgressHook] = None,
) -> Path:
    """
    Stream a URL to a local file.

    Args:
        url: Source URL (redirects are followed)
        dest: Destination file path
        timeout: Socket timeout in seconds
        progress_hook: Called as (bytes_so_far, total_or_None) after each chunk

    Returns:
        dest

    Raises:
        DownloadError: On any network error or non-success status
    """
    logger.debug(f"Downloading {url} -> {dest}")
    try:
        with urllib.request.urlopen(_request(url), timeout=timeout) as response:
            status = getattr(response, "status", 200)
            if status < 200 or status >= 300:
                raise DownloadError(f"download failed (HTTP {status}): {url}")

            length = response.headers.get("Content-Length")
            total = int(length) if length and length.isdigit() else None

            downloaded = 0
            with open(dest, "wb") as out:
                while True:
                    chunk = response.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    out.write(chunk)
                    downloaded += len(chunk)
                    if progress_hook:
                        progress_hook(downloaded, total)
    except urllib.error.HTTPError as e:
        raise DownloadError(f"download failed (HTTP {e.code}): {url}") from e
    except (urllib.error.URLError, OSError) as e:
        raise DownloadError(f"download failed: {url}: {e}") from e

    if total is not None and downloaded != total:
        raise DownloadError(
            f"download truncated: {url} ({downloaded} of {total} bytes)"
        )

    logger.debug(f"Downloaded {downloaded} bytes to {dest}")
    return dest
