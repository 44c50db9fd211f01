"""
Shared fixtures: an in-memory stand-in for the GitHub endpoints and release tarballs.

No test touches the network; urllib.request.urlopen is replaced per test.
"""
import hashlib
import io
import sys
import tarfile
import urllib.error
import urllib.request
from pathlib import Path

import pytest

# Ensure `polyinstall.*` imports work when running from repo root
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

BINARY_BYTES = b"#!/bin/sh\necho polymarket\n"


class FakeResponse:
    """Minimal file-like HTTP response."""

    def __init__(self, body: bytes, status: int = 200, send_length: bool = True, length: int = None):
        self._body = io.BytesIO(body)
        self.status = status
        declared = len(body) if length is None else length
        self.headers = {"Content-Length": str(declared)} if send_length else {}

    def read(self, size: int = -1) -> bytes:
        return self._body.read(size)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False


class FakeGitHub:
    """Routes URL -> bytes (200), int (HTTP error status), FakeResponse or exception. Records requests."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, url: str, body) -> None:
        self.routes[url] = body

    def urlopen(self, req, timeout=None):
        url = req.full_url if isinstance(req, urllib.request.Request) else req
        self.requests.append(url)
        body = self.routes.get(url, 404)
        if isinstance(body, int):
            raise urllib.error.HTTPError(url, body, "error", {}, io.BytesIO(b""))
        if isinstance(body, Exception):
            raise body
        if isinstance(body, FakeResponse):
            return body
        return FakeResponse(body)


def make_tarball(members: dict) -> bytes:
    """Build a .tar.gz in memory from {name: bytes}."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@pytest.fixture
def fake_github(monkeypatch):
    fake = FakeGitHub()
    monkeypatch.setattr(urllib.request, "urlopen", fake.urlopen)
    return fake


@pytest.fixture
def release(fake_github):
    """
    Publish v1.2.3 of polymarket for x86_64-unknown-linux-gnu on the fake GitHub.

    Returns a dict with the tarball bytes, name and URLs so tests can tamper.
    """
    tag = "v1.2.3"
    target = "x86_64-unknown-linux-gnu"
    tarball_name = f"polymarket-{tag}-{target}.tar.gz"
    tarball = make_tarball({"polymarket": BINARY_BYTES})
    base = f"https://github.com/polymarket/polymarket-cli/releases/download/{tag}"
    manifest = (
        f"{sha256_hex(b'other')}  polymarket-{tag}-aarch64-apple-darwin.tar.gz\n"
        f"{sha256_hex(tarball)}  {tarball_name}\n"
    )

    fake_github.add(
        "https://api.github.com/repos/polymarket/polymarket-cli/releases/latest",
        f'{{\n  "url": "x",\n  "tag_name": "{tag}",\n  "name": "{tag}"\n}}'.encode(),
    )
    fake_github.add(f"{base}/{tarball_name}", tarball)
    fake_github.add(f"{base}/checksums.txt", manifest.encode())

    return {
        "tag": tag,
        "target": target,
        "tarball": tarball,
        "tarball_name": tarball_name,
        "tarball_url": f"{base}/{tarball_name}",
        "checksums_url": f"{base}/checksums.txt",
        "manifest": manifest,
    }


@pytest.fixture
def linux_x86_64(monkeypatch):
    monkeypatch.setattr("polyinstall.core.target.platform.system", lambda: "Linux")
    monkeypatch.setattr("polyinstall.core.target.platform.machine", lambda: "x86_64")


@pytest.fixture
def scratch_tmp(tmp_path, monkeypatch):
    """Redirect tempfile to a directory the test can inspect afterwards."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr("tempfile.tempdir", str(scratch))
    return scratch
