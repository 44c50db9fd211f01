"""
End-to-end CLI tests for install and doctor (public-safe, no network).

HTTP is served from memory, the install dir and config dir are temporary, and
the host is pinned to Linux/x86_64.
"""
import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from polyinstall.cli.app import app, VERSION
from polyinstall.cli.commands import doctor

from conftest import BINARY_BYTES, sha256_hex


@pytest.fixture
def cli_env(tmp_path):
    cfg_dir = tmp_path / "cfg"
    cfg_dir.mkdir()
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    env = {
        "POLYINSTALL_CONFIG_DIR": str(cfg_dir),
        "POLYINSTALL_INSTALL_DIR": str(bin_dir),
        "COLUMNS": "400",
        "NO_COLOR": "1",
    }
    return env, bin_dir


def _invoke(args, env):
    runner = CliRunner()
    return runner.invoke(app, args, env=env)


def test_bare_invocation_installs(release, linux_x86_64, scratch_tmp, cli_env):
    env, bin_dir = cli_env

    result = _invoke([], env)

    assert result.exit_code == 0, result.output
    installed = bin_dir / "polymarket"
    assert installed.read_bytes() == BINARY_BYTES
    assert installed.stat().st_mode & stat.S_IXUSR
    assert f"Installed polymarket to {installed}" in result.output
    assert "Checksum verified." in result.output
    assert list(scratch_tmp.iterdir()) == []


def test_install_command_with_dir_option(release, linux_x86_64, scratch_tmp, cli_env, tmp_path):
    env, _ = cli_env
    other = tmp_path / "other"
    other.mkdir()

    result = _invoke(["install", "--install-dir", str(other), "--plain"], env)

    assert result.exit_code == 0, result.output
    assert (other / "polymarket").exists()


def test_root_install_dir_applies_to_install_command(release, linux_x86_64, scratch_tmp, cli_env, tmp_path):
    env, bin_dir = cli_env
    wanted = tmp_path / "wanted"
    wanted.mkdir()

    result = _invoke(["--install-dir", str(wanted), "install"], env)

    assert result.exit_code == 0, result.output
    assert (wanted / "polymarket").read_bytes() == BINARY_BYTES
    assert not (bin_dir / "polymarket").exists()


def test_subcommand_install_dir_wins_over_root_option(release, linux_x86_64, scratch_tmp, cli_env, tmp_path):
    env, _ = cli_env
    root_dir = tmp_path / "root"
    root_dir.mkdir()
    own_dir = tmp_path / "own"
    own_dir.mkdir()

    result = _invoke(["--install-dir", str(root_dir), "install", "--install-dir", str(own_dir)], env)

    assert result.exit_code == 0, result.output
    assert (own_dir / "polymarket").exists()
    assert not (root_dir / "polymarket").exists()


def test_checksum_mismatch_aborts_and_cleans_up(release, fake_github, linux_x86_64, scratch_tmp, cli_env):
    env, bin_dir = cli_env
    good = sha256_hex(release["tarball"])
    bad = good[:-1] + ("0" if good[-1] != "0" else "1")
    fake_github.add(
        release["checksums_url"],
        f"{bad}  {release['tarball_name']}\n".encode(),
    )

    result = _invoke([], env)

    assert result.exit_code != 0
    assert not (bin_dir / "polymarket").exists()
    assert "checksum mismatch" in result.output
    assert f"Expected: {bad}" in result.output
    assert f"Got:      {good}" in result.output
    assert "tampered" in result.output
    # No residual temporary directory
    assert list(scratch_tmp.iterdir()) == []

    # A second run after fixing the manifest succeeds from scratch
    fake_github.add(release["checksums_url"], release["manifest"].encode())
    result = _invoke([], env)
    assert result.exit_code == 0, result.output
    assert list(scratch_tmp.iterdir()) == []


def test_missing_checksum_entry(release, fake_github, linux_x86_64, scratch_tmp, cli_env):
    env, bin_dir = cli_env
    fake_github.add(release["checksums_url"], b"")

    result = _invoke([], env)

    assert result.exit_code == 1
    assert f"no checksum found for {release['tarball_name']}" in result.output
    assert not (bin_dir / "polymarket").exists()
    assert list(scratch_tmp.iterdir()) == []


def test_download_failure_cleans_up(release, fake_github, linux_x86_64, scratch_tmp, cli_env):
    env, _ = cli_env
    fake_github.add(release["tarball_url"], 500)

    result = _invoke([], env)

    assert result.exit_code == 1
    assert "HTTP 500" in result.output
    assert list(scratch_tmp.iterdir()) == []


def test_manifest_download_failure_cleans_up(release, fake_github, linux_x86_64, scratch_tmp, cli_env):
    env, bin_dir = cli_env
    fake_github.add(release["checksums_url"], 404)

    result = _invoke([], env)

    assert result.exit_code == 1
    assert "HTTP 404" in result.output
    assert "checksums.txt" in result.output
    assert not (bin_dir / "polymarket").exists()
    assert list(scratch_tmp.iterdir()) == []


def test_unresolvable_release(fake_github, linux_x86_64, scratch_tmp, cli_env):
    env, _ = cli_env
    fake_github.add(
        "https://api.github.com/repos/polymarket/polymarket-cli/releases/latest",
        b'{"message": "Not Found"}',
    )

    result = _invoke([], env)

    assert result.exit_code == 1
    assert "could not determine latest release" in result.output


def test_unsupported_arch_makes_no_network_calls(release, fake_github, monkeypatch, cli_env):
    env, _ = cli_env
    monkeypatch.setattr("polyinstall.core.target.platform.system", lambda: "Linux")
    monkeypatch.setattr("polyinstall.core.target.platform.machine", lambda: "riscv64")

    result = _invoke([], env)

    assert result.exit_code == 1
    assert "Unsupported architecture: riscv64" in result.output
    assert fake_github.requests == []


def test_version_flag():
    result = CliRunner().invoke(app, ["--version"])
    assert result.exit_code == 0
    assert VERSION in result.output


def test_doctor_reports_without_network(fake_github, linux_x86_64, cli_env):
    env, _ = cli_env

    result = _invoke(["doctor", "--plain"], env)

    assert result.exit_code == 0, result.output
    assert "Installer Diagnostics" in result.output
    assert "x86_64-unknown-linux-gnu" in result.output
    assert "hashlib" in result.output
    assert fake_github.requests == []


def test_doctor_flags_unsupported_platform(monkeypatch, cli_env):
    env, _ = cli_env
    monkeypatch.setattr("polyinstall.core.target.platform.system", lambda: "Linux")
    monkeypatch.setattr("polyinstall.core.target.platform.machine", lambda: "riscv64")

    result = _invoke(["doctor"], env)

    assert result.exit_code == 1
    assert "Unsupported architecture: riscv64" in result.output


def test_doctor_plain_does_not_leak_into_next_run(linux_x86_64, cli_env):
    env, _ = cli_env
    env = {k: v for k, v in env.items() if k != "NO_COLOR"}

    with patch.object(doctor, "Console", wraps=Console) as console_cls:
        _invoke(["doctor", "--plain"], env)
        _invoke(["doctor"], env)

    assert [c.kwargs["no_color"] for c in console_cls.call_args_list] == [True, False]
