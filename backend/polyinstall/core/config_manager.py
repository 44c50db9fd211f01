"""
Installer configuration: .env loading, config.toml lookup and settings resolution.

Precedence for every setting: explicit override > environment variable >
config.toml > built-in default.
"""
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv, find_dotenv
from platformdirs import user_config_dir

from .errors import ConfigError
from .logger import setup_logger
from .toml_config import read_toml, get_nested_value

logger = setup_logger(__name__)

APP_NAME = "polyinstall"

DEFAULT_REPO = "polymarket/polymarket-cli"
DEFAULT_BINARY = "polymarket"
DEFAULT_INSTALL_DIR = "/usr/local/bin"
DEFAULT_TIMEOUT = 30.0
DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_DOWNLOAD_BASE = "https://github.com"

# setting name -> (environment variable, config.toml key, default)
SETTINGS = {
    "repo": ("POLYINSTALL_REPO", "release.repo", DEFAULT_REPO),
    "binary": ("POLYINSTALL_BINARY", "release.binary", DEFAULT_BINARY),
    "install_dir": ("POLYINSTALL_INSTALL_DIR", "install.dir", DEFAULT_INSTALL_DIR),
    "timeout": ("POLYINSTALL_TIMEOUT", "network.timeout", DEFAULT_TIMEOUT),
    "api_base": ("POLYINSTALL_API_BASE", "network.api_base", DEFAULT_API_BASE),
    "download_base": ("POLYINSTALL_DOWNLOAD_BASE", "network.download_base", DEFAULT_DOWNLOAD_BASE),
}

_REPO_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_BINARY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def get_config_dir() -> Path:
    """
    Get the installer config directory.

    POLYINSTALL_CONFIG_DIR wins; otherwise the platform user config dir.
    The directory is not created.
    """
    override = os.getenv("POLYINSTALL_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path(user_config_dir(APP_NAME))


@dataclass(frozen=True)
class InstallSettings:
    """Resolved, validated settings for one install run."""

    repo: str
    binary: str
    install_dir: Path
    timeout: float
    api_base: str
    download_base: str


class ConfigManager:
    """Loads .env and config.toml and resolves installer settings."""

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize ConfigManager.

        Args:
            config_dir: Config directory (defaults to get_config_dir())
        """
        self.config_dir = Path(config_dir) if config_dir else get_config_dir()
        self.env_path = self.config_dir / ".env"
        self.toml_path = self.config_dir / "config.toml"
        self._load_env()
        self._toml: Optional[Dict[str, Any]] = None

    def _load_env(self) -> None:
        """Load .env from the config dir, then any .env found from the cwd."""
        if self.env_path.exists():
            load_dotenv(self.env_path, override=False)
            logger.debug(f"Loaded {self.env_path}")
        local_env = find_dotenv(usecwd=True)
        if local_env:
            load_dotenv(local_env, override=False)
            logger.debug(f"Loaded {local_env}")

    @property
    def toml(self) -> Dict[str, Any]:
        if self._toml is None:
            self._toml = read_toml(self.toml_path)
        return self._toml

    def check_toml_file_exists(self) -> bool:
        """Check if config.toml exists."""
        return self.toml_path.exists()

    def get(self, name: str, override: Any = None) -> Any:
        """
        Get a raw setting value.

        Args:
            name: Setting name (a key of SETTINGS)
            override: Explicit value (e.g. from a CLI flag), wins when not None

        Returns:
            The first value found in override, environment, config.toml, default
        """
        env_var, toml_key, default = SETTINGS[name]
        if override is not None:
            value, source = override, "override"
        elif os.getenv(env_var):
            value, source = os.getenv(env_var), env_var
        else:
            value = get_nested_value(self.toml, toml_key)
            source = f"config.toml:{toml_key}"
            if value is None:
                value, source = default, "default"
        logger.debug(f"Config get: {name} = {value} ({source})")
        return value

    def resolve(self, install_dir: Optional[str] = None) -> InstallSettings:
        """
        Resolve and validate all settings for an install run.

        Args:
            install_dir: Optional install directory override

        Raises:
            ConfigError: If any value is invalid
        """
        repo = str(self.get("repo")).strip()
        if not _REPO_RE.match(repo):
            raise ConfigError(f"invalid repository '{repo}' (expected owner/name)")

        binary = str(self.get("binary")).strip()
        if not _BINARY_RE.match(binary) or binary in (".", ".."):
            raise ConfigError(f"invalid binary name '{binary}'")

        raw_timeout = self.get("timeout")
        try:
            timeout = float(raw_timeout)
        except (TypeError, ValueError):
            raise ConfigError(f"invalid network timeout '{raw_timeout}'")
        if timeout <= 0:
            raise ConfigError(f"network timeout must be positive, got {timeout}")

        target_dir = Path(str(self.get("install_dir", install_dir))).expanduser()

        return InstallSettings(
            repo=repo,
            binary=binary,
            install_dir=target_dir,
            timeout=timeout,
            api_base=str(self.get("api_base")).rstrip("/"),
            download_base=str(self.get("download_base")).rstrip("/"),
        )
