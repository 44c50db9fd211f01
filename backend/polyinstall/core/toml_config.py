"""
TOML configuration file access.
Reads config.toml for non-secret installer settings.
"""
from pathlib import Path
from typing import Any, Dict

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigError
from .logger import setup_logger

logger = setup_logger(__name__)


def read_toml(toml_path: Path) -> Dict[str, Any]:
    """
    Read config.toml file.

    Args:
        toml_path: Path to config.toml

    Returns:
        Dictionary of configuration values (empty if the file does not exist)

    Raises:
        ConfigError: If the file exists but cannot be read or parsed
    """
    if not toml_path.exists():
        logger.debug(f"config.toml not found at {toml_path}")
        return {}

    try:
        with open(toml_path, 'r', encoding='utf-8') as f:
            return tomlkit.load(f).unwrap()
    except (OSError, TOMLKitError) as e:
        logger.error(f"Error reading config.toml: {e}")
        raise ConfigError(f"could not read {toml_path}: {e}") from e


def get_nested_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested value from config dict using dot notation.

    Args:
        config: Configuration dictionary
        key_path: Dot-separated key path (e.g., "install.dir" or "network.timeout")
        default: Default value if key not found

    Returns:
        Value at key path, or default
    """
    keys = key_path.split('.')
    current = config

    for key in keys:
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return default

    return current
