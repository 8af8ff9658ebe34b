"""Configuration I/O utilities for reading and writing TOML config files.

This module handles serialization/deserialization of BgServerConfig to/from TOML format.
"""

import os
import platform
import tomllib  # Built-in Python 3.11+
from pathlib import Path
from typing import Any

import tomli_w

from bgserver.domain.config import BgServerConfig

LOCAL_CONFIG_NAME = "bgserver.toml"


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    The location is platform-dependent:
    - Linux/macOS: $XDG_CONFIG_HOME/bgserver/config.toml or ~/.config/bgserver/config.toml
    - Windows: %APPDATA%/bgserver/config.toml

    Returns:
        Path to the global config file (may not exist)
    """
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "bgserver" / "config.toml"
        return Path.home() / ".config" / "bgserver" / "config.toml"
    else:
        xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
        if xdg_config:
            return Path(xdg_config) / "bgserver" / "config.toml"
        return Path.home() / ".config" / "bgserver" / "config.toml"


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a config file.

    Args:
        path: Path to a TOML config file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in config file: {e}") from e


def load_config(path: Path) -> BgServerConfig:
    """Load configuration from a TOML file, on top of the defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed or fails validation
    """
    data = load_config_data(path)
    return BgServerConfig.from_partial(BgServerConfig.default(), data)


def config_to_data(config: BgServerConfig) -> dict[str, Any]:
    """Convert a BgServerConfig to TOML-serializable data.

    TOML has no null, so unset optional values are left out.
    """
    logging_data: dict[str, Any] = {"level": config.logging.level}
    if config.logging.log_dir is not None:
        logging_data["log_dir"] = config.logging.log_dir

    return {
        "readiness": {
            "timeout": config.readiness.timeout,
            "interval": config.readiness.interval,
            "max_interval": config.readiness.max_interval,
            "backoff": config.readiness.backoff,
            "connect_timeout": config.readiness.connect_timeout,
        },
        "shutdown": {
            "grace_period": config.shutdown.grace_period,
            "kill_wait": config.shutdown.kill_wait,
            "drain_timeout": config.shutdown.drain_timeout,
        },
        "logging": logging_data,
    }


def save_config(config: BgServerConfig, path: Path) -> None:
    """Save configuration to a TOML file.

    Args:
        config: BgServerConfig to save
        path: Destination path
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        tomli_w.dump(config_to_data(config), f)
