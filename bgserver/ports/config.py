"""Configuration provider port.

Defines the interface for loading application configuration.
"""

from pathlib import Path
from typing import Protocol

from bgserver.domain.config import BgServerConfig


class ConfigProvider(Protocol):
    """Protocol for loading and providing configuration."""

    def load(self, config_dir: Path) -> BgServerConfig:
        """Load configuration from a directory.

        Args:
            config_dir: Directory containing bgserver.toml

        Returns:
            BgServerConfig instance with loaded or default values

        Note:
            Implementations should gracefully fall back to defaults
            if config file is missing or invalid.
        """
        ...
