"""Factory classes for adapter instantiation.

Centralizes the creation of servers and configuration providers, keeping the
CLI layer free from direct adapter imports.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bgserver.adapters.process.server import ProcessServer
    from bgserver.domain.config import BgServerConfig
    from bgserver.domain.connection import ConnectionDescriptor
    from bgserver.ports.config import ConfigProvider
    from bgserver.ports.probe import ReadinessProbe


class ServerFactory:
    """Factory for creating supervised servers from configuration.

    Args:
        config: BgServerConfig with readiness, shutdown and logging settings.
    """

    def __init__(self, config: BgServerConfig) -> None:
        """Initialize factory with configuration.

        Args:
            config: Configuration to apply to every created server.
        """
        self._config = config

    def create_process_server(
        self,
        command: Sequence[str],
        descriptor: ConnectionDescriptor | None = None,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
        probe: ReadinessProbe | None = None,
        log_dir: Path | None = None,
    ) -> ProcessServer:
        """Create a ProcessServer.

        Args:
            command: Argument vector for the server.
            descriptor: Address the server will listen on.
            env: Environment overrides.
            cwd: Working directory.
            probe: Readiness probe (default: TCP connect).
            log_dir: Capture directory. Overrides the configured log_dir.

        Returns:
            ProcessServer instance in state NEW.
        """
        from bgserver.adapters.process.server import ProcessServer

        if log_dir is None and self._config.logging.log_dir:
            log_dir = Path(self._config.logging.log_dir).expanduser()

        return ProcessServer(
            command,
            descriptor,
            env=env,
            cwd=cwd,
            log_dir=log_dir,
            readiness=self._config.readiness,
            shutdown=self._config.shutdown,
            probe=probe,
        )


class ConfigFactory:
    """Factory for creating configuration-related instances."""

    def create_config_provider(self) -> ConfigProvider:
        """Create a TomlConfigProvider instance.

        Returns:
            TomlConfigProvider instance.
        """
        from bgserver.adapters.config.toml_config_provider import TomlConfigProvider

        return TomlConfigProvider()
