"""Config domain models for bgserver.

Configuration is stored in bgserver.toml (and an optional global config) and
controls readiness polling, shutdown escalation and log capture. This module
defines the validated configuration state; defaults come from ServerTimeouts.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Literal

from bgserver.domain.timeouts import ServerTimeouts

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


@dataclass(frozen=True)
class ReadinessConfig:
    """Configuration for wait_for_init() polling.

    Attributes:
        timeout: Overall deadline in seconds for the server to accept a connection
        interval: Delay before the second attempt, in seconds
        max_interval: Upper bound for the delay between attempts
        backoff: Multiplier applied to the delay after each failed attempt
                 (1.0 gives a fixed interval)
        connect_timeout: Per-attempt connection timeout in seconds. Clamped to
                         the time remaining before the deadline.

    Raises:
        ValueError: If any duration is not positive, max_interval < interval,
                   or backoff < 1.0.
    """

    timeout: float = ServerTimeouts.READY_WAIT_DEFAULT
    interval: float = ServerTimeouts.READY_CHECK_INTERVAL
    max_interval: float = ServerTimeouts.READY_MAX_INTERVAL
    backoff: float = ServerTimeouts.READY_BACKOFF
    connect_timeout: float = ServerTimeouts.READY_CONNECT_TIMEOUT

    def __post_init__(self) -> None:
        """Validate readiness config after initialization."""
        for name in ("timeout", "interval", "max_interval", "connect_timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.max_interval < self.interval:
            raise ValueError(
                f"max_interval ({self.max_interval}) must be >= "
                f"interval ({self.interval})"
            )
        if self.backoff < 1.0:
            raise ValueError(f"backoff must be >= 1.0, got {self.backoff}")


@dataclass(frozen=True)
class ShutdownConfig:
    """Configuration for stop().

    Attributes:
        grace_period: Seconds to wait after SIGTERM before sending SIGKILL
        kill_wait: Seconds to wait for the process to disappear after SIGKILL
        drain_timeout: Seconds to wait for output drains to finish after exit

    Raises:
        ValueError: If any value is not positive.
    """

    grace_period: float = ServerTimeouts.SIGTERM_WAIT
    kill_wait: float = ServerTimeouts.SIGKILL_WAIT
    drain_timeout: float = ServerTimeouts.DRAIN_JOIN

    def __post_init__(self) -> None:
        """Validate shutdown config after initialization."""
        for name in ("grace_period", "kill_wait", "drain_timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for log output and capture.

    Attributes:
        level: Log level for the bgserver CLI
        log_dir: Directory for captured stdout/stderr files. When unset, each
                 server gets its own temporary directory.

    Raises:
        ValueError: If level is not a known log level.
    """

    level: LogLevel = "INFO"
    log_dir: str | None = None

    def __post_init__(self) -> None:
        """Validate logging config after initialization."""
        if self.level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(
                f"level must be one of DEBUG, INFO, WARNING, ERROR, got {self.level!r}"
            )


@dataclass(frozen=True)
class BgServerConfig:
    """Complete bgserver configuration.

    Attributes:
        readiness: Readiness polling configuration
        shutdown: Shutdown escalation configuration
        logging: Logging and capture configuration
    """

    readiness: ReadinessConfig = field(default_factory=ReadinessConfig)
    shutdown: ShutdownConfig = field(default_factory=ShutdownConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @staticmethod
    def default() -> "BgServerConfig":
        """Create a config with all default values."""
        return BgServerConfig(
            readiness=ReadinessConfig(),
            shutdown=ShutdownConfig(),
            logging=LoggingConfig(),
        )

    @staticmethod
    def from_partial(base: "BgServerConfig", data: dict[str, Any]) -> "BgServerConfig":
        """Overlay raw config data onto an existing config.

        Only keys present in data are replaced; each section is re-validated.

        Args:
            base: Config to start from
            data: Raw config data keyed by section name

        Returns:
            New BgServerConfig with overrides applied

        Raises:
            ValueError: If a section is not a table, contains unknown keys,
                       or fails validation.
        """
        sections = {}
        for section in fields(base):
            overrides = data.get(section.name)
            if overrides is None:
                continue
            if not isinstance(overrides, dict):
                raise ValueError(f"[{section.name}] must be a table")
            current = getattr(base, section.name)
            known = {f.name for f in fields(current)}
            unknown = set(overrides) - known
            if unknown:
                raise ValueError(
                    f"Unknown keys in [{section.name}]: {', '.join(sorted(unknown))}"
                )
            try:
                sections[section.name] = replace(current, **overrides)
            except TypeError as e:
                # Wrong value types fail the numeric comparisons in __post_init__
                raise ValueError(f"Invalid value in [{section.name}]: {e}") from e
        return replace(base, **sections)
