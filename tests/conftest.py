"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import patch

import pytest

from bgserver.adapters.process.environment import UserIdentity
from bgserver.domain.config import ReadinessConfig, ShutdownConfig

# ============================================================================
# Configuration Isolation
# ============================================================================
# Keep the user's ~/.config/bgserver/config.toml out of every test run.


@pytest.fixture(autouse=True)
def isolate_global_config(tmp_path: Path):
    """Point the global config path at a file that does not exist."""
    nonexistent_global = tmp_path / "nonexistent_global" / "config.toml"
    with patch(
        "bgserver.adapters.config.toml_config_provider.get_global_config_path",
        return_value=nonexistent_global,
    ):
        yield nonexistent_global


# ============================================================================
# Identity and Timing Fixtures
# ============================================================================


@pytest.fixture
def fixed_identity() -> UserIdentity:
    """A deterministic user identity, independent of the machine running tests."""
    return UserIdentity(username="tester", uid=4242, gid=4343, home="/home/tester")


@pytest.fixture
def fast_readiness() -> ReadinessConfig:
    """Readiness settings short enough for tests that expect a timeout."""
    return ReadinessConfig(
        timeout=1.0,
        interval=0.05,
        max_interval=0.2,
        backoff=2.0,
        connect_timeout=0.2,
    )


@pytest.fixture
def fast_shutdown() -> ShutdownConfig:
    """Shutdown settings that escalate to SIGKILL quickly."""
    return ShutdownConfig(grace_period=0.5, kill_wait=2.0, drain_timeout=2.0)


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    """Private directory for captured server output."""
    return tmp_path / "logs"
