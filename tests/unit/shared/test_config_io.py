"""Unit tests for config file I/O."""

import tomllib
from pathlib import Path
from unittest.mock import patch

import pytest

from bgserver.domain.config import BgServerConfig, LoggingConfig, ShutdownConfig
from bgserver.shared.config_io import (
    config_to_data,
    get_global_config_path,
    load_config,
    load_config_data,
    save_config,
)


class TestGlobalConfigPath:
    """Tests for get_global_config_path()."""

    def test_xdg_config_home(self, tmp_path: Path) -> None:
        with (
            patch("bgserver.shared.config_io.platform.system", return_value="Linux"),
            patch.dict("os.environ", {"XDG_CONFIG_HOME": str(tmp_path)}),
        ):
            assert get_global_config_path() == tmp_path / "bgserver" / "config.toml"

    def test_home_fallback(self, tmp_path: Path) -> None:
        with (
            patch("bgserver.shared.config_io.platform.system", return_value="Darwin"),
            patch.dict("os.environ", {"XDG_CONFIG_HOME": ""}),
            patch("bgserver.shared.config_io.Path.home", return_value=tmp_path),
        ):
            assert get_global_config_path() == tmp_path / ".config" / "bgserver" / "config.toml"

    def test_windows_appdata(self, tmp_path: Path) -> None:
        with (
            patch("bgserver.shared.config_io.platform.system", return_value="Windows"),
            patch.dict("os.environ", {"APPDATA": str(tmp_path)}),
        ):
            assert get_global_config_path() == tmp_path / "bgserver" / "config.toml"


class TestLoadConfig:
    """Tests for loading config files."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config_data(tmp_path / "missing.toml")

    def test_malformed_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[readiness\n")
        with pytest.raises(ValueError, match="Invalid TOML"):
            load_config_data(path)

    def test_partial_file_keeps_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "bgserver.toml"
        path.write_text("[shutdown]\nkill_wait = 1.0\n")

        config = load_config(path)

        assert config.shutdown.kill_wait == 1.0
        assert config.shutdown.grace_period == 10.0
        assert config.readiness == BgServerConfig.default().readiness

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bgserver.toml"
        path.write_text("[readiness]\ntimout = 3.0\n")
        with pytest.raises(ValueError, match="timout"):
            load_config(path)


class TestSaveConfig:
    """Tests for writing config files."""

    def test_default_log_dir_is_omitted(self) -> None:
        data = config_to_data(BgServerConfig.default())
        assert data["logging"] == {"level": "INFO"}
        assert set(data) == {"readiness", "shutdown", "logging"}

    def test_saved_file_loads_back(self, tmp_path: Path) -> None:
        config = BgServerConfig(
            shutdown=ShutdownConfig(grace_period=4.0, kill_wait=1.5, drain_timeout=2.0),
            logging=LoggingConfig(level="DEBUG", log_dir="/tmp/bgserver-logs"),
        )
        path = tmp_path / "nested" / "bgserver.toml"

        save_config(config, path)

        assert load_config(path) == config
        with path.open("rb") as f:
            assert tomllib.load(f)["logging"]["log_dir"] == "/tmp/bgserver-logs"
