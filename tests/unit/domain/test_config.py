"""Unit tests for config domain models."""

import pytest

from bgserver.domain.config import (
    BgServerConfig,
    LoggingConfig,
    ReadinessConfig,
    ShutdownConfig,
)


class TestReadinessConfig:
    """Tests for ReadinessConfig validation."""

    def test_defaults_are_valid(self) -> None:
        config = ReadinessConfig()
        assert config.timeout == 30.0
        assert config.interval < config.max_interval

    @pytest.mark.parametrize(
        "field_name", ["timeout", "interval", "max_interval", "connect_timeout"]
    )
    def test_non_positive_durations_rejected(self, field_name: str) -> None:
        with pytest.raises(ValueError, match=field_name):
            ReadinessConfig(**{field_name: 0})

    def test_max_interval_below_interval_rejected(self) -> None:
        with pytest.raises(ValueError, match="max_interval"):
            ReadinessConfig(interval=1.0, max_interval=0.5)

    def test_backoff_below_one_rejected(self) -> None:
        with pytest.raises(ValueError, match="backoff"):
            ReadinessConfig(backoff=0.5)

    def test_fixed_interval_allowed(self) -> None:
        config = ReadinessConfig(interval=0.5, max_interval=0.5, backoff=1.0)
        assert config.backoff == 1.0


class TestShutdownConfig:
    """Tests for ShutdownConfig validation."""

    @pytest.mark.parametrize("field_name", ["grace_period", "kill_wait", "drain_timeout"])
    def test_non_positive_values_rejected(self, field_name: str) -> None:
        with pytest.raises(ValueError, match=field_name):
            ShutdownConfig(**{field_name: -1})


class TestLoggingConfig:
    """Tests for LoggingConfig validation."""

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValueError, match="level"):
            LoggingConfig(level="LOUD")  # type: ignore[arg-type]

    def test_log_dir_defaults_to_none(self) -> None:
        assert LoggingConfig().log_dir is None


class TestFromPartial:
    """Tests for BgServerConfig.from_partial merging."""

    def test_empty_data_returns_equal_config(self) -> None:
        base = BgServerConfig.default()
        assert BgServerConfig.from_partial(base, {}) == base

    def test_overrides_only_given_keys(self) -> None:
        base = BgServerConfig.default()
        merged = BgServerConfig.from_partial(base, {"readiness": {"timeout": 5.0}})

        assert merged.readiness.timeout == 5.0
        assert merged.readiness.interval == base.readiness.interval
        assert merged.shutdown == base.shutdown

    def test_successive_merges_accumulate(self) -> None:
        config = BgServerConfig.from_partial(
            BgServerConfig.default(), {"shutdown": {"grace_period": 3.0}}
        )
        config = BgServerConfig.from_partial(config, {"shutdown": {"kill_wait": 1.0}})

        assert config.shutdown.grace_period == 3.0
        assert config.shutdown.kill_wait == 1.0

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown keys in \\[readiness\\]: retries"):
            BgServerConfig.from_partial(
                BgServerConfig.default(), {"readiness": {"retries": 3}}
            )

    def test_non_table_section_rejected(self) -> None:
        with pytest.raises(ValueError, match="must be a table"):
            BgServerConfig.from_partial(BgServerConfig.default(), {"shutdown": 5})

    def test_invalid_value_rejected(self) -> None:
        with pytest.raises(ValueError, match="timeout"):
            BgServerConfig.from_partial(
                BgServerConfig.default(), {"readiness": {"timeout": -1}}
            )

    def test_wrong_type_reported_as_value_error(self) -> None:
        with pytest.raises(ValueError, match="Invalid value in \\[shutdown\\]"):
            BgServerConfig.from_partial(
                BgServerConfig.default(), {"shutdown": {"grace_period": "soon"}}
            )

    def test_unknown_sections_are_ignored(self) -> None:
        base = BgServerConfig.default()
        assert BgServerConfig.from_partial(base, {"other_tool": {"x": 1}}) == base
