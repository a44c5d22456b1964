"""Unit tests for threshold configuration."""

import pytest

from presswatch.config import (
    load_config,
    load_thresholds,
    reset_thresholds,
    save_config,
    set_threshold,
)
from presswatch.models.thresholds import AlertThresholds


class TestThresholdConfig:
    def test_defaults_without_config_file(self, isolated_config):
        assert not isolated_config.exists()
        assert load_thresholds() == AlertThresholds()

    def test_set_threshold_persists(self, isolated_config):
        thresholds = set_threshold("inrush_multiple", 10.0)

        assert thresholds.inrush_multiple == 10.0
        assert isolated_config.exists()
        assert load_thresholds().inrush_multiple == 10.0
        assert load_thresholds().voltage_sag_pct == 60.0

    def test_unknown_threshold_rejected(self, isolated_config):
        with pytest.raises(ValueError, match="Unknown threshold"):
            set_threshold("nonsense", 1.0)

    def test_out_of_range_value_rejected(self, isolated_config):
        with pytest.raises(ValueError, match="Invalid value"):
            set_threshold("cycle_duration_s", 0.0)

        assert not isolated_config.exists()

    def test_reset_removes_file_when_only_thresholds(self, isolated_config):
        set_threshold("ripple_pct", 50.0)

        reset_thresholds()

        assert not isolated_config.exists()
        assert load_thresholds() == AlertThresholds()

    def test_reset_keeps_other_sections(self, isolated_config):
        save_config({"logging": {"level": "INFO"}, "thresholds": {"ripple_pct": 50.0}})

        reset_thresholds()

        assert load_config() == {"logging": {"level": "INFO"}}

    def test_corrupted_file_uses_defaults(self, isolated_config):
        isolated_config.parent.mkdir(parents=True)
        isolated_config.write_text("this is [not toml")

        assert load_config() == {}
        assert load_thresholds() == AlertThresholds()

    def test_invalid_and_unknown_overrides_ignored(self, isolated_config):
        save_config({"thresholds": {"mystery": 1, "inrush_multiple": 9.5}})
        assert load_thresholds().inrush_multiple == 9.5

        save_config({"thresholds": {"inrush_multiple": -1}})
        assert load_thresholds() == AlertThresholds()
