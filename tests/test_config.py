"""
Configuration Tests
===================

Tests for ScanConfig defaults and environment overrides.
"""

import logging

from hexlex.config import ScanConfig


class TestScanConfig:
    """Tests for ScanConfig.from_env."""

    def test_defaults(self):
        config = ScanConfig.from_env({})
        assert config == ScanConfig()
        assert config.default_format == "auto"
        assert config.max_issues == 100
        assert config.color is True

    def test_environment_values(self):
        config = ScanConfig.from_env({
            "HEXSCAN_FORMAT": "IHEX",
            "HEXSCAN_MAX_ISSUES": "7",
            "HEXSCAN_COLOR": "off",
        })
        assert config.default_format == "ihex"
        assert config.max_issues == 7
        assert config.color is False

    def test_color_true_values(self):
        for value in ("1", "true", "Yes", "ON"):
            assert ScanConfig.from_env({"HEXSCAN_COLOR": value}).color is True

    def test_invalid_values_ignored(self, caplog):
        with caplog.at_level(logging.WARNING, logger="hexlex.config"):
            config = ScanConfig.from_env({
                "HEXSCAN_FORMAT": "binary",
                "HEXSCAN_MAX_ISSUES": "lots",
                "HEXSCAN_COLOR": "maybe",
            })
        assert config == ScanConfig()
        assert "HEXSCAN_FORMAT" in caplog.text
        assert "HEXSCAN_MAX_ISSUES" in caplog.text
        assert "HEXSCAN_COLOR" in caplog.text

    def test_non_positive_max_issues_ignored(self, caplog):
        with caplog.at_level(logging.WARNING, logger="hexlex.config"):
            config = ScanConfig.from_env({"HEXSCAN_MAX_ISSUES": "0"})
        assert config.max_issues == 100
        assert "must be positive" in caplog.text

    def test_empty_values_ignored(self):
        config = ScanConfig.from_env({"HEXSCAN_FORMAT": "", "HEXSCAN_COLOR": ""})
        assert config == ScanConfig()
