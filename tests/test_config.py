"""Tests for sentinel_agent.core.config — layered configuration."""

from __future__ import annotations

import json

import pytest

from sentinel_agent.core.config import (
    CONFIG_KEYS,
    SentinelConfig,
    load_config_file,
    save_config_value,
)
from sentinel_agent.core.errors import ConfigError
from sentinel_agent.core.models import RiskLevel
from sentinel_agent.data.models import MinSignalPolicy


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "config.json")


def _write(path, data):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f)


class TestDefaults:
    def test_defaults(self, config_path):
        config = SentinelConfig.load(config_path, environ={})
        assert config.model == "claude-sonnet-4-6"
        assert config.timeout_seconds == 30
        assert config.max_tokens == 2048
        assert config.dom_max_chars == 15000
        assert config.max_risk_level is RiskLevel.LOW
        assert config.offline_mode is False
        assert config.api_enabled is True
        assert config.max_depth == 3
        assert config.min_signal_policy is MinSignalPolicy.STRICT
        assert config.knowledge_base_path.endswith("knowledge-base.json")

    def test_every_key_is_a_field(self):
        assert set(CONFIG_KEYS) == set(SentinelConfig().to_dict())


class TestPrecedence:
    def test_file_overrides_default(self, config_path):
        _write(config_path, {"max_depth": 5, "offline_mode": True})
        config = SentinelConfig.load(config_path, environ={})
        assert config.max_depth == 5
        assert config.offline_mode is True

    def test_env_overrides_file(self, config_path):
        _write(config_path, {"max_depth": 5})
        config = SentinelConfig.load(config_path, environ={"TEST_SENTINEL_MAX_DEPTH": "7"})
        assert config.max_depth == 7

    def test_explicit_overrides_env(self, config_path):
        config = SentinelConfig.load(
            config_path,
            environ={"TEST_SENTINEL_MAX_RISK_LEVEL": "high"},
            max_risk_level="medium",
        )
        assert config.max_risk_level is RiskLevel.MEDIUM

    def test_explicit_none_is_ignored(self, config_path):
        config = SentinelConfig.load(
            config_path, environ={"TEST_SENTINEL_MODEL": "gpt-4o"}, model=None,
        )
        assert config.model == "gpt-4o"

    def test_empty_env_value_is_ignored(self, config_path):
        _write(config_path, {"dry_run": True})
        config = SentinelConfig.load(config_path, environ={"TEST_SENTINEL_DRY_RUN": ""})
        assert config.dry_run is True


class TestValidation:
    @pytest.mark.parametrize("env", [
        {"TEST_SENTINEL_MAX_DEPTH": "0"},
        {"TEST_SENTINEL_MAX_DEPTH": "lots"},
        {"TEST_SENTINEL_OFFLINE_MODE": "maybe"},
        {"TEST_SENTINEL_MAX_RISK_LEVEL": "EXTREME"},
        {"TEST_SENTINEL_MIN_SIGNAL_POLICY": "loose"},
        {"TEST_SENTINEL_MODEL": "  "},
    ])
    def test_bad_values(self, config_path, env):
        with pytest.raises(ConfigError):
            SentinelConfig.load(config_path, environ=env)

    def test_unknown_explicit_key(self, config_path):
        with pytest.raises(ConfigError, match="colour"):
            SentinelConfig.load(config_path, environ={}, colour="blue")

    @pytest.mark.parametrize("text, expected", [
        ("yes", True), ("ON", True), ("1", True), ("off", False), ("False", False),
    ])
    def test_bool_spellings(self, config_path, text, expected):
        config = SentinelConfig.load(config_path, environ={"TEST_SENTINEL_ENABLED": text})
        assert config.enabled is expected


class TestConfigFile:
    def test_missing_file(self, config_path):
        assert load_config_file(config_path) == {}

    def test_corrupt_file_is_ignored(self, config_path):
        with open(config_path, "w", encoding="utf-8") as f:
            f.write("{oops")
        assert load_config_file(config_path) == {}

    def test_non_object_is_ignored(self, config_path):
        _write(config_path, ["max_depth", 4])
        assert load_config_file(config_path) == {}

    def test_save_converts_and_merges(self, config_path):
        save_config_value("max_risk_level", "medium", config_path)
        save_config_value("max_depth", "4", config_path)
        assert load_config_file(config_path) == {"max_risk_level": "MEDIUM", "max_depth": 4}

    def test_save_unknown_key(self, config_path):
        with pytest.raises(ConfigError, match="Unknown config key"):
            save_config_value("colour", "blue", config_path)

    def test_save_bad_value(self, config_path):
        with pytest.raises(ConfigError):
            save_config_value("timeout_seconds", "-1", config_path)

    def test_to_dict_uses_plain_values(self):
        data = SentinelConfig(min_signal_policy=MinSignalPolicy.PAIRWISE).to_dict()
        assert data["min_signal_policy"] == "pairwise"
        assert data["max_risk_level"] == "LOW"
