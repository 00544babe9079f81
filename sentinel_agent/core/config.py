"""Configuration — explicit value → environment variable → config file → default."""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

from sentinel_agent.core.errors import ConfigError
from sentinel_agent.core.models import RiskLevel
from sentinel_agent.data.models import MinSignalPolicy
from sentinel_agent.data.store import DEFAULT_HOME, write_json_atomic

logger = logging.getLogger(__name__)

ENV_PREFIX = "TEST_SENTINEL_"
CONFIG_FILE = os.path.join(DEFAULT_HOME, "config.json")
DEFAULT_MODEL = "claude-sonnet-4-6"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{key} must be true/false, got {value!r}")


def _to_int(key: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"{key} must be positive, got {number}")
    return number


def _to_risk(key: str, value: Any) -> RiskLevel:
    if isinstance(value, RiskLevel):
        return value
    try:
        return RiskLevel(str(value).strip().upper())
    except ValueError:
        raise ConfigError(f"{key} must be LOW, MEDIUM or HIGH, got {value!r}") from None


def _to_policy(key: str, value: Any) -> MinSignalPolicy:
    if isinstance(value, MinSignalPolicy):
        return value
    try:
        return MinSignalPolicy(str(value).strip().lower())
    except ValueError:
        raise ConfigError(f"{key} must be strict or pairwise, got {value!r}") from None


def _to_str(key: str, value: Any) -> str:
    text = str(value).strip()
    if not text:
        raise ConfigError(f"{key} must not be empty")
    return text


_CONVERTERS = {
    "model": _to_str,
    "timeout_seconds": _to_int,
    "max_tokens": _to_int,
    "capture_dom": _to_bool,
    "capture_screenshot": _to_bool,
    "dom_max_chars": _to_int,
    "enabled": _to_bool,
    "log_prompts": _to_bool,
    "max_risk_level": _to_risk,
    "offline_mode": _to_bool,
    "api_enabled": _to_bool,
    "dry_run": _to_bool,
    "max_depth": _to_int,
    "knowledge_base_path": _to_str,
    "unknown_log_path": _to_str,
    "min_signal_policy": _to_policy,
}

CONFIG_KEYS = tuple(_CONVERTERS)


def load_config_file(path: Optional[str] = None) -> dict[str, Any]:
    """Read the JSON config file. Missing or unreadable files read as empty."""
    path = path or CONFIG_FILE
    if not os.path.exists(path):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: not a JSON object", path)
        return {}
    return data


def save_config_value(key: str, value: Any, path: Optional[str] = None) -> Any:
    """Validate and persist one key. Returns the converted value."""
    if key not in _CONVERTERS:
        raise ConfigError(f"Unknown config key: {key}. Valid keys: {', '.join(CONFIG_KEYS)}")
    converted = _CONVERTERS[key](key, value)
    path = path or CONFIG_FILE
    data = load_config_file(path)
    data[key] = converted.value if hasattr(converted, "value") else converted
    write_json_atomic(path, data)
    return converted


@dataclass
class SentinelConfig:
    model: str = DEFAULT_MODEL
    timeout_seconds: int = 30
    max_tokens: int = 2048
    capture_dom: bool = True
    capture_screenshot: bool = True
    dom_max_chars: int = 15000
    enabled: bool = True
    log_prompts: bool = False
    max_risk_level: RiskLevel = RiskLevel.LOW
    offline_mode: bool = False
    api_enabled: bool = True
    dry_run: bool = False
    max_depth: int = 3
    knowledge_base_path: str = os.path.join(DEFAULT_HOME, "knowledge-base.json")
    unknown_log_path: str = os.path.join(DEFAULT_HOME, "unknown-conditions.json")
    min_signal_policy: MinSignalPolicy = MinSignalPolicy.STRICT

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        environ: Optional[dict[str, str]] = None,
        **explicit: Any,
    ) -> SentinelConfig:
        """Resolve each key from explicit kwargs, then env, then file, then default.

        Raises:
            ConfigError: On an unknown key or a value that does not convert.
        """
        environ = os.environ if environ is None else environ
        file_values = load_config_file(config_path)
        values: dict[str, Any] = {}
        for key, convert in _CONVERTERS.items():
            env_value = environ.get(ENV_PREFIX + key.upper())
            if explicit.get(key) is not None:
                raw = explicit.pop(key)
            elif env_value not in (None, ""):
                raw = env_value
            elif file_values.get(key) is not None:
                raw = file_values[key]
            else:
                continue
            values[key] = convert(key, raw)
        unknown = [k for k, v in explicit.items() if v is not None and k not in _CONVERTERS]
        if unknown:
            raise ConfigError(f"Unknown config key(s): {', '.join(sorted(unknown))}")
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        out = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            out[f.name] = value.value if hasattr(value, "value") else value
        return out
