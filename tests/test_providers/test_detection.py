"""Tests for provider detection and registry."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from sentinel_agent.core.providers import detect_provider, get_provider_class


# ---------------------------------------------------------------------------
# detect_provider
# ---------------------------------------------------------------------------

class TestDetectProvider:
    def test_claude_models(self):
        assert detect_provider("claude-sonnet-4-6") == "anthropic"
        assert detect_provider("claude-3-haiku-20240307") == "anthropic"

    def test_gpt_models(self):
        assert detect_provider("gpt-4o") == "openai"
        assert detect_provider("GPT-4o-mini") == "openai"

    def test_o_series_models(self):
        assert detect_provider("o1-preview") == "openai"
        assert detect_provider("o3-mini") == "openai"
        assert detect_provider("o4-mini") == "openai"

    def test_gemini_models(self):
        assert detect_provider("gemini-2.5-pro") == "google"

    def test_unknown_model_defaults_to_anthropic(self):
        assert detect_provider("some-custom-model") == "anthropic"


# ---------------------------------------------------------------------------
# get_provider_class
# ---------------------------------------------------------------------------

class TestGetProviderClass:
    def test_anthropic(self):
        from sentinel_agent.core.providers.anthropic import AnthropicProvider
        assert get_provider_class("anthropic") is AnthropicProvider

    def test_openai(self):
        from sentinel_agent.core.providers.openai import OpenAIProvider
        assert get_provider_class("openai") is OpenAIProvider

    def test_google(self):
        from sentinel_agent.core.providers.google import GoogleProvider
        assert get_provider_class("google") is GoogleProvider

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            get_provider_class("mistral")

    def test_missing_sdk_hint(self):
        with patch.dict("sys.modules", {"sentinel_agent.core.providers.openai": None}):
            with pytest.raises(ImportError, match=r"test-sentinel\[openai\]"):
                get_provider_class("openai")

    def test_missing_google_sdk_hint(self):
        with patch.dict("sys.modules", {"sentinel_agent.core.providers.google": None}):
            with pytest.raises(ImportError, match=r"test-sentinel\[google\]"):
                get_provider_class("google")
