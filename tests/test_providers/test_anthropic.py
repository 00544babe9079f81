"""Tests for the Anthropic provider."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from sentinel_agent.core.providers.anthropic import AnthropicProvider


CONTENT = [{"type": "text", "text": "<condition_event>...</condition_event>"}]


def _text_block(text):
    block = MagicMock()
    block.type = "text"
    block.text = text
    return block


def _response(*blocks, input_tokens=120, output_tokens=30):
    response = MagicMock()
    response.content = list(blocks)
    response.usage.input_tokens = input_tokens
    response.usage.output_tokens = output_tokens
    return response


class TestAnthropicProvider:
    @patch("sentinel_agent.core.providers.anthropic.anthropic.Anthropic")
    def test_client_has_timeout_and_no_retries(self, MockAnthropic):
        AnthropicProvider("claude-sonnet-4-6", timeout=12)
        MockAnthropic.assert_called_once_with(timeout=12, max_retries=0)

    @patch("sentinel_agent.core.providers.anthropic.anthropic.Anthropic")
    def test_complete_returns_text_and_usage(self, MockAnthropic):
        client = MockAnthropic.return_value
        client.messages.create.return_value = _response(_text_block('{"rootCause": "x"}'))

        provider = AnthropicProvider("claude-sonnet-4-6")
        reply = provider.complete("system prompt", CONTENT, 2048)

        assert reply.text == '{"rootCause": "x"}'
        assert reply.total_tokens == 150
        kwargs = client.messages.create.call_args[1]
        assert kwargs["model"] == "claude-sonnet-4-6"
        assert kwargs["max_tokens"] == 2048
        assert kwargs["system"] == "system prompt"
        assert kwargs["messages"] == [{"role": "user", "content": CONTENT}]

    @patch("sentinel_agent.core.providers.anthropic.anthropic.Anthropic")
    def test_joins_text_blocks(self, MockAnthropic):
        other = MagicMock()
        other.type = "thinking"
        MockAnthropic.return_value.messages.create.return_value = _response(
            other, _text_block('{"a":'), _text_block(" 1}"),
        )
        reply = AnthropicProvider("claude-sonnet-4-6").complete("s", CONTENT, 100)
        assert reply.text == '{"a": 1}'

    @patch("sentinel_agent.core.providers.anthropic.anthropic.Anthropic")
    def test_no_text_raises(self, MockAnthropic):
        MockAnthropic.return_value.messages.create.return_value = _response()
        with pytest.raises(ValueError, match="text block"):
            AnthropicProvider("claude-sonnet-4-6").complete("s", CONTENT, 100)

    def test_check_api_key(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        assert AnthropicProvider.check_api_key() == (True, "ANTHROPIC_API_KEY")
        monkeypatch.delenv("ANTHROPIC_API_KEY")
        assert AnthropicProvider.check_api_key() == (False, "ANTHROPIC_API_KEY")
