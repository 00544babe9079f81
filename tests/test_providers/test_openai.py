"""Tests for the OpenAI provider."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from sentinel_agent.core.providers.openai import OpenAIProvider, _convert_content


CONTENT = [
    {"type": "text", "text": "event text"},
    {
        "type": "image",
        "source": {"type": "base64", "media_type": "image/png", "data": "iVBORw0KGgo="},
    },
    {"type": "text", "text": "screenshot note"},
]


# ---------------------------------------------------------------------------
# Content conversion
# ---------------------------------------------------------------------------

class TestConvertContent:
    def test_text_and_image_parts(self):
        parts = _convert_content(CONTENT)
        assert parts[0] == {"type": "text", "text": "event text"}
        assert parts[1] == {
            "type": "image_url",
            "image_url": {"url": "data:image/png;base64,iVBORw0KGgo="},
        }
        assert parts[2]["text"] == "screenshot note"

    def test_unknown_blocks_dropped(self):
        assert _convert_content([{"type": "document"}]) == []


# ---------------------------------------------------------------------------
# OpenAIProvider
# ---------------------------------------------------------------------------

def _response(text, prompt_tokens=80, completion_tokens=20):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    response.usage.prompt_tokens = prompt_tokens
    response.usage.completion_tokens = completion_tokens
    return response


class TestOpenAIProvider:
    @patch("sentinel_agent.core.providers.openai.openai.OpenAI")
    def test_complete(self, MockOpenAI):
        client = MockOpenAI.return_value
        client.chat.completions.create.return_value = _response('{"rootCause": "x"}')

        reply = OpenAIProvider("gpt-4o", timeout=5).complete("system prompt", CONTENT, 512)

        MockOpenAI.assert_called_once_with(timeout=5, max_retries=0)
        assert reply.text == '{"rootCause": "x"}'
        assert reply.input_tokens == 80
        assert reply.output_tokens == 20
        kwargs = client.chat.completions.create.call_args[1]
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 512
        assert kwargs["messages"][0] == {"role": "system", "content": "system prompt"}
        assert kwargs["messages"][1]["role"] == "user"
        assert len(kwargs["messages"][1]["content"]) == 3

    @patch("sentinel_agent.core.providers.openai.openai.OpenAI")
    def test_empty_reply_raises(self, MockOpenAI):
        MockOpenAI.return_value.chat.completions.create.return_value = _response(None)
        with pytest.raises(ValueError, match="did not contain any text"):
            OpenAIProvider("gpt-4o").complete("s", CONTENT, 100)

    def test_check_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert OpenAIProvider.check_api_key() == (False, "OPENAI_API_KEY")
