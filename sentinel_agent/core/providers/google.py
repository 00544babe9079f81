"""Google Gemini LLM provider."""

from __future__ import annotations

import base64
import os

from google import genai
from google.genai import types

from sentinel_agent.core.providers.base import BaseLLMProvider, ProviderReply


def _convert_content(anthropic_content: list[dict]) -> list[types.Part]:
    """Convert Anthropic text/image blocks to Gemini Part objects."""
    parts = []
    for block in anthropic_content:
        if block.get("type") == "text":
            parts.append(types.Part.from_text(text=block["text"]))
        elif block.get("type") == "image":
            source = block["source"]
            parts.append(types.Part.from_bytes(
                data=base64.b64decode(source["data"]),
                mime_type=source["media_type"],
            ))
    return parts


class GoogleProvider(BaseLLMProvider):
    """Provider for Google Gemini models."""

    def __init__(self, model: str, timeout: float = 30.0):
        super().__init__(model, timeout)
        # HttpOptions.timeout is in milliseconds.
        self.client = genai.Client(
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    def complete(
        self,
        system_prompt: str,
        content: list[dict],
        max_tokens: int,
    ) -> ProviderReply:
        response = self.client.models.generate_content(
            model=self.model,
            contents=[types.Content(role="user", parts=_convert_content(content))],
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                max_output_tokens=max_tokens,
            ),
        )

        text = response.text
        if not text:
            raise ValueError(
                "Gemini response did not contain any text. "
                "Response: " + str(response)
            )
        usage = response.usage_metadata
        return ProviderReply(
            text=text,
            input_tokens=(usage.prompt_token_count or 0) if usage else 0,
            output_tokens=(usage.candidates_token_count or 0) if usage else 0,
        )

    @staticmethod
    def check_api_key() -> tuple[bool, str]:
        return bool(os.environ.get("GOOGLE_API_KEY")), "GOOGLE_API_KEY"
