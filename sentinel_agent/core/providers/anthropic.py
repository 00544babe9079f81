"""Anthropic (Claude) LLM provider."""

from __future__ import annotations

import os

import anthropic

from sentinel_agent.core.providers.base import BaseLLMProvider, ProviderReply


class AnthropicProvider(BaseLLMProvider):
    """Provider for Anthropic Claude models."""

    def __init__(self, model: str, timeout: float = 30.0):
        super().__init__(model, timeout)
        self.client = anthropic.Anthropic(timeout=timeout, max_retries=0)

    def complete(
        self,
        system_prompt: str,
        content: list[dict],
        max_tokens: int,
    ) -> ProviderReply:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            system=system_prompt,
            messages=[{"role": "user", "content": content}],
        )

        text = "".join(
            block.text for block in response.content if block.type == "text"
        )
        if not text:
            raise ValueError(
                "LLM response did not contain a text block. "
                "Response: " + str(response.content)
            )
        usage = response.usage
        return ProviderReply(
            text=text,
            input_tokens=usage.input_tokens if usage else 0,
            output_tokens=usage.output_tokens if usage else 0,
        )

    @staticmethod
    def check_api_key() -> tuple[bool, str]:
        return bool(os.environ.get("ANTHROPIC_API_KEY")), "ANTHROPIC_API_KEY"
