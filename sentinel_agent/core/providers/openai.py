"""OpenAI LLM provider."""

from __future__ import annotations

import os

import openai

from sentinel_agent.core.providers.base import BaseLLMProvider, ProviderReply


def _convert_content(anthropic_content: list[dict]) -> list[dict]:
    """Convert Anthropic text/image blocks to OpenAI chat content parts."""
    parts = []
    for block in anthropic_content:
        if block.get("type") == "text":
            parts.append({"type": "text", "text": block["text"]})
        elif block.get("type") == "image":
            source = block["source"]
            parts.append({
                "type": "image_url",
                "image_url": {
                    "url": f"data:{source['media_type']};base64,{source['data']}",
                },
            })
    return parts


class OpenAIProvider(BaseLLMProvider):
    """Provider for OpenAI models (GPT-4o, o1, o3, etc.)."""

    def __init__(self, model: str, timeout: float = 30.0):
        super().__init__(model, timeout)
        self.client = openai.OpenAI(timeout=timeout, max_retries=0)

    def complete(
        self,
        system_prompt: str,
        content: list[dict],
        max_tokens: int,
    ) -> ProviderReply:
        response = self.client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": _convert_content(content)},
            ],
        )

        choice = response.choices[0].message
        if not choice.content:
            raise ValueError(
                "OpenAI response did not contain any text. "
                "Response: " + str(choice)
            )
        usage = response.usage
        return ProviderReply(
            text=choice.content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )

    @staticmethod
    def check_api_key() -> tuple[bool, str]:
        return bool(os.environ.get("OPENAI_API_KEY")), "OPENAI_API_KEY"
