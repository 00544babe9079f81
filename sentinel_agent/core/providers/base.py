"""Base class for LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class ProviderReply:
    text: str
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class BaseLLMProvider(ABC):
    """Abstract base for LLM provider implementations."""

    def __init__(self, model: str, timeout: float = 30.0):
        self.model = model
        self.timeout = timeout

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        content: list[dict],
        max_tokens: int,
    ) -> ProviderReply:
        """Send one user turn and return the model's text reply.

        Args:
            system_prompt: The full system prompt string.
            content: Anthropic-format content blocks (text and base64 image).
            max_tokens: Upper bound on the reply length.

        Returns:
            The reply text plus token usage.
        """

    @staticmethod
    @abstractmethod
    def check_api_key() -> tuple[bool, str]:
        """Check whether the required API key is set.

        Returns:
            (is_set, env_var_name), e.g. (True, "ANTHROPIC_API_KEY").
        """
