"""Analysis backends — pick the LLM SDK that serves a configured model."""

from __future__ import annotations

import importlib
from typing import Optional, Type

from sentinel_agent.core.providers.base import BaseLLMProvider, ProviderReply

__all__ = ["BaseLLMProvider", "ProviderReply", "detect_provider", "get_provider_class"]

# Model-name prefix -> provider. Anything else goes to anthropic.
MODEL_PREFIXES: tuple[tuple[str, str], ...] = (
    ("gpt-", "openai"),
    ("o1-", "openai"),
    ("o3-", "openai"),
    ("o4-", "openai"),
    ("gemini-", "google"),
)

# provider -> (module, class, pip extra or None for the base install)
_BACKENDS: dict[str, tuple[str, str, Optional[str]]] = {
    "anthropic": ("sentinel_agent.core.providers.anthropic", "AnthropicProvider", None),
    "openai": ("sentinel_agent.core.providers.openai", "OpenAIProvider", "openai"),
    "google": ("sentinel_agent.core.providers.google", "GoogleProvider", "google"),
}


def detect_provider(model: str) -> str:
    """Provider name for ``model``: "anthropic", "openai" or "google"."""
    name = model.lower()
    for prefix, provider in MODEL_PREFIXES:
        if name.startswith(prefix):
            return provider
    return "anthropic"


def get_provider_class(name: str) -> Type[BaseLLMProvider]:
    """Import and return the provider class, loading optional SDKs on demand.

    Raises:
        ImportError: With an install hint if an optional SDK is missing.
        ValueError: If the provider name is unknown.
    """
    if name not in _BACKENDS:
        raise ValueError(f"Unknown provider: {name!r}")
    module_name, class_name, extra = _BACKENDS[name]
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        if extra is None:
            raise
        raise ImportError(
            f"The {name} backend needs its SDK: pip install test-sentinel[{extra}]"
        ) from e
    return getattr(module, class_name)
