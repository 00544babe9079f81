"""Remote analysis gateway — provider-agnostic insight requests."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional

from sentinel_agent.core.models import ConditionEvent, Insight, InsightSource
from sentinel_agent.core.prompt import build_user_content, system_prompt
from sentinel_agent.core.providers import (
    BaseLLMProvider,
    detect_provider,
    get_provider_class,
)

logger = logging.getLogger(__name__)


def strip_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if the model added one."""
    text = text.strip()
    if text.startswith("```"):
        first_newline = text.find("\n")
        text = text[first_newline + 1:] if first_newline != -1 else text[3:]
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the outermost {...} object in a reply.

    Raises:
        ValueError: If no JSON object can be found or parsed.
    """
    cleaned = strip_fences(text)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("No JSON object in response")
    data = json.loads(cleaned[start:end + 1])
    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")
    return data


def parse_insight(text: str, **overrides: Any) -> Insight:
    return Insight.from_dict(extract_json_object(text), **overrides)


class AnalysisGateway:
    """Sends condition content to an LLM and parses the JSON insight reply.

    Never raises: transport failures, timeouts and malformed replies all
    come back as an error insight with the latency recorded.
    """

    def __init__(
        self,
        model: str = "claude-sonnet-4-6",
        timeout_seconds: int = 30,
        max_tokens: int = 2048,
        log_prompts: bool = False,
        capture_screenshot: bool = True,
        provider: Optional[BaseLLMProvider] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.log_prompts = log_prompts
        self.capture_screenshot = capture_screenshot
        if provider is None:
            provider_class = get_provider_class(detect_provider(model))
            provider = provider_class(model, timeout=timeout_seconds)
        self.provider = provider

    @classmethod
    def from_config(cls, config) -> AnalysisGateway:
        return cls(
            model=config.model,
            timeout_seconds=config.timeout_seconds,
            max_tokens=config.max_tokens,
            log_prompts=config.log_prompts,
            capture_screenshot=config.capture_screenshot,
        )

    def analyze_event(self, event: ConditionEvent) -> Insight:
        return self.analyze(build_user_content(event, self.capture_screenshot))

    def analyze(self, content: list[dict[str, Any]]) -> Insight:
        start = time.monotonic()
        prompt = system_prompt()
        if self.log_prompts:
            logger.debug("Analysis request (%s):\n%s", self.model, _text_of(content))
        try:
            reply = self.provider.complete(prompt, content, self.max_tokens)
        except Exception as e:
            latency_ms = _elapsed_ms(start)
            logger.error("Analysis call failed after %dms: %s", latency_ms, e)
            return Insight.error(str(e), latency_ms)

        latency_ms = _elapsed_ms(start)
        if self.log_prompts:
            logger.debug(
                "Analysis reply (%dms, %d tokens):\n%s",
                latency_ms, reply.total_tokens, reply.text,
            )
        try:
            insight = parse_insight(
                reply.text,
                source=InsightSource.REMOTE_ANALYSIS,
                raw_response=reply.text,
                tokens_used=reply.total_tokens,
                latency_ms=latency_ms,
            )
        except (ValueError, TypeError, AttributeError) as e:
            logger.error("Failed to parse analysis reply: %s", e)
            logger.debug("Raw reply was: %s", reply.text[:500])
            error = Insight.error(f"Response parse failure: {e}", latency_ms)
            error.raw_response = reply.text
            error.tokens_used = reply.total_tokens
            return error

        logger.info(
            "Analysis complete: category=%s confidence=%d%% transient=%s latency=%dms tokens=%d",
            insight.category.value,
            round(insight.confidence * 100),
            insight.is_transient,
            latency_ms,
            reply.total_tokens,
        )
        return insight


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _text_of(content: list[dict[str, Any]]) -> str:
    return "\n".join(b.get("text", "[image]") for b in content)
