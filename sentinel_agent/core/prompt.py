"""Prompt builder — serialises a ConditionEvent into tagged analysis content."""

from __future__ import annotations

import os
from typing import Any, Optional

from sentinel_agent.core.models import ConditionEvent

_PROMPTS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "prompts")

SCREENSHOT_NOTE = (
    "The image above is a screenshot of the browser at the time the condition occurred. "
    "Use it to identify visual clues: overlays, spinners, error messages, unexpected content."
)


def _load_prompt(name: str) -> str:
    path = os.path.join(_PROMPTS_DIR, name)
    with open(path, encoding="utf-8") as f:
        return f.read()


def system_prompt() -> str:
    return _load_prompt("system.txt")


def escape_xml(text: Optional[str]) -> str:
    if text is None:
        return ""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def build_event_text(event: ConditionEvent) -> str:
    """Tagged text body for an event. The DOM goes last as the largest block."""
    parts = ["<condition_event>\n"]
    parts.append(f"<condition_type>{event.condition_type.value}</condition_type>")
    parts.append(f"<message>{escape_xml(event.message)}</message>\n")

    parts.append(f"<current_url>{event.current_url}</current_url>")
    if event.expected_url:
        parts.append(f"<expected_url>{event.expected_url}</expected_url>")

    if event.locator_strategy:
        parts.append(
            "\n<locator_context>\n"
            f"  Strategy: {event.locator_strategy}\n"
            f"  Value: {event.locator_value}\n"
            "</locator_context>"
        )

    if event.prior_steps:
        lines = [f"  Step {i}: {step}" for i, step in enumerate(event.prior_steps, 1)]
        parts.append("\n<prior_test_steps>\n" + "\n".join(lines) + "\n</prior_test_steps>")

    if event.console_logs:
        lines = [f"  {line}" for line in event.console_logs]
        parts.append("\n<browser_console_logs>\n" + "\n".join(lines) + "\n</browser_console_logs>")

    if event.stack_trace:
        parts.append(f"\n<stack_trace>\n{event.stack_trace}\n</stack_trace>")

    if event.dom_snapshot:
        parts.append(f"\n<dom_snapshot>\n{event.dom_snapshot}\n</dom_snapshot>")

    parts.append("\n</condition_event>\n")
    parts.append("Analyze the condition above and return the JSON insight object.")
    return "\n".join(parts)


def build_user_content(event: ConditionEvent, include_screenshot: bool = True) -> list[dict[str, Any]]:
    """Content blocks in Anthropic format: text, then screenshot and a note."""
    content: list[dict[str, Any]] = [{"type": "text", "text": build_event_text(event)}]
    if include_screenshot and event.screenshot_base64:
        content.append({
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": "image/png",
                "data": event.screenshot_base64,
            },
        })
        content.append({"type": "text", "text": SCREENSHOT_NOTE})
    return content
