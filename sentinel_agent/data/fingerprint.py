"""Fingerprints used to deduplicate unknown conditions."""

from __future__ import annotations

import hashlib
import re
from typing import Optional
from urllib.parse import urlsplit

from sentinel_agent.core.models import ConditionEvent

# First dotted exception class name in a stack trace or message,
# e.g. "org.openqa.selenium.TimeoutException" or "playwright._impl._errors.TimeoutError".
_EXCEPTION_RE = re.compile(r"([A-Za-z_][\w$]*(?:\.[A-Za-z_][\w$]*)*(?:Exception|Error))\b")


def extract_exception_type(stack_trace: Optional[str]) -> Optional[str]:
    """Return the simple class name of the first exception in the trace."""
    if not stack_trace:
        return None
    first_line = stack_trace.strip().splitlines()[0] if stack_trace.strip() else ""
    match = _EXCEPTION_RE.search(first_line) or _EXCEPTION_RE.search(stack_trace)
    if not match:
        return None
    return match.group(1).rsplit(".", 1)[-1]


def url_path(url: Optional[str]) -> str:
    """Path component of a URL, without query or fragment."""
    if not url:
        return ""
    try:
        path = urlsplit(url).path
    except ValueError:
        return url
    return path or "/"


def content_hash(event: ConditionEvent) -> str:
    """Stable 16-hex-char id for "the same kind of condition in the same place"."""
    parts = [
        event.condition_type.value,
        extract_exception_type(event.stack_trace) or "",
        event.locator_value or "",
        url_path(event.current_url),
    ]
    digest = hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
    return digest[:16]
