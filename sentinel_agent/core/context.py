"""Context collector — assembles ConditionEvents from live state.

Every capture is best-effort: a collection failure is logged and the
field left empty, so the original condition is never hidden.
"""

from __future__ import annotations

import logging
import re
import traceback
from typing import Optional

from sentinel_agent.core.models import ConditionEvent, ConditionType
from sentinel_agent.drivers.base import LiveState

logger = logging.getLogger(__name__)

MAX_STACK_FRAMES = 15
MAX_CONSOLE_LINES = 50

# Selenium: Unable to locate element: {"method":"css selector","selector":"#x"}
_SELENIUM_METHOD_RE = re.compile(r'"method":"([^"]*)"')
_SELENIUM_SELECTOR_RE = re.compile(r'"selector":"(.*?)"\}', re.DOTALL)
# Playwright: waiting for locator('#x')
_PLAYWRIGHT_LOCATOR_RE = re.compile(r"""locator\((['"])(.*?)\1\)""", re.DOTALL)

_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)


def parse_locator(message: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Pull (strategy, value) out of a driver error message."""
    if not message:
        return None, None
    selector = _SELENIUM_SELECTOR_RE.search(message)
    if selector:
        method = _SELENIUM_METHOD_RE.search(message)
        return (method.group(1) if method else None), selector.group(1)
    locator = _PLAYWRIGHT_LOCATOR_RE.search(message)
    if locator:
        return "locator", locator.group(2)
    return None, None


def truncate_dom(dom: Optional[str], max_chars: int) -> Optional[str]:
    """Strip script/style bodies, then keep the head 60% and tail 40%."""
    if dom is None:
        return None
    dom = _SCRIPT_RE.sub("<script>[removed]</script>", dom)
    dom = _STYLE_RE.sub("<style>[removed]</style>", dom)
    if len(dom) <= max_chars:
        return dom
    keep = max(max_chars - 50, 0)
    head = int(keep * 0.6)
    tail = keep - head
    removed = len(dom) - max_chars
    return (
        dom[:head]
        + f"\n\n... [DOM TRUNCATED: {removed} chars removed] ...\n\n"
        + (dom[len(dom) - tail:] if tail else "")
    )


def format_stack(exc: BaseException) -> str:
    cls = type(exc)
    name = cls.__qualname__ if cls.__module__ == "builtins" else f"{cls.__module__}.{cls.__qualname__}"
    frames = traceback.extract_tb(exc.__traceback__)
    lines = [f"{name}: {exc}"]
    for frame in frames[:MAX_STACK_FRAMES]:
        lines.append(f"  at {frame.name} ({frame.filename}:{frame.lineno})")
    if len(frames) > MAX_STACK_FRAMES:
        lines.append(f"  ... {len(frames) - MAX_STACK_FRAMES} more frames")
    return "\n".join(lines)


class ContextCollector:
    def __init__(
        self,
        capture_dom: bool = True,
        capture_screenshot: bool = True,
        dom_max_chars: int = 15000,
    ):
        self.capture_dom = capture_dom
        self.capture_screenshot = capture_screenshot
        self.dom_max_chars = dom_max_chars

    @classmethod
    def from_config(cls, config) -> ContextCollector:
        return cls(
            capture_dom=config.capture_dom,
            capture_screenshot=config.capture_screenshot,
            dom_max_chars=config.dom_max_chars,
        )

    def collect(
        self,
        live: LiveState,
        condition_type: ConditionType,
        exc: Optional[BaseException] = None,
        prior_steps: Optional[list[str]] = None,
        meta: Optional[dict[str, str]] = None,
    ) -> ConditionEvent:
        """Build an event from the live page and the caught exception."""
        message = str(exc) if exc is not None else f"Condition detected: {condition_type.value}"
        strategy = value = None
        if exc is not None and condition_type is ConditionType.LOCATOR_NOT_FOUND:
            strategy, value = parse_locator(message)

        return ConditionEvent(
            condition_type=condition_type,
            message=message,
            current_url=self._url(live),
            locator_strategy=strategy,
            locator_value=value,
            dom_snapshot=self._dom(live),
            screenshot_base64=self._screenshot(live),
            console_logs=tuple(self._console(live)),
            prior_steps=tuple(prior_steps or ()),
            stack_trace=format_stack(exc) if exc is not None else None,
            meta=self._meta(live, meta),
        )

    def collect_wrong_page(
        self,
        live: LiveState,
        expected_url: str,
        prior_steps: Optional[list[str]] = None,
        meta: Optional[dict[str, str]] = None,
    ) -> ConditionEvent:
        current = self._url(live)
        return ConditionEvent(
            condition_type=ConditionType.WRONG_PAGE,
            message=f"Expected URL pattern '{expected_url}' but found '{current}'",
            current_url=current,
            expected_url=expected_url,
            dom_snapshot=self._dom(live),
            screenshot_base64=self._screenshot(live),
            console_logs=tuple(self._console(live)),
            prior_steps=tuple(prior_steps or ()),
            meta=self._meta(live, meta),
        )

    # ── Captures ─────────────────────────────────────────

    def _url(self, live: LiveState) -> str:
        try:
            return live.current_url() or "unavailable"
        except Exception as e:
            logger.warning("Could not capture current URL: %s", e)
            return "unavailable"

    def _dom(self, live: LiveState) -> Optional[str]:
        if not self.capture_dom:
            return None
        try:
            return truncate_dom(live.page_source(), self.dom_max_chars)
        except Exception as e:
            logger.warning("Could not capture DOM snapshot: %s", e)
            return None

    def _screenshot(self, live: LiveState) -> Optional[str]:
        if not self.capture_screenshot:
            return None
        try:
            return live.screenshot_base64()
        except Exception as e:
            logger.warning("Could not capture screenshot: %s", e)
            return None

    def _console(self, live: LiveState) -> list[str]:
        try:
            return list(live.console_logs())[-MAX_CONSOLE_LINES:]
        except Exception as e:
            logger.debug("Console log collection not available: %s", e)
            return []

    def _meta(self, live: LiveState, meta: Optional[dict[str, str]]) -> dict[str, str]:
        out = {"framework": "test-sentinel"}
        try:
            user_agent = live.execute_script("navigator.userAgent")
            if user_agent:
                out["userAgent"] = str(user_agent)
            viewport = live.execute_script("window.innerWidth + 'x' + window.innerHeight")
            if viewport:
                out["viewport"] = str(viewport)
        except Exception as e:
            logger.debug("Environment metadata not available: %s", e)
        out.update({str(k): str(v) for k, v in (meta or {}).items()})
        return out
