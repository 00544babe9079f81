"""Playwright adapter — exposes a sync Playwright Page as LiveState."""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING, Any, Optional

from sentinel_agent.drivers.base import Element, LiveState

if TYPE_CHECKING:
    from playwright.sync_api import ElementHandle, Frame, Page

logger = logging.getLogger(__name__)

# WAIT_FOR_ELEMENT condition -> Playwright selector state
_WAIT_STATES = {
    "present": "attached",
    "visible": "visible",
    "clickable": "visible",
}

_MAX_CONSOLE_LINES = 200


class PlaywrightElement(Element):
    def __init__(self, handle: ElementHandle):
        self.handle = handle

    def is_displayed(self) -> bool:
        return self.handle.is_visible()

    def click(self) -> None:
        self.handle.click()

    def scroll_into_view(self) -> None:
        self.handle.scroll_into_view_if_needed()


class PlaywrightLiveState(LiveState):
    """Wraps a ``playwright.sync_api.Page``.

    Dialogs and console messages are captured through page listeners so
    that alert handlers can act on a dialog that is already open.
    """

    def __init__(self, page: Page):
        self.page = page
        self._scope: Page | Frame = page
        self._dialogs: list[Any] = []
        self._console: list[str] = []
        page.on("dialog", self._on_dialog)
        page.on("console", self._on_console)

    def _on_dialog(self, dialog: Any) -> None:
        self._dialogs.append(dialog)

    def _on_console(self, message: Any) -> None:
        self._console.append(f"[{message.type}] {message.text}")
        if len(self._console) > _MAX_CONSOLE_LINES:
            self._console = self._console[-_MAX_CONSOLE_LINES:]

    # ── Read ──────────────────────────────────────────────────────────

    def current_url(self) -> str:
        return self.page.url

    def title(self) -> str:
        return self.page.title()

    def page_source(self) -> str:
        return self._scope.content()

    def find_elements(self, selector: str) -> list[Element]:
        return [PlaywrightElement(h) for h in self._scope.query_selector_all(selector)]

    def screenshot_base64(self) -> Optional[str]:
        return base64.b64encode(self.page.screenshot(type="png")).decode("ascii")

    def console_logs(self) -> list[str]:
        return list(self._console)

    # ── Navigate ──────────────────────────────────────────────────────

    def get(self, url: str) -> None:
        self._scope = self.page
        self.page.goto(url)

    def back(self) -> None:
        self._scope = self.page
        self.page.go_back()

    def refresh(self) -> None:
        self._scope = self.page
        self.page.reload()

    # ── Act ───────────────────────────────────────────────────────────

    def execute_script(self, script: str, *args: Any) -> Any:
        if not args:
            return self._scope.evaluate(script)
        arg = args[0] if len(args) == 1 else list(args)
        return self._scope.evaluate(script, arg)

    def press_escape(self) -> None:
        self.page.keyboard.press("Escape")

    def accept_alert(self, timeout_ms: int) -> str:
        dialog = self._next_dialog(timeout_ms)
        text = dialog.message
        dialog.accept()
        return text

    def dismiss_alert(self, timeout_ms: int) -> str:
        dialog = self._next_dialog(timeout_ms)
        text = dialog.message
        dialog.dismiss()
        return text

    def _next_dialog(self, timeout_ms: int) -> Any:
        if not self._dialogs:
            self.page.wait_for_event("dialog", timeout=timeout_ms)
        return self._dialogs.pop(0)

    def switch_to_frame(self, selector: str) -> None:
        handle = self._scope.query_selector(selector)
        if handle is None:
            raise LookupError(f"No frame element matches '{selector}'")
        frame = handle.content_frame()
        if frame is None:
            raise LookupError(f"Element '{selector}' is not a frame")
        self._scope = frame

    def switch_to_default(self) -> None:
        self._scope = self.page

    def wait_for_element(self, selector: str, condition: str, timeout_ms: int) -> None:
        state = _WAIT_STATES.get(condition.lower(), "visible")
        self._scope.wait_for_selector(selector, state=state, timeout=timeout_ms)

    def wait_for_url(self, pattern: str, timeout_ms: int) -> None:
        self.page.wait_for_url(lambda url: pattern in url, timeout=timeout_ms)

    def delete_all_cookies(self) -> None:
        self.page.context.clear_cookies()
