"""Null-object LiveState for analysing a captured event without a browser."""

from __future__ import annotations

from typing import Any, Optional

from sentinel_agent.core.models import ConditionEvent
from sentinel_agent.drivers.base import Element, LiveState


class NullLiveState(LiveState):
    """Static snapshot: reads come from the event, actions are refused."""

    def __init__(self, url: str = "unknown", title: str = "", source: str = ""):
        self._url = url
        self._title = title
        self._source = source

    @classmethod
    def from_event(cls, event: ConditionEvent) -> NullLiveState:
        return cls(url=event.current_url, source=event.dom_snapshot or "")

    def current_url(self) -> str:
        return self._url

    def title(self) -> str:
        return self._title

    def page_source(self) -> str:
        return self._source

    def find_elements(self, selector: str) -> list[Element]:
        return []

    def screenshot_base64(self) -> Optional[str]:
        return None

    def console_logs(self) -> list[str]:
        return []

    def get(self, url: str) -> None:
        self._refuse("navigate")

    def back(self) -> None:
        self._refuse("navigate back")

    def refresh(self) -> None:
        self._refuse("refresh")

    def execute_script(self, script: str, *args: Any) -> Any:
        self._refuse("execute script")

    def press_escape(self) -> None:
        self._refuse("press Escape")

    def accept_alert(self, timeout_ms: int) -> str:
        self._refuse("accept alert")

    def dismiss_alert(self, timeout_ms: int) -> str:
        self._refuse("dismiss alert")

    def switch_to_frame(self, selector: str) -> None:
        self._refuse("switch frame")

    def switch_to_default(self) -> None:
        self._refuse("switch frame")

    def wait_for_element(self, selector: str, condition: str, timeout_ms: int) -> None:
        raise TimeoutError(f"No live page: '{selector}' never becomes {condition}")

    def wait_for_url(self, pattern: str, timeout_ms: int) -> None:
        if pattern not in self._url:
            raise TimeoutError(f"No live page: URL never contains '{pattern}'")

    def delete_all_cookies(self) -> None:
        self._refuse("delete cookies")

    @staticmethod
    def _refuse(action: str) -> Any:
        raise RuntimeError(f"Cannot {action}: no live browser attached")
