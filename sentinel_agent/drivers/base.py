"""LiveState — browser-agnostic view of the page under test."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class Element(ABC):
    @abstractmethod
    def is_displayed(self) -> bool: ...

    @abstractmethod
    def click(self) -> None: ...

    @abstractmethod
    def scroll_into_view(self) -> None: ...


class LiveState(ABC):
    """Capabilities checkers and action handlers use to read and act on the page.

    Creation and teardown of the underlying browser belong to the caller.
    Implementations raise on failure; callers decide how to degrade.
    """

    # ── Read ──────────────────────────────────────────────────────────

    @abstractmethod
    def current_url(self) -> str: ...

    @abstractmethod
    def title(self) -> str: ...

    @abstractmethod
    def page_source(self) -> str: ...

    @abstractmethod
    def find_elements(self, selector: str) -> list[Element]:
        """Return elements matching a CSS selector (empty list when none)."""

    @abstractmethod
    def screenshot_base64(self) -> Optional[str]: ...

    @abstractmethod
    def console_logs(self) -> list[str]: ...

    # ── Navigate ──────────────────────────────────────────────────────

    @abstractmethod
    def get(self, url: str) -> None: ...

    @abstractmethod
    def back(self) -> None: ...

    @abstractmethod
    def refresh(self) -> None: ...

    # ── Act ───────────────────────────────────────────────────────────

    @abstractmethod
    def execute_script(self, script: str, *args: Any) -> Any: ...

    @abstractmethod
    def press_escape(self) -> None: ...

    @abstractmethod
    def accept_alert(self, timeout_ms: int) -> str:
        """Accept the pending dialog and return its text."""

    @abstractmethod
    def dismiss_alert(self, timeout_ms: int) -> str:
        """Dismiss the pending dialog and return its text."""

    @abstractmethod
    def switch_to_frame(self, selector: str) -> None: ...

    @abstractmethod
    def switch_to_default(self) -> None: ...

    @abstractmethod
    def wait_for_element(self, selector: str, condition: str, timeout_ms: int) -> None:
        """Block until the element is present, visible or clickable.

        Raises:
            TimeoutError (or the driver's own timeout error) when it never is.
        """

    @abstractmethod
    def wait_for_url(self, pattern: str, timeout_ms: int) -> None: ...

    @abstractmethod
    def delete_all_cookies(self) -> None: ...
