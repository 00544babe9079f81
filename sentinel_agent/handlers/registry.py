"""Handler registry — explicit action-type table with duplicate detection."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sentinel_agent.core.errors import DuplicateRegistrationError
from sentinel_agent.handlers import flow, interaction, navigation
from sentinel_agent.handlers.base import ActionHandler

logger = logging.getLogger(__name__)

BUILTIN_HANDLERS: tuple[type[ActionHandler], ...] = (
    interaction.ClickHandler,
    interaction.ClickIfPresentHandler,
    interaction.WaitForElementHandler,
    interaction.WaitForUrlHandler,
    interaction.WaitFixedHandler,
    interaction.ScrollToElementHandler,
    interaction.ScrollToTopHandler,
    interaction.DismissOverlayHandler,
    interaction.AcceptAlertHandler,
    interaction.DismissAlertHandler,
    interaction.SwitchToFrameHandler,
    interaction.SwitchToDefaultHandler,
    navigation.RefreshPageHandler,
    navigation.NavigateBackHandler,
    navigation.NavigateToHandler,
    navigation.ClearCookiesHandler,
    navigation.ExecuteScriptHandler,
    flow.RetryActionHandler,
    flow.SkipTestHandler,
    flow.SkipStepHandler,
    flow.AbortSuiteHandler,
    flow.CaptureScreenshotHandler,
    flow.QueryApmHandler,
    flow.CaptureHarHandler,
    flow.CustomHandler,
)

# Built-ins a project handler may take over without a duplicate error.
REPLACEABLE = frozenset({"CUSTOM"})


def default_handlers() -> list[ActionHandler]:
    return [cls() for cls in BUILTIN_HANDLERS]


class HandlerRegistry:
    """Maps action-type names to handler instances.

    Raises:
        DuplicateRegistrationError: If two handlers claim the same type.
    """

    def __init__(self, handlers: Optional[Iterable[ActionHandler]] = None):
        if handlers is None:
            handlers = default_handlers()
        self._handlers: dict[str, ActionHandler] = {}
        for handler in handlers:
            key = handler.action_type.strip().upper()
            if not key:
                raise ValueError(f"{type(handler).__name__} has no action_type")
            if key in self._handlers:
                raise DuplicateRegistrationError(
                    "action handler", key, self._handlers[key], handler
                )
            self._handlers[key] = handler
        logger.debug("Handler registry: %d action types", len(self._handlers))

    @classmethod
    def with_defaults(cls, *extra: ActionHandler) -> HandlerRegistry:
        """Built-in handlers plus project handlers."""
        claimed = {h.action_type.strip().upper() for h in extra} & REPLACEABLE
        builtins = [h for h in default_handlers() if h.action_type not in claimed]
        return cls([*builtins, *extra])

    def find(self, action_type: Optional[str]) -> Optional[ActionHandler]:
        if not action_type:
            return None
        return self._handlers.get(action_type.strip().upper())

    def has_handler(self, action_type: str) -> bool:
        return self.find(action_type) is not None

    @property
    def action_types(self) -> list[str]:
        return sorted(self._handlers)

    def size(self) -> int:
        return len(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)
