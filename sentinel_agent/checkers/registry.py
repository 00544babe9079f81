"""Checker chain — built-in checkers in ascending priority, first match wins."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sentinel_agent.checkers.base import Checker, MatchResult
from sentinel_agent.checkers.dom import ElementHiddenChecker, OverlayChecker
from sentinel_agent.checkers.failure import AssertionFailureChecker, StaleElementChecker
from sentinel_agent.checkers.navigation import (
    AuthRedirectChecker,
    PageTimeoutChecker,
    WrongPageChecker,
)
from sentinel_agent.core.errors import DuplicateRegistrationError
from sentinel_agent.core.models import ConditionEvent
from sentinel_agent.drivers.base import LiveState

logger = logging.getLogger(__name__)

# Registration order breaks ties between equal priorities.
BUILTIN_CHECKERS: tuple[type[Checker], ...] = (
    WrongPageChecker,
    StaleElementChecker,
    PageTimeoutChecker,
    AuthRedirectChecker,
    OverlayChecker,
    AssertionFailureChecker,
    ElementHiddenChecker,
)


def default_checkers() -> list[Checker]:
    return [cls() for cls in BUILTIN_CHECKERS]


class CheckerChain:
    """Ordered collection of checkers.

    Raises:
        DuplicateRegistrationError: If two checkers share an id.
    """

    def __init__(self, checkers: Optional[Iterable[Checker]] = None):
        if checkers is None:
            checkers = default_checkers()
        seen: dict[str, Checker] = {}
        for checker in checkers:
            if checker.checker_id in seen:
                raise DuplicateRegistrationError(
                    "checker", checker.checker_id, seen[checker.checker_id], checker
                )
            seen[checker.checker_id] = checker
        self._checkers = tuple(sorted(seen.values(), key=lambda c: c.priority))
        logger.debug(
            "Checker chain: %s",
            ", ".join(f"{c.checker_id}({c.priority})" for c in self._checkers),
        )

    @classmethod
    def with_extra(cls, *extra: Checker) -> CheckerChain:
        """Built-in checkers plus project-specific ones."""
        return cls([*default_checkers(), *extra])

    @property
    def checkers(self) -> tuple[Checker, ...]:
        return self._checkers

    def __len__(self) -> int:
        return len(self._checkers)

    def first_match(
        self, live: LiveState, event: ConditionEvent
    ) -> Optional[tuple[Checker, MatchResult]]:
        """Run checkers in order; return the first that matches."""
        for checker in self._checkers:
            try:
                result = checker.check(live, event)
            except Exception as e:
                logger.warning(
                    "Checker %s raised, skipping: %s", checker.checker_id, e
                )
                continue
            if result.matched:
                logger.info(
                    "Checker '%s' matched: category=%s confidence=%.2f",
                    checker.checker_id, result.category.value, result.confidence,
                )
                return checker, result
        return None

    def any_match(self, live: LiveState, event: ConditionEvent) -> Optional[str]:
        """Return the id of the first checker that still matches, if any."""
        for checker in self._checkers:
            try:
                if checker.check(live, event).matched:
                    return checker.checker_id
            except Exception as e:
                logger.debug("Checker %s raised during re-check: %s", checker.checker_id, e)
        return None
