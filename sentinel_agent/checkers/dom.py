"""Checkers that query the live DOM: blocking overlays and hidden elements."""

from __future__ import annotations

import logging
from typing import Optional

from sentinel_agent.checkers.base import Checker, MatchResult
from sentinel_agent.core.models import (
    Category,
    ConditionEvent,
    ConditionType,
    Outcome,
    RemediationPlan,
    RiskLevel,
    Step,
)
from sentinel_agent.drivers.base import LiveState

logger = logging.getLogger(__name__)

OVERLAY_SELECTORS = (
    "[class*='modal'][style*='display: block']",
    "[class*='modal'].show",
    "[class*='overlay']:not([style*='display: none'])",
    "[class*='cookie-banner']",
    "[id*='cookie-consent']",
    "[class*='gdpr']",
    "[role='dialog'][aria-modal='true']",
    ".modal-backdrop.show",
)
OVERLAY_DOM_KEYWORDS = ("modal-open", "overlay--visible", "cookie-banner--active")
FALLBACK_OVERLAY_SELECTOR = "[role='dialog']"


class OverlayChecker(Checker):
    """Modal, cookie banner or other overlay intercepting interaction."""

    checker_id = "overlay"
    priority = 20

    def check(self, live: LiveState, event: ConditionEvent) -> MatchResult:
        selector = self._find_active_overlay(live)
        keyword = None
        if selector is None:
            keyword = self._dom_keyword(event)
            if keyword is None:
                return MatchResult.no_match()
            selector = FALLBACK_OVERLAY_SELECTOR

        evidence = [f"overlay selector: {selector}"]
        if keyword:
            evidence.append(f"DOM keyword: {keyword}")
        return MatchResult(
            matched=True,
            category=Category.OVERLAY,
            diagnosis=(
                "An overlay or modal dialog is blocking interaction. "
                f"Detected selector: {selector}. "
                "The element the test is trying to interact with is likely obscured."
            ),
            confidence=0.88,
            suggested_outcome=Outcome.RETRY,
            plan=self._build_plan(selector),
            evidence=evidence,
        )

    @staticmethod
    def _find_active_overlay(live: LiveState) -> Optional[str]:
        for selector in OVERLAY_SELECTORS:
            try:
                elements = live.find_elements(selector)
                if elements and elements[0].is_displayed():
                    return selector
            except Exception as e:
                logger.debug("Overlay probe %r failed: %s", selector, e)
        return None

    @staticmethod
    def _dom_keyword(event: ConditionEvent) -> Optional[str]:
        if not event.dom_snapshot:
            return None
        dom = event.dom_snapshot.lower()
        return next((k for k in OVERLAY_DOM_KEYWORDS if k in dom), None)

    @staticmethod
    def _build_plan(selector: str) -> RemediationPlan:
        return RemediationPlan(
            steps=[
                Step(
                    action_type="DISMISS_OVERLAY",
                    parameters={"selector": selector, "method": "click"},
                    description="Dismiss the overlay blocking test interaction",
                    confidence=0.85,
                    risk=RiskLevel.LOW,
                    rationale="The overlay must be dismissed before the target element can be interacted with.",
                    step_id="dismiss-click",
                    on_failure="esc-fallback",
                ),
                Step(
                    action_type="DISMISS_OVERLAY",
                    parameters={"method": "escape"},
                    description="Fallback: dismiss overlay using Escape key",
                    confidence=0.70,
                    risk=RiskLevel.LOW,
                    rationale="If the close button click failed, Escape is a universal dismiss signal.",
                    step_id="esc-fallback",
                ),
            ],
            summary="Dismiss blocking overlay then retry original action",
            confidence=0.85,
        )


class ElementHiddenChecker(Checker):
    """Element is in the DOM but none of its matches are displayed."""

    checker_id = "element-hidden"
    priority = 30

    def check(self, live: LiveState, event: ConditionEvent) -> MatchResult:
        locator = (event.locator_value or "").strip()
        if not locator or event.condition_type is not ConditionType.LOCATOR_NOT_FOUND:
            return MatchResult.no_match()

        elements = live.find_elements(locator)
        if not elements:
            return MatchResult.no_match()
        if any(_displayed(el) for el in elements):
            return MatchResult.no_match()

        plan = RemediationPlan(
            steps=[
                Step(
                    action_type="SCROLL_TO_ELEMENT",
                    parameters={"selector": locator},
                    description="Scroll the hidden element into the viewport",
                    confidence=0.75,
                    risk=RiskLevel.LOW,
                    rationale="Scrolling into view may trigger visibility and make the element interactable.",
                ),
                Step(
                    action_type="WAIT_FOR_ELEMENT",
                    parameters={"selector": locator, "condition": "visible", "timeoutMs": 5000},
                    description="Wait for element to become visible after scroll",
                    confidence=0.78,
                    risk=RiskLevel.LOW,
                    rationale="Confirm visibility before attempting interaction.",
                ),
            ],
            summary="Scroll element into view and wait for visibility",
            confidence=0.78,
        )
        return MatchResult(
            matched=True,
            category=Category.LOADING,
            diagnosis=(
                f"Element '{locator}' exists in the DOM but is not visible. "
                "It may be hidden behind another element, have display:none, or be off-screen."
            ),
            confidence=0.87,
            suggested_outcome=Outcome.RETRY,
            plan=plan,
            evidence=[f"{len(elements)} hidden match(es) for {locator}"],
        )


def _displayed(element) -> bool:
    try:
        return element.is_displayed()
    except Exception:
        return False
