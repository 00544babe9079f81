"""Text-only checkers over the exception message and stack trace."""

from __future__ import annotations

from sentinel_agent.checkers.base import Checker, MatchResult
from sentinel_agent.core.models import (
    Category,
    ConditionEvent,
    Outcome,
    RemediationPlan,
    RiskLevel,
    Step,
)
from sentinel_agent.drivers.base import LiveState


class StaleElementChecker(Checker):
    """Element reference detached by a re-render."""

    checker_id = "stale-element"
    priority = 10

    def check(self, live: LiveState, event: ConditionEvent) -> MatchResult:
        message = event.message
        trace = event.stack_trace or ""
        stale = (
            "stale element" in message
            or "StaleElementReference" in message
            or "StaleElementReferenceException" in trace
        )
        if not stale:
            return MatchResult.no_match()

        plan = RemediationPlan(
            steps=[
                Step(
                    action_type="WAIT_FIXED",
                    parameters={"waitMs": 500},
                    description="Wait 500ms for DOM re-render to stabilise",
                    confidence=0.85,
                    risk=RiskLevel.LOW,
                    rationale="A short pause lets the component finish re-rendering before re-locating.",
                ),
                Step(
                    action_type="RETRY_ACTION",
                    parameters={"delayMs": 500, "maxRetries": 3},
                    description="Re-locate the element and retry the original action",
                    confidence=0.88,
                    risk=RiskLevel.LOW,
                    rationale="After the DOM stabilises, re-locating the element produces a fresh reference.",
                ),
            ],
            summary="Wait for DOM stabilisation then retry action",
            confidence=0.88,
        )
        return MatchResult(
            matched=True,
            category=Category.STALE_DOM,
            diagnosis=(
                "A stale element reference was detected: the DOM was re-rendered after the "
                "element was located, so the reference is no longer valid. This is typically "
                "caused by a component re-mounting."
            ),
            confidence=0.95,
            suggested_outcome=Outcome.RETRY,
            plan=plan,
            evidence=["stale element reference in exception"],
        )


ASSERTION_CLASS_SIGNALS = (
    "AssertionError", "AssertionFailedError", "ComparisonFailure",
    "org.assertj", "org.junit.Assert", "org.testng.Assert",
)
ASSERTION_MESSAGE_SIGNALS = (
    "expected:", "but was:", "expected [", "to be equal to", "to contain",
    "expecting", "expected condition", "assertion failed",
)


class AssertionFailureChecker(Checker):
    """Genuine assertion failure; no automated remedy is offered."""

    checker_id = "assertion-failure"
    priority = 25

    def check(self, live: LiveState, event: ConditionEvent) -> MatchResult:
        message = event.message
        trace = event.stack_trace or ""
        signal = next(
            (s for s in ASSERTION_CLASS_SIGNALS if s in message or s in trace), None
        )
        if signal is None:
            lowered = message.lower()
            signal = next((s for s in ASSERTION_MESSAGE_SIGNALS if s in lowered), None)
        if signal is None:
            return MatchResult.no_match()

        return MatchResult(
            matched=True,
            category=Category.APPLICATION_BUG,
            diagnosis=(
                "A test assertion failed: the application returned a value that did not "
                "match the expected state. This is typically a genuine test failure "
                "(application bug or incorrect test data) rather than a test "
                "infrastructure problem."
            ),
            confidence=0.88,
            suggested_outcome=Outcome.FAIL_WITH_CONTEXT,
            evidence=[f"assertion signal: {signal}"],
        )
