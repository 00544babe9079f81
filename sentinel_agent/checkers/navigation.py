"""URL and page-level checkers: wrong page, auth redirect, page timeout."""

from __future__ import annotations

import logging

from sentinel_agent.checkers.base import UNKNOWN_URLS, Checker, MatchResult
from sentinel_agent.core.models import (
    Category,
    ConditionEvent,
    Outcome,
    RemediationPlan,
    RiskLevel,
    Step,
)
from sentinel_agent.drivers.base import LiveState

logger = logging.getLogger(__name__)


class WrongPageChecker(Checker):
    """Current and expected URL are both known and neither contains the other."""

    checker_id = "wrong-page"
    priority = 5

    def check(self, live: LiveState, event: ConditionEvent) -> MatchResult:
        current = event.current_url
        expected = event.expected_url
        if not expected or current in UNKNOWN_URLS:
            return MatchResult.no_match()
        if expected in current or current in expected:
            return MatchResult.no_match()

        plan = RemediationPlan(
            steps=[
                Step(
                    action_type="NAVIGATE_TO",
                    parameters={"url": expected},
                    description=f"Navigate directly to the expected URL: {expected}",
                    confidence=0.90,
                    risk=RiskLevel.MEDIUM,
                    rationale="Direct navigation to the expected URL corrects the wrong-page condition.",
                ),
            ],
            summary="Navigate to expected URL",
            confidence=0.90,
        )
        return MatchResult(
            matched=True,
            category=Category.NAVIGATION,
            diagnosis=(
                f"The test is on the wrong page. Expected URL pattern '{expected}' "
                f"but currently at '{current}'."
            ),
            confidence=0.95,
            suggested_outcome=Outcome.RETRY,
            plan=plan,
            evidence=[f"current_url={current}", f"expected_url={expected}"],
        )


AUTH_URL_SEGMENTS = (
    "/login", "/signin", "/sign-in", "/auth", "/sso", "/logout", "/session-expired",
)
AUTH_DOM_SIGNALS = (
    "session has expired", "please log in", "please sign in", "your session",
)


class AuthRedirectChecker(Checker):
    """Session expiry: login URL segment or session-expired page text."""

    checker_id = "auth-redirect"
    priority = 15

    def check(self, live: LiveState, event: ConditionEvent) -> MatchResult:
        url = event.current_url.lower()
        signal = next((s for s in AUTH_URL_SEGMENTS if s in url), None)
        if signal is None and event.dom_snapshot:
            dom = event.dom_snapshot.lower()
            signal = next((s for s in AUTH_DOM_SIGNALS if s in dom), None)
        if signal is None:
            return MatchResult.no_match()

        reason = (
            "Test session expired: authentication redirect detected. "
            "Re-run after refreshing test credentials."
        )
        plan = RemediationPlan(
            steps=[
                Step(
                    action_type="SKIP_TEST",
                    parameters={"reason": reason},
                    description="Skip this test, session expired and re-auth is required",
                    confidence=0.90,
                    risk=RiskLevel.MEDIUM,
                    rationale="Re-authenticating mid-test risks corrupting test state. Skip and re-run.",
                ),
            ],
            summary="Skip test, session expired and requires re-authentication",
            confidence=0.90,
        )
        return MatchResult(
            matched=True,
            category=Category.AUTH,
            diagnosis=(
                "The test session has expired or been redirected to a login page "
                f"(URL: {event.current_url}). Authentication needs to be re-established."
            ),
            confidence=0.92,
            suggested_outcome=Outcome.SKIP,
            plan=plan,
            evidence=[f"auth signal: {signal}"],
        )


TIMEOUT_SIGNALS = (
    "timeout", "timed out", "timedout", "err_timed_out",
    "net::err_connection_timed_out", "timeoutexception",
)
TIMEOUT_TITLE_SIGNALS = ("timed out", "err_timed_out")


class PageTimeoutChecker(Checker):
    """Page load or request timeout, from the event text or the browser error page title."""

    checker_id = "page-timeout"
    priority = 10

    def check(self, live: LiveState, event: ConditionEvent) -> MatchResult:
        signal = self._find_signal(live, event)
        if signal is None:
            return MatchResult.no_match()

        plan = RemediationPlan(
            steps=[
                Step(
                    action_type="REFRESH_PAGE",
                    description="Refresh the page to retry the timed-out request",
                    confidence=0.85,
                    risk=RiskLevel.MEDIUM,
                    rationale=(
                        "A fresh page load will re-issue the request. "
                        "Most transient timeouts resolve on retry."
                    ),
                    requires_verification=True,
                ),
                Step(
                    action_type="WAIT_FOR_ELEMENT",
                    parameters={"selector": "body", "condition": "present", "timeoutMs": 15000},
                    description="Wait up to 15 seconds for the page body to be present after refresh",
                    confidence=0.80,
                    risk=RiskLevel.LOW,
                    rationale="Verify that the refreshed page loaded successfully before proceeding.",
                ),
            ],
            summary="Refresh page and verify load after timeout",
            confidence=0.85,
        )
        return MatchResult(
            matched=True,
            category=Category.INFRA,
            diagnosis=(
                "Page load timed out. The server did not respond within the expected window. "
                "A page refresh is recommended; if the issue persists it may indicate a backend "
                "or network infrastructure problem."
            ),
            confidence=0.90,
            suggested_outcome=Outcome.RETRY,
            plan=plan,
            evidence=[f"timeout signal: {signal}"],
        )

    @staticmethod
    def _find_signal(live: LiveState, event: ConditionEvent):
        message = event.message.lower()
        trace = (event.stack_trace or "").lower()
        for signal in TIMEOUT_SIGNALS:
            if signal in message or signal in trace:
                return signal
        try:
            title = (live.title() or "").lower()
        except Exception as e:
            logger.debug("Could not read page title: %s", e)
            return None
        return next((s for s in TIMEOUT_TITLE_SIGNALS if s in title), None)
