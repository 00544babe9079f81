"""Shared test fixtures for test-sentinel tests."""

from __future__ import annotations

import json
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from sentinel_agent.core.config import SentinelConfig
from sentinel_agent.core.models import (
    Category,
    ConditionEvent,
    ConditionType,
    Insight,
    Outcome,
    RemediationPlan,
    RiskLevel,
    Step,
)
from sentinel_agent.data.models import KnownPattern
from sentinel_agent.drivers.base import Element, LiveState


def make_event(
    condition_type: ConditionType = ConditionType.LOCATOR_NOT_FOUND,
    message: str = "Unable to locate element: #submit",
    **kwargs: Any,
) -> ConditionEvent:
    """ConditionEvent with sensible defaults for tests."""
    kwargs.setdefault("current_url", "https://app.example.com/checkout")
    return ConditionEvent(condition_type=condition_type, message=message, **kwargs)


def make_step(action_type: str, risk: Optional[RiskLevel] = RiskLevel.LOW, **kwargs: Any) -> Step:
    kwargs.setdefault("description", f"do {action_type.lower()}")
    return Step(action_type=action_type, risk=risk, **kwargs)


def make_element(displayed: bool = True) -> MagicMock:
    element = MagicMock(spec=Element)
    element.is_displayed.return_value = displayed
    return element


def make_live(url: str = "https://app.example.com/checkout", **overrides: Any) -> MagicMock:
    """LiveState mock with an empty, quiet page.

    ``find_elements`` returns nothing by default so DOM checkers stay silent.
    """
    live = MagicMock(spec=LiveState)
    live.current_url.return_value = url
    live.title.return_value = ""
    live.page_source.return_value = "<html><body></body></html>"
    live.find_elements.return_value = []
    live.screenshot_base64.return_value = None
    live.console_logs.return_value = []
    live.execute_script.return_value = None
    for name, value in overrides.items():
        getattr(live, name).return_value = value
    return live


def write_patterns(path, patterns: list[KnownPattern]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump([p.to_dict() for p in patterns], f)


@pytest.fixture
def live() -> MagicMock:
    return make_live()


@pytest.fixture
def event() -> ConditionEvent:
    return make_event()


@pytest.fixture
def kb_path(tmp_path) -> str:
    return str(tmp_path / "knowledge-base.json")


@pytest.fixture
def unknown_path(tmp_path) -> str:
    return str(tmp_path / "unknown-conditions.json")


@pytest.fixture
def config(kb_path, unknown_path) -> SentinelConfig:
    """Config whose files live under tmp_path."""
    return SentinelConfig(
        knowledge_base_path=kb_path,
        unknown_log_path=unknown_path,
    )


@pytest.fixture
def spinner_pattern() -> KnownPattern:
    """Checkout spinner pattern: URL + locator + condition type."""
    return KnownPattern(
        id="checkout-spinner",
        description="Checkout spinner hides submit button",
        url_pattern="/checkout",
        locator_value_pattern="#submit",
        condition_type="LOCATOR_NOT_FOUND",
        min_match_signals=2,
        category=Category.LOADING,
        root_cause="Submit button is hidden while the payment spinner is visible",
        evidence=["spinner visible"],
        is_transient=True,
        suggested_outcome=Outcome.RETRY,
        plan=RemediationPlan(
            steps=[
                Step(
                    action_type="WAIT_FOR_ELEMENT",
                    parameters={"selector": "#submit", "condition": "visible"},
                    description="Wait for submit",
                    confidence=0.9,
                    risk=RiskLevel.LOW,
                ),
            ],
            summary="Wait for spinner to clear",
            confidence=0.9,
        ),
    )


@pytest.fixture
def remote_insight() -> Insight:
    return Insight(
        category=Category.OVERLAY,
        root_cause="Cookie banner covers the submit button",
        confidence=0.8,
        suggested_outcome=Outcome.RETRY,
        is_transient=True,
        plan=RemediationPlan(
            steps=[make_step("CLICK_IF_PRESENT", parameters={"selector": "#accept"})],
            summary="Accept cookies",
            confidence=0.8,
        ),
    )
