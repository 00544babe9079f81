"""Tests for checkers that query the live DOM."""

from __future__ import annotations

from sentinel_agent.checkers.dom import (
    FALLBACK_OVERLAY_SELECTOR,
    ElementHiddenChecker,
    OverlayChecker,
)
from sentinel_agent.core.models import Category, ConditionType, Outcome
from tests.conftest import make_element, make_event, make_live


# ---------------------------------------------------------------------------
# OverlayChecker
# ---------------------------------------------------------------------------

class TestOverlayChecker:
    def test_visible_overlay(self):
        live = make_live()
        live.find_elements.side_effect = (
            lambda sel: [make_element(True)] if "cookie-banner" in sel else []
        )
        result = OverlayChecker().check(live, make_event())
        assert result.matched is True
        assert result.category is Category.OVERLAY
        assert result.suggested_outcome is Outcome.RETRY
        first, fallback = result.plan.steps
        assert first.parameters == {"selector": "[class*='cookie-banner']", "method": "click"}
        assert first.on_failure == fallback.step_id == "esc-fallback"
        assert fallback.parameters == {"method": "escape"}

    def test_hidden_overlay_is_ignored(self):
        live = make_live(find_elements=[make_element(False)])
        assert OverlayChecker().check(live, make_event()).matched is False

    def test_dom_keyword_fallback(self):
        event = make_event(dom_snapshot="<body class='modal-open'>")
        result = OverlayChecker().check(make_live(), event)
        assert result.matched is True
        assert result.plan.steps[0].parameters["selector"] == FALLBACK_OVERLAY_SELECTOR
        assert "DOM keyword: modal-open" in result.evidence

    def test_probe_errors_are_tolerated(self):
        live = make_live()
        live.find_elements.side_effect = RuntimeError("detached")
        assert OverlayChecker().check(live, make_event()).matched is False

    def test_clean_page(self):
        assert OverlayChecker().check(make_live(), make_event(dom_snapshot="<body>")).matched is False


# ---------------------------------------------------------------------------
# ElementHiddenChecker
# ---------------------------------------------------------------------------

class TestElementHiddenChecker:
    def _event(self, **kwargs):
        kwargs.setdefault("locator_value", "#submit")
        return make_event(ConditionType.LOCATOR_NOT_FOUND, "missing", **kwargs)

    def test_present_but_hidden(self):
        live = make_live(find_elements=[make_element(False), make_element(False)])
        result = ElementHiddenChecker().check(live, self._event())
        assert result.matched is True
        assert result.category is Category.LOADING
        assert [s.action_type for s in result.plan.steps] == [
            "SCROLL_TO_ELEMENT", "WAIT_FOR_ELEMENT",
        ]
        assert result.evidence == ["2 hidden match(es) for #submit"]
        live.find_elements.assert_called_with("#submit")

    def test_one_visible_match_is_no_match(self):
        live = make_live(find_elements=[make_element(False), make_element(True)])
        assert ElementHiddenChecker().check(live, self._event()).matched is False

    def test_absent_element(self):
        assert ElementHiddenChecker().check(make_live(), self._event()).matched is False

    def test_only_for_locator_conditions(self):
        live = make_live(find_elements=[make_element(False)])
        event = make_event(ConditionType.TIMEOUT, "slow", locator_value="#submit")
        assert ElementHiddenChecker().check(live, event).matched is False
        live.find_elements.assert_not_called()

    def test_visibility_error_counts_as_hidden(self):
        broken = make_element()
        broken.is_displayed.side_effect = RuntimeError("stale")
        live = make_live(find_elements=[broken])
        assert ElementHiddenChecker().check(live, self._event()).matched is True
