"""Tests for sentinel_agent.core.context — building events from live state."""

from __future__ import annotations

from sentinel_agent.core.context import (
    ContextCollector,
    format_stack,
    parse_locator,
    truncate_dom,
)
from sentinel_agent.core.models import ConditionType
from tests.conftest import make_live


class NoSuchElementException(Exception):
    pass


def _raise_and_catch(exc):
    try:
        raise exc
    except Exception as caught:
        return caught


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestParseLocator:
    def test_selenium_message(self):
        message = (
            'no such element: Unable to locate element: '
            '{"method":"css selector","selector":"#checkout > button"}'
        )
        assert parse_locator(message) == ("css selector", "#checkout > button")

    def test_playwright_message(self):
        message = "Timeout 30000ms exceeded.\n  - waiting for locator('button.pay')"
        assert parse_locator(message) == ("locator", "button.pay")

    def test_unrecognised(self):
        assert parse_locator("something else") == (None, None)
        assert parse_locator(None) == (None, None)


class TestTruncateDom:
    def test_strips_scripts_and_styles(self):
        dom = "<head><script>var x = 1;</script><style>.a{}</style></head>"
        assert truncate_dom(dom, 1000) == (
            "<head><script>[removed]</script><style>[removed]</style></head>"
        )

    def test_keeps_head_and_tail(self):
        dom = "H" * 600 + "M" * 800 + "T" * 600
        out = truncate_dom(dom, 1000)
        assert out.startswith("H" * 570)
        assert out.endswith("T" * 380)
        assert "[DOM TRUNCATED: 1000 chars removed]" in out

    def test_short_dom_untouched(self):
        assert truncate_dom("<p>hi</p>", 100) == "<p>hi</p>"

    def test_none(self):
        assert truncate_dom(None, 100) is None


class TestFormatStack:
    def test_builtin_name_and_frames(self):
        exc = _raise_and_catch(ValueError("bad value"))
        text = format_stack(exc)
        assert text.splitlines()[0] == "ValueError: bad value"
        assert "  at _raise_and_catch (" in text

    def test_qualified_name(self):
        exc = _raise_and_catch(NoSuchElementException("gone"))
        assert format_stack(exc).startswith(f"{__name__}.NoSuchElementException: gone")


# ---------------------------------------------------------------------------
# ContextCollector
# ---------------------------------------------------------------------------

class TestCollect:
    def test_collects_everything(self):
        live = make_live(
            page_source="<html><script>x()</script></html>",
            screenshot_base64="AAAA",
            console_logs=[f"line {i}" for i in range(80)],
        )
        live.execute_script.side_effect = ["Mozilla/5.0", "1280x720"]
        exc = _raise_and_catch(NoSuchElementException(
            'Unable to locate element: {"method":"css selector","selector":"#submit"}'
        ))

        event = ContextCollector().collect(
            live, ConditionType.LOCATOR_NOT_FOUND, exc,
            prior_steps=["open checkout"], meta={"testName": "pays"},
        )

        assert event.current_url == "https://app.example.com/checkout"
        assert event.locator_strategy == "css selector"
        assert event.locator_value == "#submit"
        assert event.dom_snapshot == "<html><script>[removed]</script></html>"
        assert event.screenshot_base64 == "AAAA"
        assert len(event.console_logs) == 50
        assert event.console_logs[-1] == "line 79"
        assert event.prior_steps == ("open checkout",)
        assert "NoSuchElementException: Unable to locate" in event.stack_trace
        assert event.meta == {
            "framework": "test-sentinel",
            "userAgent": "Mozilla/5.0",
            "viewport": "1280x720",
            "testName": "pays",
        }

    def test_locator_only_parsed_for_locator_conditions(self):
        exc = _raise_and_catch(RuntimeError('{"method":"css selector","selector":"#x"}'))
        event = ContextCollector().collect(make_live(), ConditionType.EXCEPTION, exc)
        assert event.locator_value is None

    def test_without_exception(self):
        event = ContextCollector().collect(make_live(), ConditionType.CUSTOM)
        assert event.message == "Condition detected: CUSTOM"
        assert event.stack_trace is None

    def test_capture_switches(self):
        live = make_live(screenshot_base64="AAAA")
        event = ContextCollector(capture_dom=False, capture_screenshot=False).collect(
            live, ConditionType.CUSTOM
        )
        assert event.dom_snapshot is None
        assert event.screenshot_base64 is None
        live.page_source.assert_not_called()
        live.screenshot_base64.assert_not_called()

    def test_capture_failures_never_raise(self):
        live = make_live()
        for name in ("current_url", "page_source", "screenshot_base64",
                     "console_logs", "execute_script"):
            getattr(live, name).side_effect = RuntimeError("browser crashed")
        event = ContextCollector().collect(live, ConditionType.EXCEPTION)
        assert event.current_url == "unavailable"
        assert event.dom_snapshot is None
        assert event.console_logs == ()
        assert event.meta == {"framework": "test-sentinel"}


class TestCollectWrongPage:
    def test_wrong_page(self):
        live = make_live(url="https://app.example.com/home")
        event = ContextCollector().collect_wrong_page(live, "/checkout", ["click buy"])
        assert event.condition_type is ConditionType.WRONG_PAGE
        assert event.expected_url == "/checkout"
        assert event.message == (
            "Expected URL pattern '/checkout' but found 'https://app.example.com/home'"
        )
        assert event.prior_steps == ("click buy",)
