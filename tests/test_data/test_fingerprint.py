"""Tests for sentinel_agent.data.fingerprint — unknown-condition dedupe keys."""

from __future__ import annotations

from sentinel_agent.core.models import ConditionType
from sentinel_agent.data.fingerprint import content_hash, extract_exception_type, url_path
from tests.conftest import make_event


class TestExtractExceptionType:
    def test_java_class(self):
        trace = "org.openqa.selenium.TimeoutException: Expected condition failed\n  at x"
        assert extract_exception_type(trace) == "TimeoutException"

    def test_python_error(self):
        assert extract_exception_type("playwright._impl._errors.TimeoutError: 30000ms") == "TimeoutError"

    def test_falls_back_to_later_lines(self):
        trace = "Traceback (most recent call last):\n  File x\nValueError: bad"
        assert extract_exception_type(trace) == "ValueError"

    def test_empty(self):
        assert extract_exception_type(None) is None
        assert extract_exception_type("   ") is None
        assert extract_exception_type("nothing to see") is None


class TestUrlPath:
    def test_strips_query_and_fragment(self):
        assert url_path("https://x.com/cart/items?id=3#top") == "/cart/items"

    def test_root(self):
        assert url_path("https://x.com") == "/"

    def test_missing(self):
        assert url_path(None) == ""


class TestContentHash:
    def test_stable_and_short(self):
        event = make_event(locator_value="#submit")
        assert content_hash(event) == content_hash(make_event(locator_value="#submit"))
        assert len(content_hash(event)) == 16

    def test_message_does_not_matter(self):
        a = make_event(message="one")
        b = make_event(message="two")
        assert content_hash(a) == content_hash(b)

    def test_identity_fields_matter(self):
        base = make_event(locator_value="#a")
        assert content_hash(base) != content_hash(make_event(locator_value="#b"))
        assert content_hash(base) != content_hash(
            make_event(ConditionType.TIMEOUT, "x", locator_value="#a")
        )
        assert content_hash(base) != content_hash(
            make_event(locator_value="#a", current_url="https://app.example.com/cart")
        )

    def test_host_does_not_matter(self):
        a = make_event(current_url="https://staging.example.com/checkout")
        b = make_event(current_url="https://prod.example.com/checkout")
        assert content_hash(a) == content_hash(b)
