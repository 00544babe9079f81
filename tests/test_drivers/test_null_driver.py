"""Tests for NullLiveState — the browserless snapshot."""

from __future__ import annotations

import pytest

from sentinel_agent.drivers.null_driver import NullLiveState
from tests.conftest import make_event


class TestNullLiveState:
    def test_reads_come_from_event(self):
        live = NullLiveState.from_event(make_event(dom_snapshot="<body/>"))
        assert live.current_url() == "https://app.example.com/checkout"
        assert live.page_source() == "<body/>"
        assert live.title() == ""
        assert live.find_elements("#anything") == []
        assert live.screenshot_base64() is None
        assert live.console_logs() == []

    @pytest.mark.parametrize("action, args", [
        ("get", ("/x",)),
        ("back", ()),
        ("refresh", ()),
        ("execute_script", ("1",)),
        ("press_escape", ()),
        ("accept_alert", (100,)),
        ("delete_all_cookies", ()),
    ])
    def test_actions_are_refused(self, action, args):
        with pytest.raises(RuntimeError, match="no live browser attached"):
            getattr(NullLiveState(), action)(*args)

    def test_waits_time_out(self):
        live = NullLiveState(url="https://app.example.com/done")
        with pytest.raises(TimeoutError):
            live.wait_for_element("#x", "visible", 100)
        live.wait_for_url("/done", 100)
        with pytest.raises(TimeoutError):
            live.wait_for_url("/elsewhere", 100)
