"""Tests for sentinel_agent.data.unknown — UnknownConditionRecorder."""

from __future__ import annotations

import json

from sentinel_agent.core.models import ConditionType
from sentinel_agent.data.models import RecordStatus
from sentinel_agent.data.unknown import MAX_DOM_SNIPPET, MAX_STACK_LINES, UnknownConditionRecorder
from tests.conftest import make_event


TRACE = "\n".join(
    ["org.openqa.selenium.NoSuchElementException: no such element"]
    + [f"    at Frame{i}.run(Frame{i}.java:{i})" for i in range(10)]
)


class TestRecord:
    def test_new_record(self, unknown_path):
        recorder = UnknownConditionRecorder(unknown_path)
        event = make_event(
            locator_strategy="css selector",
            locator_value="#submit",
            stack_trace=TRACE,
            dom_snapshot="x" * 2000,
            meta={"testName": "checkout_works", "suiteName": "smoke"},
        )
        record = recorder.record(event)
        assert record.status is RecordStatus.NEW
        assert record.hit_count == 1
        assert record.exception_type == "NoSuchElementException"
        assert record.test_name == "checkout_works"
        assert record.suite_name == "smoke"
        assert len(record.dom_snippet) == MAX_DOM_SNIPPET
        assert len(record.stack_trace_summary.splitlines()) == MAX_STACK_LINES
        assert len(record.content_hash) == 16

    def test_persists_camel_case(self, unknown_path):
        UnknownConditionRecorder(unknown_path).record(make_event())
        with open(unknown_path, encoding="utf-8") as f:
            data = json.load(f)
        assert data[0]["conditionType"] == "LOCATOR_NOT_FOUND"
        assert data[0]["hitCount"] == 1
        assert data[0]["status"] == "NEW"

    def test_duplicate_bumps_hit_count(self, unknown_path):
        recorder = UnknownConditionRecorder(unknown_path)
        first = recorder.record(make_event(message="first"))
        second = recorder.record(make_event(message="second wording"))
        assert second.id == first.id
        assert second.hit_count == 2
        assert len(recorder.find_all()) == 1

    def test_query_string_does_not_split_records(self, unknown_path):
        recorder = UnknownConditionRecorder(unknown_path)
        recorder.record(make_event(current_url="https://app.example.com/checkout?a=1"))
        recorder.record(make_event(current_url="https://app.example.com/checkout?a=2"))
        assert len(recorder.find_all()) == 1

    def test_different_condition_is_new_record(self, unknown_path):
        recorder = UnknownConditionRecorder(unknown_path)
        recorder.record(make_event())
        recorder.record(make_event(ConditionType.TIMEOUT, "slow"))
        assert len(recorder.find_all()) == 2

    def test_pattern_created_record_is_not_bumped(self, unknown_path):
        recorder = UnknownConditionRecorder(unknown_path)
        record = recorder.record(make_event())
        recorder.mark_pattern_created(record.id, "checkout-spinner")
        again = recorder.record(make_event())
        assert again.hit_count == 1
        assert again.status is RecordStatus.PATTERN_CREATED

    def test_unreadable_log_is_left_untouched(self, unknown_path):
        hand_edited = '[{"id": "a1b2c3d4-0000", "contentHash": "abc"},]'
        with open(unknown_path, "w", encoding="utf-8") as f:
            f.write(hand_edited)
        recorder = UnknownConditionRecorder(unknown_path)

        record = recorder.record(make_event())

        assert record.condition_type == "LOCATOR_NOT_FOUND"
        with open(unknown_path, encoding="utf-8") as f:
            assert f.read() == hand_edited

    def test_unreadable_log_is_not_updated(self, unknown_path):
        hand_edited = '[{"id": "a1b2c3d4-0000", "contentHash": "abc"},]'
        with open(unknown_path, "w", encoding="utf-8") as f:
            f.write(hand_edited)
        recorder = UnknownConditionRecorder(unknown_path)

        assert recorder.mark_ignored("a1b2c3d4-0000", "qa-lead") is None
        with open(unknown_path, encoding="utf-8") as f:
            assert f.read() == hand_edited


class TestReview:
    def test_find_all_sorted_by_hits(self, unknown_path):
        recorder = UnknownConditionRecorder(unknown_path)
        recorder.record(make_event(ConditionType.TIMEOUT, "slow"))
        recorder.record(make_event())
        recorder.record(make_event())
        assert [r.hit_count for r in recorder.find_all()] == [2, 1]

    def test_get_by_prefix(self, unknown_path):
        recorder = UnknownConditionRecorder(unknown_path)
        record = recorder.record(make_event())
        assert recorder.get(record.id[:8]).id == record.id
        assert recorder.get("zzzzzzzz") is None

    def test_short_or_empty_prefix_matches_nothing(self, unknown_path):
        recorder = UnknownConditionRecorder(unknown_path)
        record = recorder.record(make_event())
        assert recorder.get("") is None
        assert recorder.get(record.id[:3]) is None
        assert recorder.mark_reviewed("", "qa-lead") is None
        assert recorder.find_by_status(RecordStatus.NEW)[0].id == record.id

    def test_ambiguous_prefix_matches_nothing(self, unknown_path):
        with open(unknown_path, "w", encoding="utf-8") as f:
            json.dump([
                {"id": "abcdefgh-1111", "contentHash": "one"},
                {"id": "abcdefgh-2222", "contentHash": "two"},
            ], f)
        recorder = UnknownConditionRecorder(unknown_path)
        assert recorder.get("abcdefgh") is None
        assert recorder.mark_ignored("abcdefgh") is None
        assert recorder.get("abcdefgh-2222").content_hash == "two"

    def test_mark_reviewed(self, unknown_path):
        recorder = UnknownConditionRecorder(unknown_path)
        record = recorder.record(make_event())
        updated = recorder.mark_reviewed(record.id, "qa-lead", "spinner, add pattern")
        assert updated.status is RecordStatus.REVIEWED
        assert updated.reviewed_by == "qa-lead"
        assert updated.reviewed_at is not None
        assert recorder.find_by_status(RecordStatus.REVIEWED)[0].notes == "spinner, add pattern"

    def test_mark_ignored(self, unknown_path):
        recorder = UnknownConditionRecorder(unknown_path)
        record = recorder.record(make_event())
        recorder.mark_ignored(record.id[:8], "qa-lead")
        assert recorder.find_by_status(RecordStatus.NEW) == []
        assert len(recorder.find_by_status(RecordStatus.IGNORED)) == 1

    def test_mark_pattern_created_links_pattern(self, unknown_path):
        recorder = UnknownConditionRecorder(unknown_path)
        record = recorder.record(make_event())
        updated = recorder.mark_pattern_created(record.id, "checkout-spinner", "qa-lead")
        assert updated.pattern_created_id == "checkout-spinner"

    def test_update_missing_record(self, unknown_path):
        assert UnknownConditionRecorder(unknown_path).mark_reviewed("nope") is None
