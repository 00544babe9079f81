"""Unknown-condition recorder — collects conditions nothing recognised."""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Optional

from sentinel_agent.core.models import ConditionEvent, utcnow
from sentinel_agent.data.fingerprint import content_hash, extract_exception_type
from sentinel_agent.data.models import RecordStatus, UnknownRecord
from sentinel_agent.data.store import read_json_array, write_json_atomic

logger = logging.getLogger(__name__)

MAX_DOM_SNIPPET = 500
MAX_STACK_LINES = 5
MAX_MESSAGE = 500
# Matches the id column width shown by `unknown list`.
MIN_ID_PREFIX = 8


def _truncate(text: Optional[str], limit: int) -> Optional[str]:
    if text is None:
        return None
    return text if len(text) <= limit else text[:limit]


def _find(records: list[UnknownRecord], record_id: str) -> Optional[UnknownRecord]:
    """Exact id, or a unique prefix of at least MIN_ID_PREFIX characters."""
    record_id = (record_id or "").strip()
    if not record_id:
        return None
    for record in records:
        if record.id == record_id:
            return record
    if len(record_id) < MIN_ID_PREFIX:
        return None
    matches = [r for r in records if r.id.startswith(record_id)]
    if len(matches) > 1:
        logger.warning("Record id prefix %s is ambiguous (%d matches)", record_id, len(matches))
        return None
    return matches[0] if matches else None


def _stack_summary(stack_trace: Optional[str]) -> Optional[str]:
    if not stack_trace:
        return None
    lines = [line for line in stack_trace.splitlines() if line.strip()]
    return "\n".join(lines[:MAX_STACK_LINES])


class UnknownConditionRecorder:
    """Deduplicating JSON log of unrecognised conditions.

    The engine only creates records and bumps hit counts; review status is
    changed by a human through the CLI.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.RLock()

    def _load(self) -> list[UnknownRecord]:
        try:
            return self._load_for_update()
        except (OSError, ValueError) as e:
            logger.warning("Could not read unknown-condition log %s: %s", self.path, e)
            return []

    def _load_for_update(self) -> list[UnknownRecord]:
        """Like ``_load`` but lets read errors propagate so callers can skip the save.

        Raises:
            OSError: If the log exists but cannot be read.
            ValueError: If the log is not a JSON array.
        """
        raw = read_json_array(self.path)
        records = []
        for item in raw:
            try:
                records.append(UnknownRecord.from_dict(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed unknown record: %s", e)
        return records

    def _save(self, records: list[UnknownRecord]) -> None:
        try:
            write_json_atomic(self.path, [r.to_dict() for r in records])
        except OSError as e:
            logger.error("Failed to save unknown-condition log %s: %s", self.path, e)

    def record(self, event: ConditionEvent) -> UnknownRecord:
        """Create a record for the event, or bump the hit count of its duplicate."""
        fingerprint = content_hash(event)
        now = utcnow()
        with self._lock:
            try:
                records = self._load_for_update()
            except (OSError, ValueError) as e:
                logger.error(
                    "Unknown-condition log %s unreadable, not recording: %s", self.path, e
                )
                records = None
            for existing in records or ():
                if existing.content_hash != fingerprint:
                    continue
                if existing.status is RecordStatus.PATTERN_CREATED:
                    return existing
                existing.hit_count += 1
                existing.last_seen_at = now
                self._save(records)
                logger.info(
                    "Unknown condition %s seen again (%d hits)",
                    existing.id, existing.hit_count,
                )
                return existing

            record = UnknownRecord(
                id=str(uuid.uuid4()),
                content_hash=fingerprint,
                recorded_at=now,
                last_seen_at=now,
                condition_type=event.condition_type.value,
                message=_truncate(event.message, MAX_MESSAGE) or "",
                current_url=event.current_url,
                locator_strategy=event.locator_strategy,
                locator_value=event.locator_value,
                exception_type=extract_exception_type(event.stack_trace),
                stack_trace_summary=_stack_summary(event.stack_trace),
                dom_snippet=_truncate(event.dom_snapshot, MAX_DOM_SNIPPET),
                test_name=event.meta.get("testName"),
                suite_name=event.meta.get("suiteName"),
            )
            if records is None:
                return record
            records.append(record)
            self._save(records)
        logger.info("Recorded unknown condition %s (%s)", record.id, fingerprint)
        return record

    def find_all(self) -> list[UnknownRecord]:
        return sorted(self._load(), key=lambda r: r.hit_count, reverse=True)

    def find_by_status(self, status: RecordStatus) -> list[UnknownRecord]:
        return [r for r in self.find_all() if r.status is status]

    def get(self, record_id: str) -> Optional[UnknownRecord]:
        return _find(self._load(), record_id)

    def _update(self, record_id: str, **changes) -> Optional[UnknownRecord]:
        with self._lock:
            try:
                records = self._load_for_update()
            except (OSError, ValueError) as e:
                logger.error("Unknown-condition log %s unreadable, not updating: %s", self.path, e)
                return None
            record = _find(records, record_id)
            if record is not None:
                for key, value in changes.items():
                    setattr(record, key, value)
                self._save(records)
                return record
        logger.warning("No unknown-condition record %s", record_id)
        return None

    def mark_reviewed(
        self, record_id: str, reviewed_by: Optional[str] = None, notes: Optional[str] = None
    ) -> Optional[UnknownRecord]:
        return self._update(
            record_id,
            status=RecordStatus.REVIEWED,
            reviewed_by=reviewed_by,
            reviewed_at=utcnow(),
            notes=notes,
        )

    def mark_pattern_created(
        self, record_id: str, pattern_id: str, reviewed_by: Optional[str] = None
    ) -> Optional[UnknownRecord]:
        return self._update(
            record_id,
            status=RecordStatus.PATTERN_CREATED,
            pattern_created_id=pattern_id,
            reviewed_by=reviewed_by,
            reviewed_at=utcnow(),
        )

    def mark_ignored(
        self, record_id: str, reviewed_by: Optional[str] = None, notes: Optional[str] = None
    ) -> Optional[UnknownRecord]:
        return self._update(
            record_id,
            status=RecordStatus.IGNORED,
            reviewed_by=reviewed_by,
            reviewed_at=utcnow(),
            notes=notes,
        )
