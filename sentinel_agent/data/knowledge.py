"""Knowledge store — curated patterns matched before any remote analysis.

Readers work on an immutable tuple snapshot; writers go through one
re-entrant lock that covers both the in-memory set and the
read-merge-write of the backing file.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Optional

from sentinel_agent.core.models import ConditionEvent, utcnow
from sentinel_agent.data.models import KnownPattern
from sentinel_agent.data.store import read_json_array, write_json_atomic

logger = logging.getLogger(__name__)


class KnowledgeStore:
    """Pattern store backed by a JSON array file (or memory only when path is None)."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._lock = threading.RLock()
        self._patterns: tuple[KnownPattern, ...] = ()
        self.reload()

    # ── Loading ──────────────────────────────────────────

    def _read_records(self) -> list[dict]:
        if self.path is None:
            return []
        return read_json_array(self.path)

    def _load(self) -> tuple[KnownPattern, ...]:
        try:
            records = self._read_records()
        except (OSError, ValueError) as e:
            logger.warning("Could not load knowledge base %s: %s", self.path, e)
            return ()
        patterns = []
        for record in records:
            try:
                pattern = KnownPattern.from_dict(record)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed pattern record: %s", e)
                continue
            if pattern.enabled:
                patterns.append(pattern)
        return tuple(patterns)

    def reload(self) -> None:
        """Replace the active set with the enabled patterns on disk."""
        if self.path is None:
            return
        with self._lock:
            self._patterns = self._load()
        logger.info("Knowledge base loaded: %d active patterns", len(self._patterns))

    # ── Queries ──────────────────────────────────────────

    def find_best_match(self, event: ConditionEvent) -> Optional[KnownPattern]:
        best: Optional[KnownPattern] = None
        best_key = (0, -1)
        for pattern in self._patterns:
            score = pattern.score(event)
            if score <= 0 or score < pattern.min_match_signals:
                continue
            key = (score, pattern.hit_count)
            if key > best_key:
                best, best_key = pattern, key
        if best is not None:
            logger.debug("Pattern %s matched with %d signals", best.id, best_key[0])
        return best

    def find_all(self) -> list[KnownPattern]:
        return sorted(self._patterns, key=lambda p: p.hit_count, reverse=True)

    def get(self, pattern_id: str) -> Optional[KnownPattern]:
        for pattern in self._patterns:
            if pattern.id == pattern_id:
                return pattern
        return None

    def size(self) -> int:
        return len(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, pattern_id: object) -> bool:
        return any(p.id == pattern_id for p in self._patterns)

    # ── Mutations ────────────────────────────────────────

    def record_hit(self, pattern_id: str) -> None:
        with self._lock:
            updated = []
            found = False
            for pattern in self._patterns:
                if pattern.id == pattern_id:
                    pattern = dataclasses.replace(
                        pattern, hit_count=pattern.hit_count + 1, last_hit=utcnow()
                    )
                    found = True
                updated.append(pattern)
            if not found:
                logger.debug("record_hit: no active pattern %s", pattern_id)
                return
            self._patterns = tuple(updated)
            self._persist()

    def add(self, pattern: KnownPattern) -> None:
        """Add a pattern, replacing any active pattern with the same id."""
        if pattern.added_at is None:
            pattern = dataclasses.replace(pattern, added_at=utcnow())
        with self._lock:
            kept = [p for p in self._patterns if p.id != pattern.id]
            if pattern.enabled:
                kept.append(pattern)
            self._patterns = tuple(kept)
            self._persist(extra=() if pattern.enabled else (pattern,))
        logger.info("Pattern %s added to knowledge base", pattern.id)

    def disable(self, pattern_id: str) -> bool:
        """Take a pattern out of matching; its record stays on disk as disabled."""
        with self._lock:
            target = self.get(pattern_id)
            if target is None:
                return False
            self._patterns = tuple(p for p in self._patterns if p.id != pattern_id)
            self._persist(extra=(dataclasses.replace(target, enabled=False),))
        logger.info("Pattern %s disabled", pattern_id)
        return True

    def _persist(self, extra: tuple[KnownPattern, ...] = ()) -> None:
        if self.path is None:
            return
        with self._lock:
            keep_ids = {p.id for p in self._patterns} | {p.id for p in extra}
            try:
                on_disk = read_json_array(self.path)
            except (OSError, ValueError) as e:
                logger.error(
                    "Knowledge base %s unreadable, change kept in memory only: %s", self.path, e
                )
                return
            preserved = [
                record for record in on_disk
                if record.get("enabled") is False and record.get("id") not in keep_ids
            ]
            payload = [p.to_dict() for p in self._patterns]
            payload.extend(p.to_dict() for p in extra)
            payload.extend(preserved)
            try:
                write_json_atomic(self.path, payload)
            except OSError as e:
                logger.error("Failed to save knowledge base %s: %s", self.path, e)
