"""Persisted data models: knowledge-base patterns and unknown-condition records."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sentinel_agent.core.models import (
    Category,
    ConditionEvent,
    ContinueContext,
    Insight,
    InsightSource,
    Outcome,
    RemediationPlan,
    format_time,
    parse_time,
)


class MinSignalPolicy(Enum):
    """How many signals a promoted pattern must match.

    STRICT requires ``max(2, n)``; PAIRWISE requires 2 when more than one
    signal is defined and 1 otherwise. Both are capped at n.
    """

    STRICT = "strict"
    PAIRWISE = "pairwise"

    def threshold(self, signal_count: int) -> int:
        if signal_count <= 0:
            return 0
        if self is MinSignalPolicy.STRICT:
            required = max(2, signal_count)
        else:
            required = 2 if signal_count > 1 else 1
        return min(required, signal_count)


SIGNAL_FIELDS = (
    "url_pattern",
    "locator_value_pattern",
    "exception_type",
    "dom_contains",
    "condition_type",
    "message_contains",
)


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class KnownPattern:
    """Human-curated signal template with a canned insight."""

    id: str
    description: str = ""
    enabled: bool = True

    # Signals
    url_pattern: Optional[str] = None
    locator_value_pattern: Optional[str] = None
    exception_type: Optional[str] = None
    dom_contains: Optional[str] = None
    condition_type: Optional[str] = None
    message_contains: Optional[str] = None
    min_match_signals: int = 2

    # Canned insight
    category: Category = Category.UNKNOWN
    root_cause: str = ""
    evidence: list[str] = field(default_factory=list)
    is_transient: bool = False
    suggested_outcome: Outcome = Outcome.INVESTIGATE
    plan: Optional[RemediationPlan] = None
    continue_context: Optional[ContinueContext] = None

    # Usage
    hit_count: int = 0
    last_hit: Optional[datetime] = None
    added_by: Optional[str] = None
    added_at: Optional[datetime] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        for name in SIGNAL_FIELDS:
            setattr(self, name, _blank_to_none(getattr(self, name)))
        if self.condition_type:
            self.condition_type = self.condition_type.upper()
        count = self.signal_count()
        # Never require more signals than are defined.
        self.min_match_signals = max(1, min(int(self.min_match_signals), count)) if count else 0

    def signal_count(self) -> int:
        return sum(1 for name in SIGNAL_FIELDS if getattr(self, name) is not None)

    def score(self, event: ConditionEvent) -> int:
        """Number of defined signals that agree with the event."""
        checks = (
            (self.url_pattern, event.current_url),
            (self.locator_value_pattern, event.locator_value),
            (self.exception_type, event.stack_trace),
            (self.dom_contains, event.dom_snapshot),
            (self.message_contains, event.message),
        )
        score = sum(1 for needle, hay in checks if needle is not None and hay and needle in hay)
        if self.condition_type is not None and self.condition_type == event.condition_type.value:
            score += 1
        return score

    def matches(self, event: ConditionEvent) -> bool:
        return self.min_match_signals > 0 and self.score(event) >= self.min_match_signals

    def to_insight(self) -> Insight:
        """Build the local-resolution insight this pattern stands for."""
        return Insight(
            category=self.category,
            root_cause=self.root_cause,
            confidence=1.0,
            suggested_outcome=self.suggested_outcome,
            is_transient=self.is_transient,
            evidence=list(self.evidence),
            plan=copy.deepcopy(self.plan),
            continue_context=copy.deepcopy(self.continue_context),
            resolved_from_pattern=self.id,
            source=InsightSource.KNOWLEDGE_BASE,
            raw_response=f"[LOCAL] Resolved from known pattern: {self.id}",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "enabled": self.enabled,
            "urlPattern": self.url_pattern,
            "locatorValuePattern": self.locator_value_pattern,
            "exceptionType": self.exception_type,
            "domContains": self.dom_contains,
            "conditionType": self.condition_type,
            "messageContains": self.message_contains,
            "minMatchSignals": self.min_match_signals,
            "conditionCategory": self.category.value,
            "rootCause": self.root_cause,
            "evidenceHighlights": list(self.evidence),
            "isTransient": self.is_transient,
            "suggestedTestOutcome": self.suggested_outcome.value,
            "actionPlan": self.plan.to_dict() if self.plan else None,
            "continueContext": self.continue_context.to_dict() if self.continue_context else None,
            "hitCount": self.hit_count,
            "lastHit": format_time(self.last_hit),
            "addedBy": self.added_by,
            "addedAt": format_time(self.added_at),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KnownPattern:
        if not data.get("id"):
            raise ValueError("Pattern record has no id")
        plan_data = data.get("actionPlan")
        continue_data = data.get("continueContext")
        return cls(
            id=str(data["id"]),
            description=data.get("description") or "",
            enabled=bool(data.get("enabled", True)),
            url_pattern=data.get("urlPattern"),
            locator_value_pattern=data.get("locatorValuePattern"),
            exception_type=data.get("exceptionType"),
            dom_contains=data.get("domContains"),
            condition_type=data.get("conditionType"),
            message_contains=data.get("messageContains"),
            min_match_signals=int(data.get("minMatchSignals", 2)),
            category=Category.parse(data.get("conditionCategory")),
            root_cause=data.get("rootCause") or "",
            evidence=[str(e) for e in data.get("evidenceHighlights") or []],
            is_transient=bool(data.get("isTransient", False)),
            suggested_outcome=Outcome.parse(
                data.get("suggestedTestOutcome"), Outcome.INVESTIGATE
            ),
            plan=RemediationPlan.from_dict(plan_data) if isinstance(plan_data, dict) else None,
            continue_context=(
                ContinueContext.from_dict(continue_data)
                if isinstance(continue_data, dict) else None
            ),
            hit_count=int(data.get("hitCount", 0)),
            last_hit=parse_time(data.get("lastHit")),
            added_by=data.get("addedBy"),
            added_at=parse_time(data.get("addedAt")),
            notes=data.get("notes"),
        )


class RecordStatus(Enum):
    NEW = "NEW"
    REVIEWED = "REVIEWED"
    PATTERN_CREATED = "PATTERN_CREATED"
    IGNORED = "IGNORED"


@dataclass
class UnknownRecord:
    """A condition nothing recognised, kept for human review."""

    id: str
    content_hash: str
    recorded_at: datetime
    condition_type: str
    message: str = ""
    current_url: str = ""
    locator_strategy: Optional[str] = None
    locator_value: Optional[str] = None
    exception_type: Optional[str] = None
    stack_trace_summary: Optional[str] = None
    dom_snippet: Optional[str] = None
    test_name: Optional[str] = None
    suite_name: Optional[str] = None
    hit_count: int = 1
    last_seen_at: Optional[datetime] = None
    status: RecordStatus = RecordStatus.NEW
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    pattern_created_id: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "contentHash": self.content_hash,
            "recordedAt": format_time(self.recorded_at),
            "lastSeenAt": format_time(self.last_seen_at),
            "hitCount": self.hit_count,
            "testName": self.test_name,
            "suiteName": self.suite_name,
            "conditionType": self.condition_type,
            "message": self.message,
            "currentUrl": self.current_url,
            "locatorStrategy": self.locator_strategy,
            "locatorValue": self.locator_value,
            "exceptionType": self.exception_type,
            "stackTraceSummary": self.stack_trace_summary,
            "domSnippet": self.dom_snippet,
            "status": self.status.value,
            "reviewedBy": self.reviewed_by,
            "reviewedAt": format_time(self.reviewed_at),
            "patternCreatedId": self.pattern_created_id,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UnknownRecord:
        return cls(
            id=str(data["id"]),
            content_hash=str(data["contentHash"]),
            recorded_at=parse_time(data.get("recordedAt")),
            last_seen_at=parse_time(data.get("lastSeenAt")),
            hit_count=int(data.get("hitCount", 1)),
            test_name=data.get("testName"),
            suite_name=data.get("suiteName"),
            condition_type=data.get("conditionType") or "",
            message=data.get("message") or "",
            current_url=data.get("currentUrl") or "",
            locator_strategy=data.get("locatorStrategy"),
            locator_value=data.get("locatorValue"),
            exception_type=data.get("exceptionType"),
            stack_trace_summary=data.get("stackTraceSummary"),
            dom_snippet=data.get("domSnippet"),
            status=RecordStatus(data.get("status") or "NEW"),
            reviewed_by=data.get("reviewedBy"),
            reviewed_at=parse_time(data.get("reviewedAt")),
            pattern_created_id=data.get("patternCreatedId"),
            notes=data.get("notes"),
        )
