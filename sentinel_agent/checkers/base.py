"""Checker — local heuristic that recognises a failure signature without a network call."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from sentinel_agent.core.models import (
    Category,
    ConditionEvent,
    Insight,
    InsightSource,
    Outcome,
    RemediationPlan,
)
from sentinel_agent.drivers.base import LiveState

# URLs that carry no information about where the browser actually is.
UNKNOWN_URLS = frozenset({"", "unknown", "unavailable"})


@dataclass
class MatchResult:
    matched: bool
    category: Category = Category.UNKNOWN
    diagnosis: str = ""
    confidence: float = 0.0
    suggested_outcome: Outcome = Outcome.INVESTIGATE
    plan: Optional[RemediationPlan] = None
    evidence: list[str] = field(default_factory=list)

    @classmethod
    def no_match(cls) -> MatchResult:
        return cls(matched=False)

    def to_insight(self, checker_id: str) -> Insight:
        return Insight(
            category=self.category,
            root_cause=self.diagnosis,
            confidence=self.confidence,
            suggested_outcome=self.suggested_outcome,
            is_transient=self.suggested_outcome is Outcome.RETRY,
            evidence=list(self.evidence),
            plan=self.plan,
            source=InsightSource.LOCAL_CHECKER,
            raw_response=f"[LOCAL CHECKER] {checker_id}",
        )


class Checker(ABC):
    """Stateless heuristic over live state and the captured event.

    Checkers may read the page but must not change it. Lower ``priority``
    values run first, so cheap and definitive checks come before DOM scans.
    """

    checker_id: str = ""
    priority: int = 100

    @abstractmethod
    def check(self, live: LiveState, event: ConditionEvent) -> MatchResult: ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.checker_id!r} priority={self.priority}>"
