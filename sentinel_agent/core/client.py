"""Sentinel client — knowledge base, offline recorder, then remote analysis."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from sentinel_agent.checkers.base import UNKNOWN_URLS
from sentinel_agent.core.config import SentinelConfig
from sentinel_agent.core.context import ContextCollector
from sentinel_agent.core.executor import ActionPlanExecutor
from sentinel_agent.core.llm import AnalysisGateway
from sentinel_agent.core.models import (
    Category,
    ConditionEvent,
    ConditionType,
    Insight,
    InsightSource,
    Outcome,
    RiskLevel,
    StepOutcome,
    utcnow,
)
from sentinel_agent.data.knowledge import KnowledgeStore
from sentinel_agent.data.models import KnownPattern
from sentinel_agent.data.unknown import UnknownConditionRecorder
from sentinel_agent.drivers.base import LiveState

logger = logging.getLogger(__name__)

OFFLINE_ROOT_CAUSE = (
    "No matching pattern found in the local knowledge base. "
    "This condition has been recorded in the unknown conditions log for human review. "
    "Add a pattern to the knowledge base to resolve this condition automatically in future runs."
)

_EXCEPTION_CONDITIONS = {
    "NoSuchElementException": ConditionType.LOCATOR_NOT_FOUND,
    "TimeoutException": ConditionType.TIMEOUT,
    "TimeoutError": ConditionType.TIMEOUT,
}


def condition_type_for(exc: Optional[BaseException]) -> ConditionType:
    if exc is None:
        return ConditionType.EXCEPTION
    return _EXCEPTION_CONDITIONS.get(type(exc).__name__, ConditionType.EXCEPTION)


@dataclass
class InsightRecord:
    insight: Insight
    outcomes: list[StepOutcome] = field(default_factory=list)


class SentinelClient:
    """Entry point for analysing a condition outside the cascade.

    Resolution order: knowledge-base match, offline recording, remote
    analysis. Every analysis returns an Insight; none of them raise.
    """

    def __init__(
        self,
        config: Optional[SentinelConfig] = None,
        knowledge: Optional[KnowledgeStore] = None,
        recorder: Optional[UnknownConditionRecorder] = None,
        gateway: Optional[AnalysisGateway] = None,
        collector: Optional[ContextCollector] = None,
        executor: Optional[ActionPlanExecutor] = None,
    ):
        self.config = config or SentinelConfig()
        self.knowledge = knowledge if knowledge is not None else KnowledgeStore(
            self.config.knowledge_base_path
        )
        self.recorder = recorder if recorder is not None else UnknownConditionRecorder(
            self.config.unknown_log_path
        )
        self._gateway = gateway
        self.collector = collector or ContextCollector.from_config(self.config)
        # Knowledge-base plans are trusted only up to LOW risk when run from here.
        self.executor = executor or ActionPlanExecutor(
            max_risk=RiskLevel.LOW, dry_run=self.config.dry_run
        )
        self._history: list[InsightRecord] = []
        logger.info(
            "TestSentinel initialized: offline=%s, KB=%d patterns",
            self.config.offline_mode, self.knowledge.size(),
        )

    @property
    def gateway(self) -> AnalysisGateway:
        if self._gateway is None:
            self._gateway = AnalysisGateway.from_config(self.config)
        return self._gateway

    # ── Analysis ─────────────────────────────────────────

    def analyze_event(self, event: ConditionEvent) -> Insight:
        insight = self._analyze(event)
        self._history.append(InsightRecord(insight))
        return insight

    def analyze_exception(
        self,
        live: LiveState,
        exc: BaseException,
        condition_type: Optional[ConditionType] = None,
        prior_steps: Optional[list[str]] = None,
        meta: Optional[dict[str, str]] = None,
    ) -> Insight:
        condition_type = condition_type or condition_type_for(exc)
        logger.info("Analyzing %s condition: %s", condition_type.value, exc)
        event = self.collector.collect(live, condition_type, exc, prior_steps, meta)
        return self._analyze_live(live, event)

    def analyze_wrong_page(
        self,
        live: LiveState,
        expected_url: str,
        prior_steps: Optional[list[str]] = None,
        meta: Optional[dict[str, str]] = None,
    ) -> Insight:
        event = self.collector.collect_wrong_page(live, expected_url, prior_steps, meta)
        logger.info(
            "Analyzing WRONG_PAGE condition: expected=%s actual=%s",
            expected_url, event.current_url,
        )
        return self._analyze_live(live, event)

    def _analyze_live(self, live: LiveState, event: ConditionEvent) -> Insight:
        insight = self._analyze(event)
        outcomes: list[StepOutcome] = []
        if insight.is_local_resolution and insight.has_plan:
            logger.info(
                "Auto-executing LOW-risk plan for pattern %s", insight.resolved_from_pattern
            )
            outcomes = self.executor.execute(insight.plan, live, event, insight=insight)
        self._history.append(InsightRecord(insight, outcomes))
        return insight

    def _analyze(self, event: ConditionEvent) -> Insight:
        if not self.config.enabled:
            return Insight.error("disabled")

        start = time.monotonic()
        pattern = self.knowledge.find_best_match(event)
        if pattern is not None:
            self.knowledge.record_hit(pattern.id)
            insight = pattern.to_insight()
            insight.latency_ms = int((time.monotonic() - start) * 1000)
            logger.info(
                "[LOCAL KB] Pattern %s matched, remote analysis skipped (%dms)",
                pattern.id, insight.latency_ms,
            )
            return insight

        if self.config.offline_mode:
            logger.info("[OFFLINE] No KB match, recording unknown condition for review")
            self.recorder.record(event)
            return offline_insight()

        if not self.config.api_enabled:
            logger.debug("No KB match and API disabled")
            return Insight.error("no KB match and API is disabled")

        try:
            return self.gateway.analyze_event(event)
        except Exception as e:
            latency_ms = int((time.monotonic() - start) * 1000)
            logger.error("Unexpected error during remote analysis: %s", e)
            return Insight.error(f"Unexpected error: {e}", latency_ms)

    # ── Knowledge base management ────────────────────────

    def add_pattern(self, pattern: KnownPattern) -> None:
        self.knowledge.add(pattern)

    def disable_pattern(self, pattern_id: str) -> bool:
        return self.knowledge.disable(pattern_id)

    def record_resolution(
        self,
        event: ConditionEvent,
        insight: Insight,
        pattern_id: str,
        added_by: Optional[str] = None,
    ) -> Optional[KnownPattern]:
        """Promote an analysed condition into a knowledge-base pattern."""
        if insight.is_local_resolution:
            logger.debug("Skipping record_resolution: insight already came from the KB")
            return None
        url = event.current_url if event.current_url not in UNKNOWN_URLS else None
        pattern = KnownPattern(
            id=pattern_id,
            description=f"Promoted from analysis on {utcnow().isoformat()}",
            url_pattern=url,
            locator_value_pattern=event.locator_value,
            condition_type=event.condition_type.value,
            category=insight.category,
            root_cause=insight.root_cause,
            evidence=list(insight.evidence),
            is_transient=insight.is_transient,
            suggested_outcome=insight.suggested_outcome,
            plan=insight.plan,
            continue_context=insight.continue_context,
            added_by=added_by,
            added_at=utcnow(),
        )
        pattern.min_match_signals = self.config.min_signal_policy.threshold(pattern.signal_count())
        self.knowledge.add(pattern)
        logger.info("Pattern %s promoted to knowledge base by %s", pattern_id, added_by)
        return pattern

    def reload_knowledge_base(self) -> None:
        self.knowledge.reload()

    def knowledge_base_size(self) -> int:
        return self.knowledge.size()

    def has_pattern(self, pattern_id: Optional[str]) -> bool:
        return pattern_id is not None and pattern_id in self.knowledge

    @property
    def insight_history(self) -> list[InsightRecord]:
        return list(self._history)


def offline_insight() -> Insight:
    return Insight(
        category=Category.UNKNOWN,
        root_cause=OFFLINE_ROOT_CAUSE,
        confidence=0.0,
        suggested_outcome=Outcome.INVESTIGATE,
        source=InsightSource.UNKNOWN_RECORDED,
        raw_response="[OFFLINE] No KB match: recorded for human review",
    )
