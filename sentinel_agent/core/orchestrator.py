"""Cascade orchestrator — bounded diagnose → remediate → verify loop."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from sentinel_agent.checkers.registry import CheckerChain
from sentinel_agent.core.client import SentinelClient
from sentinel_agent.core.executor import ActionPlanExecutor, ExecutionReport
from sentinel_agent.core.models import (
    STOP_OUTCOMES,
    CascadeResult,
    CascadeRound,
    ConditionEvent,
    Insight,
    InsightSource,
)
from sentinel_agent.drivers.base import LiveState

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3


class CascadeOrchestrator:
    """Runs cascade rounds until the condition is verified gone or a stop applies.

    Each round: local checkers first, then the client's escalation
    (knowledge base, offline recorder, remote analysis), then plan
    execution, then re-verification with the full checker chain.
    """

    def __init__(
        self,
        chain: CheckerChain,
        client: SentinelClient,
        executor: Optional[ActionPlanExecutor] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        console: Optional[Console] = None,
    ):
        self.chain = chain
        self.client = client
        self.executor = executor or ActionPlanExecutor()
        self.max_depth = max(1, max_depth)
        self.console = console

    def run(self, live: LiveState, event: ConditionEvent) -> CascadeResult:
        """Run the cascade. Never raises; failures become a FALLBACK_ERROR round."""
        rounds: list[CascadeRound] = []
        logger.info(
            "Starting cascade (max_depth=%d) for %s at %s",
            self.max_depth, event.condition_type.value, event.current_url,
        )
        try:
            current = event
            while len(rounds) < self.max_depth:
                depth = len(rounds) + 1
                logger.info("Cascade round %d/%d", depth, self.max_depth)
                result = self._round(depth, live, current, rounds)
                rounds.append(result)
                self._render(result)

                if result.resolved:
                    logger.info("Condition resolved at depth %d", depth)
                    break
                if result.guard_tripped:
                    logger.warning("Stopping cascade: loop guard tripped at depth %d", depth)
                    break
                outcome = result.insight.suggested_outcome
                if outcome in STOP_OUTCOMES:
                    logger.info("Stopping cascade: outcome=%s", outcome.value)
                    break
                if len(rounds) < self.max_depth:
                    current = self._refresh(live, current)
            else:
                logger.info("Stopping cascade: max depth %d reached", self.max_depth)
        except Exception as e:
            logger.error("Cascade failed: %s", e, exc_info=True)
            error_round = CascadeRound(
                depth=len(rounds) + 1,
                source=InsightSource.FALLBACK_ERROR,
                insight=Insight.error(f"Cascade failed: {e}"),
            )
            rounds.append(error_round)
            self._render(error_round)

        self._log_summary(rounds)
        return CascadeResult(tuple(rounds))

    def _round(
        self,
        depth: int,
        live: LiveState,
        event: ConditionEvent,
        prior: list[CascadeRound],
    ) -> CascadeRound:
        checker_id = None
        match = self.chain.first_match(live, event)
        if match is not None:
            checker, result = match
            checker_id = checker.checker_id
            insight = result.to_insight(checker_id)
            source = InsightSource.LOCAL_CHECKER
            logger.info(
                "[LOCAL CHECKER] %s matched: category=%s confidence=%.0f%%",
                checker_id, insight.category.value, insight.confidence * 100,
            )
        else:
            logger.info("No local checker matched, escalating")
            insight = self.client.analyze_event(event)
            source = insight.source or InsightSource.REMOTE_ANALYSIS
            logger.info(
                "[%s] category=%s confidence=%.0f%%",
                source.value, insight.category.value, insight.confidence * 100,
            )

        if insight.has_plan:
            report = self.executor.run(insight.plan, live, event, prior, insight)
        else:
            report = ExecutionReport()

        resolved = self._verify(live, event)
        return CascadeRound(
            depth=depth,
            source=source,
            insight=insight,
            outcomes=tuple(report.outcomes),
            resolved=resolved,
            checker_id=checker_id,
            guard_tripped=report.guard_tripped,
        )

    def _verify(self, live: LiveState, event: ConditionEvent) -> bool:
        still = self.chain.any_match(live, self._refresh(live, event))
        if still:
            logger.debug("Condition still present: %s matched on re-check", still)
            return False
        logger.debug("No checker matched on re-check, condition appears resolved")
        return True

    @staticmethod
    def _refresh(live: LiveState, event: ConditionEvent) -> ConditionEvent:
        try:
            url = live.current_url()
        except Exception as e:
            logger.debug("Could not re-read URL, keeping event: %s", e)
            return event
        if not url or url == event.current_url:
            return event
        return event.refreshed(url)

    def _render(self, result: CascadeRound) -> None:
        if self.console is None:
            return
        insight = result.insight
        style = "green" if result.resolved else (
            "red" if result.source is InsightSource.FALLBACK_ERROR else "yellow"
        )
        lines = [
            f"[bold]Source:[/] {result.source.value}"
            + (f" ({result.checker_id})" if result.checker_id else ""),
            f"[bold]Category:[/] {insight.category.value} "
            f"({round(insight.confidence * 100)}%)",
            f"[bold]Root cause:[/] {escape(insight.root_cause)}",
            f"[bold]Outcome:[/] {result.effective_outcome.value}",
        ]
        for outcome in result.outcomes:
            lines.append(f"  {escape(str(outcome))}")
        if result.guard_tripped:
            lines.append("[red]Loop guard tripped[/]")
        lines.append(f"[bold]Resolved:[/] {'yes' if result.resolved else 'no'}")
        self.console.print(
            Panel("\n".join(lines), title=f"Cascade round {result.depth}", border_style=style)
        )

    @staticmethod
    def _log_summary(rounds: list[CascadeRound]) -> None:
        logger.info("Cascade complete: %d round(s)", len(rounds))
        for r in rounds:
            logger.info(
                "  Round %d: source=%s category=%s resolved=%s actions=%d",
                r.depth, r.source.value, r.insight.category.value,
                r.resolved, len(r.outcomes),
            )
