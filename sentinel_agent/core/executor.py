"""Action plan executor — walks a remediation plan with risk gating and branching."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sentinel_agent.core.loop_guard import LoopGuard
from sentinel_agent.core.models import (
    CascadeRound,
    Category,
    ConditionEvent,
    Insight,
    RemediationPlan,
    RiskLevel,
    Step,
    StepOutcome,
    StepStatus,
)
from sentinel_agent.drivers.base import LiveState
from sentinel_agent.handlers.base import ActionContext
from sentinel_agent.handlers.registry import HandlerRegistry

logger = logging.getLogger(__name__)


@dataclass
class ExecutionReport:
    outcomes: list[StepOutcome] = field(default_factory=list)
    guard_tripped: bool = False
    halted: bool = False

    def count(self, status: StepStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)


class ActionPlanExecutor:
    """Executes plan steps in order, following onSuccess/onFailure branches.

    Steps above ``max_risk`` are reported as SKIPPED without calling their
    handler. A FAILED step marked ``requires_verification`` halts the plan.
    """

    def __init__(
        self,
        registry: Optional[HandlerRegistry] = None,
        max_risk: RiskLevel = RiskLevel.LOW,
        dry_run: bool = False,
    ):
        self.registry = registry or HandlerRegistry()
        self.max_risk = max_risk
        self.dry_run = dry_run

    def execute(
        self,
        plan: Optional[RemediationPlan],
        live: LiveState,
        event: ConditionEvent,
        prior_rounds: Iterable[CascadeRound] = (),
        insight: Optional[Insight] = None,
    ) -> list[StepOutcome]:
        return self.run(plan, live, event, prior_rounds, insight).outcomes

    def run(
        self,
        plan: Optional[RemediationPlan],
        live: LiveState,
        event: ConditionEvent,
        prior_rounds: Iterable[CascadeRound] = (),
        insight: Optional[Insight] = None,
    ) -> ExecutionReport:
        report = ExecutionReport()
        if plan is None or not plan.steps:
            return report

        steps = plan.steps
        index = {s.step_id: i for i, s in enumerate(steps) if s.step_id}
        prior = tuple(o for r in prior_rounds for o in r.outcomes)
        if insight is None:
            insight = Insight(
                category=Category.UNKNOWN,
                root_cause=plan.summary,
                confidence=plan.confidence,
            )
        guard = LoopGuard.for_plan(len(steps))

        cursor = 0
        while 0 <= cursor < len(steps):
            if guard.tripped:
                warning = guard.check()
                logger.warning("Loop guard tripped, stopping plan: %s", warning.message)
                report.guard_tripped = True
                break
            guard.visit(cursor)

            step = steps[cursor]
            ctx = ActionContext(
                live=live,
                step=step,
                insight=insight,
                event=event,
                prior_attempts=prior + tuple(report.outcomes),
                max_risk=self.max_risk,
                dry_run=self.dry_run,
            )
            result = self._run_step(step, ctx).for_step(step)
            report.outcomes.append(result)
            logger.info("Step %d %s", cursor + 1, result)

            if result.status is StepStatus.FAILED and step.requires_verification:
                logger.warning(
                    "Step %s failed and requires verification, halting plan",
                    step.step_id or step.action_type,
                )
                report.halted = True
                break

            target = step.branch_target(result.status)
            if target and target in index:
                cursor = index[target]
            else:
                if target:
                    logger.warning("Branch target %r not in plan, continuing in order", target)
                cursor += 1

        self._log_summary(report)
        return report

    def _run_step(self, step: Step, ctx: ActionContext) -> StepOutcome:
        if not step.within(self.max_risk):
            return StepOutcome.skipped(
                f"Skipped (risk={step.risk.value} exceeds max_risk_level="
                f"{self.max_risk.value}). Recommendation: {step.description}"
            )
        handler = self.registry.find(step.action_type)
        if handler is None:
            return StepOutcome.not_found(
                f"No handler registered for action type: {step.action_type}"
            )
        try:
            result = handler.handle(ctx)
        except Exception as e:
            logger.warning("Handler for %s raised: %s", step.action_type, e)
            return StepOutcome.failed(f"Handler threw: {e}", e)
        if result is None:
            return StepOutcome.failed(f"Handler for {step.action_type} returned no result")
        return result

    @staticmethod
    def _log_summary(report: ExecutionReport) -> None:
        counts = Counter(o.status for o in report.outcomes)
        logger.info(
            "Plan finished: %d executed, %d skipped, %d failed, %d not found%s",
            counts[StepStatus.EXECUTED],
            counts[StepStatus.SKIPPED],
            counts[StepStatus.FAILED],
            counts[StepStatus.NOT_FOUND],
            " (loop guard tripped)" if report.guard_tripped else "",
        )
