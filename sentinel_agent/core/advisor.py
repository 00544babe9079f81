"""Action plan advisor — which plan steps are safe to act on."""

from __future__ import annotations

import logging
from typing import Optional

from rich.table import Table

from sentinel_agent.core.models import Insight, RiskLevel, Step

logger = logging.getLogger(__name__)


def format_params(step: Step) -> str:
    """The most telling parameter of a step, for one-line display."""
    params = step.parameters or {}
    for key, suffix in (("selector", ""), ("waitMs", "ms"), ("url", "")):
        if params.get(key) not in (None, ""):
            return f"({params[key]}{suffix})"
    return ""


class ActionPlanAdvisor:
    def __init__(self, max_risk: RiskLevel = RiskLevel.LOW):
        self.max_risk = max_risk

    def safe_recommendations(self, insight: Insight) -> list[Step]:
        if not insight.has_plan:
            return []
        return insight.plan.low_risk_steps()

    def executable_steps(self, insight: Insight) -> list[Step]:
        if not insight.has_plan:
            return []
        return insight.plan.at_or_below(self.max_risk)

    def first_executable_step(self, insight: Insight) -> Optional[Step]:
        steps = self.executable_steps(insight)
        return steps[0] if steps else None

    def has_executable_steps(self, insight: Insight) -> bool:
        return bool(self.executable_steps(insight))

    def _executable(self, step: Step) -> bool:
        return step.risk is not None and not step.risk.exceeds(self.max_risk)

    def log_recommendations(self, insight: Insight) -> None:
        if not insight.has_plan:
            logger.info("No action plan available")
            return
        plan = insight.plan
        logger.info(
            "Action plan: %s (confidence %d%%, requires human: %s)",
            plan.summary,
            round(plan.confidence * 100),
            "YES" if plan.requires_human else "no",
        )
        for i, step in enumerate(plan.steps, 1):
            tag = "RECOMMEND" if self._executable(step) else "ADVISORY"
            logger.info(
                "  [%d] [%s] %s %s %s %d%%",
                i, tag, step.action_type, format_params(step),
                step.risk.value if step.risk else "?", round(step.confidence * 100),
            )
            if step.rationale:
                logger.info("        -> %s", step.rationale)
        if plan.requires_human:
            logger.info("  Human review required before proceeding")

    def build_table(self, insight: Insight) -> Table:
        table = Table(title=insight.plan.summary if insight.has_plan else "No action plan")
        table.add_column("#", style="dim")
        table.add_column("Action", style="cyan")
        table.add_column("Params")
        table.add_column("Risk")
        table.add_column("Confidence", justify="right")
        table.add_column("Mode")
        if not insight.has_plan:
            return table
        for i, step in enumerate(insight.plan.steps, 1):
            risk = step.risk.value if step.risk else "?"
            risk_style = {"LOW": "green", "MEDIUM": "yellow"}.get(risk, "red")
            table.add_row(
                str(i),
                step.action_type,
                format_params(step),
                f"[{risk_style}]{risk}[/]",
                f"{round(step.confidence * 100)}%",
                "recommend" if self._executable(step) else "advisory",
            )
        return table

    def report_summary(self, insight: Insight) -> str:
        if not insight.has_plan:
            return ""
        plan = insight.plan
        lines = ["--- TestSentinel Recommendations ---", f"Strategy: {plan.summary}"]
        for i, step in enumerate(plan.steps, 1):
            risk = step.risk.value if step.risk else "?"
            lines.append(f"  {i}. [{risk}][{step.action_type}] {step.description}")
        if plan.requires_human:
            lines.append("Human intervention required.")
        return "\n".join(lines)
