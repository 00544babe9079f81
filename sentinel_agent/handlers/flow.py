"""Test-flow and advisory handlers.

These do not change the page. They either tell the calling test framework
what to do next (through the outcome override on the step result) or log
advice for integrations that are not wired up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sentinel_agent.core.models import Outcome, StepOutcome
from sentinel_agent.handlers.base import ActionContext, ActionHandler, param

logger = logging.getLogger(__name__)


@dataclass
class RetryParams:
    delay_ms: int = param("delayMs", int, default=1_000)
    max_retries: int = param("maxRetries", int, default=3)


class RetryActionHandler(ActionHandler):
    """Advisory: the test runner owns the actual retry."""

    action_type = "RETRY_ACTION"
    params_type = RetryParams

    def execute(self, ctx: ActionContext, params: RetryParams) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped(
                f"DryRun: would retry original action up to {params.max_retries} "
                f"time(s) after {params.delay_ms}ms"
            )
        logger.info(
            "RETRY_ACTION: recommend retrying original action (max_retries=%d, delay_ms=%d)",
            params.max_retries, params.delay_ms,
        )
        return StepOutcome.executed(
            f"Retry advisory issued: max_retries={params.max_retries}, delay_ms={params.delay_ms}",
            outcome=Outcome.RETRY,
        )


@dataclass
class ReasonParams:
    reason: str = param("reason", default="")


class SkipTestHandler(ActionHandler):
    action_type = "SKIP_TEST"
    params_type = ReasonParams

    def execute(self, ctx: ActionContext, params: ReasonParams) -> StepOutcome:
        reason = params.reason or ctx.step.description or ctx.insight.root_cause
        if ctx.dry_run:
            return StepOutcome.skipped(f"DryRun: would skip test, reason: {reason}")
        return StepOutcome.executed(f"Skip requested: {reason}", outcome=Outcome.SKIP)


class SkipStepHandler(ActionHandler):
    action_type = "SKIP_STEP"
    params_type = ReasonParams

    def execute(self, ctx: ActionContext, params: ReasonParams) -> StepOutcome:
        reason = params.reason or ctx.step.description or "step no longer needed"
        if ctx.dry_run:
            return StepOutcome.skipped(f"DryRun: would skip current step, reason: {reason}")
        return StepOutcome.executed(f"Step skip requested: {reason}", outcome=Outcome.CONTINUE)


class AbortSuiteHandler(ActionHandler):
    """HIGH risk, advisory only: the suite controller decides whether to stop."""

    action_type = "ABORT_SUITE"
    params_type = ReasonParams

    def execute(self, ctx: ActionContext, params: ReasonParams) -> StepOutcome:
        reason = params.reason or "Abort of the suite recommended"
        logger.error("ABORT_SUITE: %s (root cause: %s)", reason, ctx.insight.root_cause)
        if ctx.dry_run:
            return StepOutcome.skipped(f"DryRun: would abort suite, reason: {reason}")
        return StepOutcome.executed(
            "ABORT_SUITE advisory logged; escalate to the suite controller if needed"
        )


class CaptureScreenshotHandler(ActionHandler):
    action_type = "CAPTURE_SCREENSHOT"

    def execute(self, ctx: ActionContext, params: None) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped("DryRun: would capture diagnostic screenshot")
        try:
            data = ctx.live.screenshot_base64()
        except Exception as e:
            return StepOutcome.failed(f"Screenshot failed: {e}", e)
        if not data:
            return StepOutcome.skipped("Driver does not support screenshots")
        logger.info("CAPTURE_SCREENSHOT: captured %d chars base64", len(data))
        return StepOutcome.executed(f"Screenshot captured ({len(data)} chars base64)")


@dataclass
class ApmParams:
    tool: str = param("tool", default="unknown")
    query: str = param("query", default="")


class QueryApmHandler(ActionHandler):
    action_type = "QUERY_APM"
    params_type = ApmParams

    def execute(self, ctx: ActionContext, params: ApmParams) -> StepOutcome:
        logger.info("QUERY_APM advisory: tool=%s query=%r", params.tool, params.query)
        return StepOutcome.skipped(
            f"QUERY_APM advisory: check {params.tool} for '{params.query}'; "
            "no live integration configured"
        )


class CaptureHarHandler(ActionHandler):
    action_type = "CAPTURE_HAR"

    def execute(self, ctx: ActionContext, params: None) -> StepOutcome:
        logger.info("CAPTURE_HAR advisory: attach a network recorder to capture traffic")
        return StepOutcome.skipped("CAPTURE_HAR advisory: no HAR capture integration configured")


class CustomHandler(ActionHandler):
    """Placeholder; register a project handler for CUSTOM to replace it."""

    action_type = "CUSTOM"

    def execute(self, ctx: ActionContext, params: None) -> StepOutcome:
        logger.warning("CUSTOM action requested but no project handler is registered")
        return StepOutcome.skipped("CUSTOM handler not implemented; register a replacement")
