"""Navigation and page-state handlers."""

from __future__ import annotations

from dataclasses import dataclass

from sentinel_agent.core.models import StepOutcome
from sentinel_agent.handlers.base import ActionContext, ActionHandler, param


class RefreshPageHandler(ActionHandler):
    action_type = "REFRESH_PAGE"

    def execute(self, ctx: ActionContext, params: None) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped("DryRun: would refresh page")
        try:
            url_before = ctx.live.current_url()
            ctx.live.refresh()
            return StepOutcome.executed(f"Page refreshed: {url_before}")
        except Exception as e:
            return StepOutcome.failed(f"Could not refresh page: {e}", e)


class NavigateBackHandler(ActionHandler):
    action_type = "NAVIGATE_BACK"

    def execute(self, ctx: ActionContext, params: None) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped("DryRun: would navigate back")
        try:
            ctx.live.back()
            return StepOutcome.executed(f"Navigated back to: {ctx.live.current_url()}")
        except Exception as e:
            return StepOutcome.failed(f"Could not navigate back: {e}", e)


@dataclass
class NavigateToParams:
    url: str = param("url")


class NavigateToHandler(ActionHandler):
    action_type = "NAVIGATE_TO"
    params_type = NavigateToParams

    def execute(self, ctx: ActionContext, params: NavigateToParams) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped(f"DryRun: would navigate to '{params.url}'")
        try:
            ctx.live.get(params.url)
            return StepOutcome.executed(f"Navigated to: {params.url}")
        except Exception as e:
            return StepOutcome.failed(f"Could not navigate to '{params.url}': {e}", e)


class ClearCookiesHandler(ActionHandler):
    action_type = "CLEAR_COOKIES"

    def execute(self, ctx: ActionContext, params: None) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped("DryRun: would clear all cookies and reload")
        try:
            ctx.live.delete_all_cookies()
            ctx.live.refresh()
            return StepOutcome.executed("All cookies cleared and page reloaded")
        except Exception as e:
            return StepOutcome.failed(f"Could not clear cookies: {e}", e)


@dataclass
class ExecuteScriptParams:
    script: str = param("script")


class ExecuteScriptHandler(ActionHandler):
    """HIGH risk; only reached when the ceiling allows it."""

    action_type = "EXECUTE_SCRIPT"
    params_type = ExecuteScriptParams

    def execute(self, ctx: ActionContext, params: ExecuteScriptParams) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped(f"DryRun: would execute script: {params.script}")
        try:
            result = ctx.live.execute_script(params.script)
            return StepOutcome.executed(f"Script executed, result: {result}")
        except Exception as e:
            return StepOutcome.failed(f"Script execution failed: {e}", e)
