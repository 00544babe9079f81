"""Page interaction handlers: clicks, waits, scrolling, overlays, alerts, frames."""

from __future__ import annotations

import time
from dataclasses import dataclass

from sentinel_agent.core.models import StepOutcome
from sentinel_agent.handlers.base import ActionContext, ActionHandler, SelectorParams, param

MAX_FIXED_WAIT_MS = 10_000
ALERT_TIMEOUT_MS = 5_000


class ClickHandler(ActionHandler):
    action_type = "CLICK"
    params_type = SelectorParams

    def execute(self, ctx: ActionContext, params: SelectorParams) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped(f"DryRun: would click '{params.selector}'")
        try:
            elements = ctx.live.find_elements(params.selector)
            if not elements:
                return StepOutcome.failed(f"No element matches '{params.selector}'")
            elements[0].click()
            return StepOutcome.executed(f"Clicked: {params.selector}")
        except Exception as e:
            return StepOutcome.failed(f"Could not click '{params.selector}': {e}", e)


class ClickIfPresentHandler(ActionHandler):
    action_type = "CLICK_IF_PRESENT"
    params_type = SelectorParams

    def execute(self, ctx: ActionContext, params: SelectorParams) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped(f"DryRun: would click '{params.selector}' if present")
        try:
            elements = ctx.live.find_elements(params.selector)
            if not elements or not elements[0].is_displayed():
                return StepOutcome.skipped(
                    f"Element '{params.selector}' not present, skipped safely"
                )
            elements[0].click()
            return StepOutcome.executed(f"Clicked present element: {params.selector}")
        except Exception as e:
            return StepOutcome.failed(
                f"CLICK_IF_PRESENT failed for '{params.selector}': {e}", e
            )


@dataclass
class WaitForElementParams:
    selector: str = param("selector")
    condition: str = param("condition", default="visible")
    timeout_ms: int = param("timeoutMs", int, default=10_000)


class WaitForElementHandler(ActionHandler):
    action_type = "WAIT_FOR_ELEMENT"
    params_type = WaitForElementParams

    def execute(self, ctx: ActionContext, params: WaitForElementParams) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped(
                f"DryRun: would wait for '{params.selector}' to be {params.condition}"
            )
        try:
            ctx.live.wait_for_element(params.selector, params.condition, params.timeout_ms)
            return StepOutcome.executed(f"Element '{params.selector}' is {params.condition}")
        except Exception as e:
            return StepOutcome.failed(f"Timed out waiting for '{params.selector}': {e}", e)


@dataclass
class WaitForUrlParams:
    pattern: str = param("pattern")
    timeout_ms: int = param("timeoutMs", int, default=10_000)


class WaitForUrlHandler(ActionHandler):
    action_type = "WAIT_FOR_URL"
    params_type = WaitForUrlParams

    def execute(self, ctx: ActionContext, params: WaitForUrlParams) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped(
                f"DryRun: would wait for URL containing '{params.pattern}'"
            )
        try:
            ctx.live.wait_for_url(params.pattern, params.timeout_ms)
            return StepOutcome.executed(f"URL now contains '{params.pattern}'")
        except Exception as e:
            return StepOutcome.failed(
                f"Timed out waiting for URL '{params.pattern}': {e}", e
            )


@dataclass
class WaitFixedParams:
    wait_ms: int = param("waitMs", int, default=1_000)


class WaitFixedHandler(ActionHandler):
    action_type = "WAIT_FIXED"
    params_type = WaitFixedParams

    def execute(self, ctx: ActionContext, params: WaitFixedParams) -> StepOutcome:
        wait_ms = max(0, min(params.wait_ms, MAX_FIXED_WAIT_MS))
        if ctx.dry_run:
            return StepOutcome.skipped(f"DryRun: would wait {wait_ms}ms")
        time.sleep(wait_ms / 1000)
        return StepOutcome.executed(f"Waited {wait_ms}ms")


class ScrollToElementHandler(ActionHandler):
    action_type = "SCROLL_TO_ELEMENT"
    params_type = SelectorParams

    def execute(self, ctx: ActionContext, params: SelectorParams) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped(f"DryRun: would scroll to '{params.selector}'")
        try:
            elements = ctx.live.find_elements(params.selector)
            if not elements:
                return StepOutcome.failed(f"No element matches '{params.selector}'")
            elements[0].scroll_into_view()
            return StepOutcome.executed(f"Scrolled to element: {params.selector}")
        except Exception as e:
            return StepOutcome.failed(f"Could not scroll to '{params.selector}': {e}", e)


class ScrollToTopHandler(ActionHandler):
    action_type = "SCROLL_TO_TOP"

    def execute(self, ctx: ActionContext, params: None) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped("DryRun: would scroll to top of page")
        try:
            ctx.live.execute_script("window.scrollTo(0, 0)")
            return StepOutcome.executed("Scrolled to top of page")
        except Exception as e:
            return StepOutcome.failed(f"Could not scroll to top: {e}", e)


@dataclass
class DismissOverlayParams:
    selector: str = param("selector", default="")
    method: str = param("method", default="click")


class DismissOverlayHandler(ActionHandler):
    """Dismiss via ``method``: click (on ``selector``), escape, or click_outside."""

    action_type = "DISMISS_OVERLAY"
    params_type = DismissOverlayParams

    def execute(self, ctx: ActionContext, params: DismissOverlayParams) -> StepOutcome:
        method = params.method.lower()
        if ctx.dry_run:
            return StepOutcome.skipped(f"DryRun: would dismiss overlay via {method}")
        try:
            if method == "escape":
                ctx.live.press_escape()
                return StepOutcome.executed("Dismissed overlay via Escape key")
            if method == "click_outside":
                ctx.live.execute_script("document.elementFromPoint(0, 0).click()")
                return StepOutcome.executed("Dismissed overlay by clicking outside")
            if not params.selector:
                return StepOutcome.skipped("No 'selector' for DISMISS_OVERLAY click method")
            elements = ctx.live.find_elements(params.selector)
            if not elements or not elements[0].is_displayed():
                return StepOutcome.skipped(
                    f"Overlay close target '{params.selector}' not visible"
                )
            elements[0].click()
            return StepOutcome.executed(f"Dismissed overlay by clicking: {params.selector}")
        except Exception as e:
            return StepOutcome.failed(f"Could not dismiss overlay: {e}", e)


class AcceptAlertHandler(ActionHandler):
    action_type = "ACCEPT_ALERT"

    def execute(self, ctx: ActionContext, params: None) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped("DryRun: would accept browser alert")
        try:
            text = ctx.live.accept_alert(ALERT_TIMEOUT_MS)
            return StepOutcome.executed(f"Accepted alert: '{text}'")
        except Exception as e:
            return StepOutcome.failed(f"Could not accept alert: {e}", e)


class DismissAlertHandler(ActionHandler):
    action_type = "DISMISS_ALERT"

    def execute(self, ctx: ActionContext, params: None) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped("DryRun: would dismiss browser alert")
        try:
            text = ctx.live.dismiss_alert(ALERT_TIMEOUT_MS)
            return StepOutcome.executed(f"Dismissed alert: '{text}'")
        except Exception as e:
            return StepOutcome.failed(f"Could not dismiss alert: {e}", e)


class SwitchToFrameHandler(ActionHandler):
    action_type = "SWITCH_TO_FRAME"
    params_type = SelectorParams

    def execute(self, ctx: ActionContext, params: SelectorParams) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped(f"DryRun: would switch to frame '{params.selector}'")
        try:
            ctx.live.switch_to_frame(params.selector)
            return StepOutcome.executed(f"Switched to frame: {params.selector}")
        except Exception as e:
            return StepOutcome.failed(
                f"Could not switch to frame '{params.selector}': {e}", e
            )


class SwitchToDefaultHandler(ActionHandler):
    action_type = "SWITCH_TO_DEFAULT"

    def execute(self, ctx: ActionContext, params: None) -> StepOutcome:
        if ctx.dry_run:
            return StepOutcome.skipped("DryRun: would switch to default content")
        try:
            ctx.live.switch_to_default()
            return StepOutcome.executed("Switched to default content")
        except Exception as e:
            return StepOutcome.failed(f"Could not switch to default content: {e}", e)
