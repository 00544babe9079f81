"""ActionHandler base, execution context and typed action parameters."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import MISSING, dataclass, field, fields
from typing import Any, Callable, Optional

from sentinel_agent.core.errors import MissingParameterError
from sentinel_agent.core.models import (
    ConditionEvent,
    Insight,
    RiskLevel,
    Step,
    StepOutcome,
)
from sentinel_agent.drivers.base import LiveState

logger = logging.getLogger(__name__)


@dataclass
class ActionContext:
    """Everything a handler may look at while performing one step."""

    live: LiveState
    step: Step
    insight: Insight
    event: ConditionEvent
    prior_attempts: tuple[StepOutcome, ...] = ()
    max_risk: RiskLevel = RiskLevel.LOW
    dry_run: bool = False

    def was_already_attempted(self, action_type: str) -> bool:
        return any(
            o.was_executed and (o.action_type == action_type or action_type in o.message)
            for o in self.prior_attempts
        )


# ── Typed parameters ──────────────────────────────────────────────────


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _to_int(value: Any) -> int:
    return int(float(value))


_COERCE: dict[type, Callable[[Any], Any]] = {str: str, int: _to_int, bool: _to_bool}


def param(key: str, kind: type = str, default: Any = MISSING) -> Any:
    """Declare a parameter field read from the wire key ``key``."""
    return field(default=default, metadata={"key": key, "kind": kind})


def parse_params(params_type: type, raw: dict[str, Any]) -> Any:
    """Convert a wire parameter map into a typed parameter object.

    Values that cannot be coerced fall back to the field default.

    Raises:
        MissingParameterError: If a required key is absent or unusable.
    """
    values: dict[str, Any] = {}
    for f in fields(params_type):
        key = f.metadata.get("key", f.name)
        kind = f.metadata.get("kind", str)
        value = raw.get(key)
        if value is not None:
            try:
                values[f.name] = _COERCE[kind](value)
                continue
            except (TypeError, ValueError):
                logger.debug("Ignoring unusable %s=%r", key, value)
        if f.default is MISSING:
            raise MissingParameterError(key)
    return params_type(**values)


@dataclass
class SelectorParams:
    selector: str = param("selector")


# ── Handler ───────────────────────────────────────────────────────────


class ActionHandler(ABC):
    """Performs one action type.

    Handlers must honour ``ctx.dry_run`` by returning a SKIPPED outcome with
    no side effects, and should turn driver errors into FAILED outcomes.
    One instance serves every plan, so handlers keep no per-call state.
    """

    action_type: str = ""
    params_type: Optional[type] = None

    def handle(self, ctx: ActionContext) -> StepOutcome:
        if self.params_type is None:
            return self.execute(ctx, None)
        try:
            params = parse_params(self.params_type, ctx.step.parameters)
        except MissingParameterError as e:
            return StepOutcome.skipped(f"No '{e.key}' parameter for {self.action_type}")
        return self.execute(ctx, params)

    @abstractmethod
    def execute(self, ctx: ActionContext, params: Any) -> StepOutcome: ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.action_type}>"
