"""Core data models for test-sentinel."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def parse_time(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _clamp(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return max(0.0, min(1.0, number))


class ConditionType(Enum):
    LOCATOR_NOT_FOUND = "LOCATOR_NOT_FOUND"
    WRONG_PAGE = "WRONG_PAGE"
    EXCEPTION = "EXCEPTION"
    TIMEOUT = "TIMEOUT"
    ASSERTION_FAILURE = "ASSERTION_FAILURE"
    NETWORK_ERROR = "NETWORK_ERROR"
    CUSTOM = "CUSTOM"

    @classmethod
    def parse(cls, value: Any) -> ConditionType:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown condition type: {value!r}") from None


class Category(Enum):
    OVERLAY = "OVERLAY"
    LOADING = "LOADING"
    STALE_DOM = "STALE_DOM"
    NAVIGATION = "NAVIGATION"
    INFRA = "INFRA"
    AUTH = "AUTH"
    TEST_DATA = "TEST_DATA"
    FLAKE = "FLAKE"
    APPLICATION_BUG = "APPLICATION_BUG"
    NAVIGATED_PAST = "NAVIGATED_PAST"
    STATE_ALREADY_SATISFIED = "STATE_ALREADY_SATISFIED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> Category:
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.UNKNOWN


class Outcome(Enum):
    CONTINUE = "CONTINUE"
    RETRY = "RETRY"
    SKIP = "SKIP"
    FAIL_WITH_CONTEXT = "FAIL_WITH_CONTEXT"
    INVESTIGATE = "INVESTIGATE"

    @classmethod
    def parse(cls, value: Any, default: Optional[Outcome] = None) -> Optional[Outcome]:
        if isinstance(value, cls):
            return value
        if value is None:
            return default
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return default


# Outcomes after which no further automated remediation round is attempted.
STOP_OUTCOMES = frozenset({
    Outcome.SKIP,
    Outcome.FAIL_WITH_CONTEXT,
    Outcome.CONTINUE,
    Outcome.INVESTIGATE,
})


class RiskLevel(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    def exceeds(self, ceiling: RiskLevel) -> bool:
        return self.rank > ceiling.rank

    @classmethod
    def parse(cls, value: Any) -> Optional[RiskLevel]:
        """Parse a wire value. Unrecognised tiers are treated as HIGH."""
        if isinstance(value, cls):
            return value
        if value is None or value == "":
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.HIGH


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


class InsightSource(Enum):
    LOCAL_CHECKER = "LOCAL_CHECKER"
    KNOWLEDGE_BASE = "KNOWLEDGE_BASE"
    REMOTE_ANALYSIS = "REMOTE_ANALYSIS"
    UNKNOWN_RECORDED = "UNKNOWN_RECORDED"
    FALLBACK_ERROR = "FALLBACK_ERROR"


class StepStatus(Enum):
    EXECUTED = "EXECUTED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"
    NOT_FOUND = "NOT_FOUND"


@dataclass(frozen=True)
class ConditionEvent:
    """Immutable snapshot of an unexpected condition during a test step."""

    condition_type: ConditionType
    message: str
    current_url: str = "unknown"
    expected_url: Optional[str] = None
    locator_strategy: Optional[str] = None
    locator_value: Optional[str] = None
    dom_snapshot: Optional[str] = None
    screenshot_base64: Optional[str] = None
    console_logs: tuple[str, ...] = ()
    prior_steps: tuple[str, ...] = ()
    stack_trace: Optional[str] = None
    meta: dict[str, str] = field(default_factory=dict)
    captured_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if self.condition_type is None:
            raise ValueError("condition_type is required")
        if self.message is None:
            raise ValueError("message is required")
        object.__setattr__(self, "console_logs", tuple(self.console_logs or ()))
        object.__setattr__(self, "prior_steps", tuple(self.prior_steps or ()))
        object.__setattr__(self, "meta", dict(self.meta or {}))
        if not self.current_url:
            object.__setattr__(self, "current_url", "unknown")

    def refreshed(self, current_url: str) -> ConditionEvent:
        """Return a fresh event for the new URL.

        Page captures (DOM, screenshot, console logs) belong to the old
        page and are dropped; identity fields carry over.
        """
        return replace(
            self,
            current_url=current_url,
            dom_snapshot=None,
            screenshot_base64=None,
            console_logs=(),
            captured_at=utcnow(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "conditionType": self.condition_type.value,
            "message": self.message,
            "currentUrl": self.current_url,
            "expectedUrl": self.expected_url,
            "locatorStrategy": self.locator_strategy,
            "locatorValue": self.locator_value,
            "domSnapshot": self.dom_snapshot,
            "screenshotBase64": self.screenshot_base64,
            "consoleLogs": list(self.console_logs),
            "priorSteps": list(self.prior_steps),
            "stackTrace": self.stack_trace,
            "meta": dict(self.meta),
            "capturedAt": format_time(self.captured_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConditionEvent:
        if "conditionType" not in data:
            raise ValueError("conditionType is required")
        if data.get("message") is None:
            raise ValueError("message is required")
        kwargs: dict[str, Any] = {}
        captured = parse_time(data.get("capturedAt"))
        if captured is not None:
            kwargs["captured_at"] = captured
        return cls(
            condition_type=ConditionType.parse(data["conditionType"]),
            message=str(data["message"]),
            current_url=data.get("currentUrl") or "unknown",
            expected_url=data.get("expectedUrl"),
            locator_strategy=data.get("locatorStrategy"),
            locator_value=data.get("locatorValue"),
            dom_snapshot=data.get("domSnapshot"),
            screenshot_base64=data.get("screenshotBase64"),
            console_logs=tuple(data.get("consoleLogs") or ()),
            prior_steps=tuple(data.get("priorSteps") or ()),
            stack_trace=data.get("stackTrace"),
            meta={str(k): str(v) for k, v in (data.get("meta") or {}).items()},
            **kwargs,
        )


@dataclass
class Step:
    """One corrective action inside a RemediationPlan."""

    action_type: str
    parameters: dict[str, Any] = field(default_factory=dict)
    description: str = ""
    confidence: float = 0.0
    risk: Optional[RiskLevel] = RiskLevel.LOW
    rationale: str = ""
    requires_verification: bool = False
    step_id: Optional[str] = None
    on_success: Optional[str] = None
    on_failure: Optional[str] = None

    def __post_init__(self) -> None:
        self.confidence = _clamp(self.confidence)

    def within(self, ceiling: RiskLevel) -> bool:
        """True when the step may run under the given risk ceiling."""
        return self.risk is None or not self.risk.exceeds(ceiling)

    def branch_target(self, status: StepStatus) -> Optional[str]:
        return self.on_success if status is StepStatus.EXECUTED else self.on_failure

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "actionType": self.action_type,
            "description": self.description,
            "confidence": self.confidence,
            "riskLevel": self.risk.value if self.risk else None,
            "rationale": self.rationale,
            "requiresVerification": self.requires_verification,
            "parameters": dict(self.parameters),
        }
        if self.step_id:
            data["id"] = self.step_id
        if self.on_success:
            data["onSuccess"] = self.on_success
        if self.on_failure:
            data["onFailure"] = self.on_failure
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Step:
        params = dict(data.get("parameters") or {})
        # Branch addressing may travel inside the parameter map; a top-level key wins.
        nested = {key: params.pop(key, None) for key in ("id", "onSuccess", "onFailure")}
        step_id = data.get("id") or nested["id"]
        on_success = data.get("onSuccess") or nested["onSuccess"]
        on_failure = data.get("onFailure") or nested["onFailure"]
        action_type = data.get("actionType") or data.get("type")
        if not action_type:
            raise ValueError("actionType is required")
        return cls(
            action_type=str(action_type).strip().upper(),
            parameters=params,
            description=data.get("description") or "",
            confidence=data.get("confidence", 0.0),
            risk=RiskLevel.parse(data.get("riskLevel")),
            rationale=data.get("rationale") or "",
            requires_verification=bool(data.get("requiresVerification", False)),
            step_id=step_id,
            on_success=on_success,
            on_failure=on_failure,
        )


@dataclass
class RemediationPlan:
    steps: list[Step] = field(default_factory=list)
    summary: str = ""
    confidence: float = 0.0
    requires_human: bool = False

    def __post_init__(self) -> None:
        self.confidence = _clamp(self.confidence)

    def __len__(self) -> int:
        return len(self.steps)

    def at_or_below(self, ceiling: RiskLevel) -> list[Step]:
        return [s for s in self.steps if s.risk is not None and not s.risk.exceeds(ceiling)]

    def low_risk_steps(self) -> list[Step]:
        return [s for s in self.steps if s.risk is RiskLevel.LOW]

    def to_dict(self) -> dict[str, Any]:
        return {
            "actions": [s.to_dict() for s in self.steps],
            "planSummary": self.summary,
            "planConfidence": self.confidence,
            "requiresHuman": self.requires_human,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemediationPlan:
        return cls(
            steps=[Step.from_dict(a) for a in data.get("actions") or []],
            summary=data.get("planSummary") or "",
            confidence=data.get("planConfidence", 0.0),
            requires_human=bool(data.get("requiresHuman", False)),
        )


@dataclass
class ContinueContext:
    """Why it is safe to continue, and where to resume."""

    reason: str = ""
    observed_state: str = ""
    resume_hint: str = ""
    caveats: str = ""
    noteworthy: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "continueReason": self.reason,
            "observedState": self.observed_state,
            "resumeFromStepHint": self.resume_hint,
            "caveats": self.caveats,
            "noteworthy": self.noteworthy,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContinueContext:
        return cls(
            reason=data.get("continueReason") or "",
            observed_state=data.get("observedState") or "",
            resume_hint=data.get("resumeFromStepHint") or "",
            caveats=data.get("caveats") or "",
            noteworthy=bool(data.get("noteworthy", False)),
        )


@dataclass
class Insight:
    """Structured diagnosis plus suggested remedy for a ConditionEvent."""

    category: Category
    root_cause: str
    confidence: float
    suggested_outcome: Outcome = Outcome.INVESTIGATE
    is_transient: bool = False
    evidence: list[str] = field(default_factory=list)
    plan: Optional[RemediationPlan] = None
    continue_context: Optional[ContinueContext] = None
    condition_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    resolved_from_pattern: Optional[str] = None
    source: Optional[InsightSource] = None
    raw_response: str = ""
    tokens_used: int = 0
    latency_ms: int = 0
    analyzed_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.confidence = _clamp(self.confidence)
        if self.suggested_outcome is Outcome.CONTINUE:
            self.plan = None

    @property
    def has_plan(self) -> bool:
        return self.plan is not None and len(self.plan.steps) > 0

    @property
    def is_local_resolution(self) -> bool:
        return self.resolved_from_pattern is not None

    @classmethod
    def error(cls, reason: str, latency_ms: int = 0) -> Insight:
        return cls(
            category=Category.UNKNOWN,
            root_cause=f"TestSentinel analysis failed: {reason}",
            confidence=0.0,
            suggested_outcome=Outcome.INVESTIGATE,
            source=InsightSource.FALLBACK_ERROR,
            latency_ms=latency_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "conditionId": self.condition_id,
            "conditionCategory": self.category.value,
            "rootCause": self.root_cause,
            "confidence": self.confidence,
            "evidenceHighlights": list(self.evidence),
            "isTransient": self.is_transient,
            "suggestedTestOutcome": self.suggested_outcome.value,
            "continueContext": self.continue_context.to_dict() if self.continue_context else None,
            "actionPlan": self.plan.to_dict() if self.plan else None,
            "resolvedFromPattern": self.resolved_from_pattern,
            "source": self.source.value if self.source else None,
            "tokensUsed": self.tokens_used,
            "latencyMs": self.latency_ms,
            "analyzedAt": format_time(self.analyzed_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], **overrides: Any) -> Insight:
        """Build an Insight from the JSON document schema.

        Raises:
            ValueError: If the document is not an object.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Insight document must be an object, got {type(data).__name__}")
        plan_data = data.get("actionPlan")
        continue_data = data.get("continueContext")
        kwargs: dict[str, Any] = dict(
            category=Category.parse(data.get("conditionCategory")),
            root_cause=data.get("rootCause") or "",
            confidence=data.get("confidence", 0.0),
            suggested_outcome=Outcome.parse(
                data.get("suggestedTestOutcome"), Outcome.INVESTIGATE
            ),
            is_transient=bool(data.get("isTransient", False)),
            evidence=[str(e) for e in data.get("evidenceHighlights") or []],
            plan=RemediationPlan.from_dict(plan_data) if isinstance(plan_data, dict) else None,
            continue_context=(
                ContinueContext.from_dict(continue_data)
                if isinstance(continue_data, dict) else None
            ),
        )
        if data.get("conditionId"):
            kwargs["condition_id"] = str(data["conditionId"])
        kwargs.update(overrides)
        return cls(**kwargs)


@dataclass(frozen=True)
class StepOutcome:
    """Result of one plan step."""

    status: StepStatus
    message: str
    error: Optional[BaseException] = None
    outcome: Optional[Outcome] = None
    action_type: Optional[str] = None
    step_id: Optional[str] = None

    @classmethod
    def executed(cls, message: str, outcome: Optional[Outcome] = None) -> StepOutcome:
        return cls(StepStatus.EXECUTED, message, outcome=outcome)

    @classmethod
    def skipped(cls, message: str, outcome: Optional[Outcome] = None) -> StepOutcome:
        return cls(StepStatus.SKIPPED, message, outcome=outcome)

    @classmethod
    def failed(
        cls,
        message: str,
        error: Optional[BaseException] = None,
        outcome: Optional[Outcome] = None,
    ) -> StepOutcome:
        return cls(StepStatus.FAILED, message, error=error, outcome=outcome)

    @classmethod
    def not_found(cls, message: str) -> StepOutcome:
        return cls(StepStatus.NOT_FOUND, message)

    @property
    def was_executed(self) -> bool:
        return self.status is StepStatus.EXECUTED

    def for_step(self, step: Step) -> StepOutcome:
        return replace(self, action_type=step.action_type, step_id=step.step_id)

    def __str__(self) -> str:
        return f"[{self.status.value}] {self.action_type}: {self.message}"


@dataclass(frozen=True)
class CascadeRound:
    """One diagnose -> remediate -> verify cycle."""

    depth: int
    source: InsightSource
    insight: Insight
    outcomes: tuple[StepOutcome, ...] = ()
    resolved: bool = False
    checker_id: Optional[str] = None
    guard_tripped: bool = False

    @property
    def outcome_override(self) -> Optional[Outcome]:
        """Last outcome set by a handler, if any."""
        for result in reversed(self.outcomes):
            if result.outcome is not None:
                return result.outcome
        return None

    @property
    def effective_outcome(self) -> Outcome:
        """Outcome reported for the round; the cascade stops on the insight's suggestion."""
        return self.outcome_override or self.insight.suggested_outcome


@dataclass(frozen=True)
class CascadeResult:
    """Ordered, append-only history of cascade rounds."""

    rounds: tuple[CascadeRound, ...] = ()

    def __iter__(self):
        return iter(self.rounds)

    def __len__(self) -> int:
        return len(self.rounds)

    @property
    def depth(self) -> int:
        return len(self.rounds)

    @property
    def final_round(self) -> Optional[CascadeRound]:
        return self.rounds[-1] if self.rounds else None

    @property
    def final_insight(self) -> Optional[Insight]:
        return self.rounds[-1].insight if self.rounds else None

    @property
    def resolved(self) -> bool:
        return bool(self.rounds) and self.rounds[-1].resolved
