"""
Core data models for the PracticeGuard notification triage engine.

A ``Notification`` is the intake record about a registered practitioner.
The engine reads it and derives an ``AIAnalysis``; the triage workflow turns
that analysis (and any reviewer override) into a ``TriageDecision``.

Notifications, analyses and decisions are frozen.  Status changes on a
notification produce a new instance and may only move forward through the
lifecycle.

DISCLAIMER: Outputs are decision-support recommendations for a human
triage team.  They are not findings about any practitioner.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class InvalidInputError(ValueError):
    """Raised when a caller supplies a malformed notification."""
    pass


class StatusRegressionError(ValueError):
    """Raised when a notification status would move backwards."""
    pass


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ReferrerType(str, enum.Enum):
    """Who raised the notification."""

    COLLEAGUE = "colleague"
    EMPLOYER = "employer"
    MINISTRY = "ministry"
    ACC = "acc"
    PATIENT = "patient"
    OTHER = "other"


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Category(str, enum.Enum):
    CONDUCT = "conduct"
    COMPETENCE = "competence"
    HEALTH = "health"
    OTHER = "other"


class NotificationStatus(str, enum.Enum):
    """Lifecycle status of a notification.

    Declaration order is the lifecycle order.  A notification never moves
    to an earlier status.
    """

    NEW = "new"
    AWAITING_RESPONSE = "awaiting_response"
    UNDER_REVIEW = "under_review"
    DECIDED = "decided"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER[self]


_STATUS_ORDER = {status: idx for idx, status in enumerate(NotificationStatus)}


class NTTOutcome(str, enum.Enum):
    """Dispositions the notification triage team can reach.

    Listed from least to most restrictive.
    """

    NO_ACTION = "no_action"
    EDUCATION = "education"
    REFER_COUNCIL = "refer_council"
    REFER_PCC = "refer_pcc"
    TEMPORARY_LIMITATIONS = "temporary_limitations"


class RiskLevel(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DecidedBy(str, enum.Enum):
    AI = "ai"
    HUMAN = "human"
    CONSENSUS = "consensus"


class WorkflowStep(str, enum.Enum):
    """Steps of the triage workflow.

    ``ANALYSIS`` is initial, ``DECISION`` is terminal.
    """

    ANALYSIS = "analysis"
    REVIEW = "review"
    DECISION = "decision"


# ---------------------------------------------------------------------------
# Intake models
# ---------------------------------------------------------------------------

def _new_notification_id() -> str:
    return f"NOT-{uuid.uuid4().hex[:12].upper()}"


class Notification(BaseModel):
    """A professional-conduct notification about a practitioner.

    Frozen once created.  Use ``with_status()`` to obtain a copy with an
    advanced lifecycle status.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=_new_notification_id,
        description="Unique notification identifier.",
    )
    referrer: str = Field(
        ...,
        min_length=1,
        description="Name of the person or body raising the notification.",
    )
    referrer_type: ReferrerType = Field(
        ...,
        description="Kind of referrer.  Employer and ministry referrals carry institutional weight.",
    )
    doctor_name: str = Field(
        ...,
        min_length=1,
        description="Name of the practitioner the notification concerns.",
    )
    registration_number: str = Field(
        ...,
        min_length=1,
        description="Practitioner's registration number.",
    )
    incident_date: date = Field(
        ...,
        description="Date of the reported incident.",
    )
    description: str = Field(
        ...,
        description="Free-text account of the concern.  May be empty.",
    )
    severity: Severity = Field(..., description="Severity reported by the referrer.")
    category: Category = Field(..., description="Category of concern.")
    urgency: bool = Field(..., description="Whether the referrer marked the notification urgent.")
    status: NotificationStatus = Field(
        default=NotificationStatus.NEW,
        description="Lifecycle status.  Only moves forward.",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="UTC timestamp when the notification was received.",
    )

    def with_status(self, status: NotificationStatus) -> "Notification":
        """Return a copy of this notification with ``status`` applied.

        Raises:
            StatusRegressionError: If ``status`` is earlier in the lifecycle
                than the current status.
        """
        if status.rank < self.status.rank:
            raise StatusRegressionError(
                f"Notification {self.id} cannot move from {self.status.value} "
                f"back to {status.value}."
            )
        return self.model_copy(update={"status": status})


class DoctorResponse(BaseModel):
    """The practitioner's response to a notification.

    Receiving one satisfies the natural justice requirement that the
    practitioner is heard before any risk analysis is run.
    """

    notification_id: str = Field(..., min_length=1)
    response: str = Field(default="")
    received_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    documents: Optional[list[str]] = Field(default=None)


def parse_notification(data: dict[str, Any]) -> Notification:
    """Validate a mapping into a ``Notification``.

    Args:
        data: Raw notification fields, e.g. from an intake form.

    Returns:
        The validated notification.

    Raises:
        InvalidInputError: If a field is missing or an enumerated field
            carries an unknown value.
    """
    if not isinstance(data, dict):
        raise InvalidInputError(
            f"Notification data must be a mapping, got {type(data).__name__}."
        )
    try:
        return Notification.model_validate(data)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid notification: {exc}") from exc


# ---------------------------------------------------------------------------
# Analysis and decision models
# ---------------------------------------------------------------------------

class RiskAssessment(BaseModel):
    """Weighted risk sub-scores and the overall score, each in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    public_safety_risk: float = Field(..., ge=0, le=1)
    reputational_risk: float = Field(..., ge=0, le=1)
    recurrence_risk: float = Field(..., ge=0, le=1)
    overall_risk: float = Field(..., ge=0, le=1)


class AIAnalysis(BaseModel):
    """Derived analysis of one notification.

    Recomputed for every request and never mutated; sequence fields are
    tuples.  ``similar_cases`` is advisory and has no bearing on the
    recommendation.
    """

    model_config = ConfigDict(frozen=True)

    risk_assessment: RiskAssessment
    key_factors: tuple[str, ...] = Field(
        default=(),
        description="Detected risk factors in detection order.",
    )
    similar_cases: tuple[str, ...] = Field(default=())
    recommended_outcome: NTTOutcome
    confidence: float = Field(..., ge=0, le=0.95)
    reasoning_chain: tuple[str, ...] = Field(
        default=(),
        description="Ordered, reproducible justification steps.",
    )


class AIRecommendation(BaseModel):
    """Snapshot of the engine's recommendation kept alongside a human decision."""

    model_config = ConfigDict(frozen=True)

    outcome: NTTOutcome
    reasoning: str
    confidence: float = Field(..., ge=0, le=1)


class TriageDecision(BaseModel):
    """Final triage record handed back to the caller.

    ``notification_id`` is a reference only; the caller correlates the
    decision back to its notification and marks that notification decided.
    """

    model_config = ConfigDict(frozen=True)

    notification_id: str = Field(..., min_length=1)
    outcome: NTTOutcome
    reasoning: str
    confidence: float = Field(..., ge=0, le=1)
    risk_level: RiskLevel
    recommendations: tuple[str, ...] = Field(default=())
    decided_by: DecidedBy
    decided_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    ai_recommendation: Optional[AIRecommendation] = Field(
        default=None,
        description="The engine's original recommendation, attached when a reviewer supplied their own reasoning.",
    )

    @property
    def overrides_ai(self) -> bool:
        """Whether the final outcome differs from the attached AI recommendation."""
        return (
            self.ai_recommendation is not None
            and self.ai_recommendation.outcome != self.outcome
        )
