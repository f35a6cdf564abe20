"""
Decision Transparency Report Generator.

Summarises a triage decision for the committee that acts on it: the outcome,
who decided it, the engine's recommendation when a reviewer overrode or
annotated it, the reasoning chain, and a timeline of the notification's
audited steps.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from practiceguard.audit import AuditEventType, AuditLog
from practiceguard.models import AIAnalysis, TriageDecision
from practiceguard.reasoning import OUTCOME_DESCRIPTIONS


_EVENT_DESCRIPTIONS = {
    AuditEventType.NOTIFICATION_RECEIVED: "Notification received.",
    AuditEventType.STATUS_CHANGED: "Status changed.",
    AuditEventType.DOCTOR_RESPONSE_RECORDED: "Practitioner response received.",
    AuditEventType.ANALYSIS_COMPLETED: "Risk analysis completed.",
    AuditEventType.OUTCOME_SELECTED: "Reviewer selected an outcome.",
    AuditEventType.DECISION_FINALIZED: "Decision finalized.",
    AuditEventType.AI_RECOMMENDATION_OVERRIDDEN: "Reviewer departed from the AI recommendation.",
}


class DecisionReport:
    """A structured transparency report for one triage decision."""

    def __init__(
        self,
        decision: TriageDecision,
        reasoning_chain: list[str],
        timeline: list[dict[str, str]],
        generated_at: str,
    ) -> None:
        self.decision = decision
        self.reasoning_chain = reasoning_chain
        self.timeline = timeline
        self.generated_at = generated_at

    @property
    def overridden(self) -> bool:
        return self.decision.overrides_ai

    def to_dict(self) -> dict[str, Any]:
        """Serialize the report to a dictionary."""
        decision = self.decision
        ai = decision.ai_recommendation
        return {
            "report_type": "Triage Decision Report",
            "disclaimer": (
                "AI recommendations in this report are decision support for the "
                "notification triage team. They do not constitute a finding "
                "about the practitioner."
            ),
            "notification_id": decision.notification_id,
            "outcome": decision.outcome.value,
            "outcome_description": OUTCOME_DESCRIPTIONS[decision.outcome],
            "decided_by": decision.decided_by.value,
            "decided_at": decision.decided_at.isoformat(),
            "risk_level": decision.risk_level.value,
            "confidence": decision.confidence,
            "reasoning": decision.reasoning,
            "recommendations": list(decision.recommendations),
            "ai_recommendation": None if ai is None else {
                "outcome": ai.outcome.value,
                "outcome_description": OUTCOME_DESCRIPTIONS[ai.outcome],
                "reasoning": ai.reasoning,
                "confidence": ai.confidence,
            },
            "overridden": self.overridden,
            "reasoning_chain": self.reasoning_chain,
            "timeline": self.timeline,
            "generated_at": self.generated_at,
        }

    def __repr__(self) -> str:
        return (
            f"DecisionReport(notification_id={self.decision.notification_id}, "
            f"outcome={self.decision.outcome.value}, overridden={self.overridden})"
        )


def generate_decision_report(
    decision: TriageDecision,
    analysis: Optional[AIAnalysis] = None,
    audit_log: Optional[AuditLog] = None,
) -> DecisionReport:
    """Generate a transparency report for a decision.

    Args:
        decision: The finalized decision.
        analysis: The analysis it was based on, if still available.
        audit_log: Log to draw the notification's timeline from.

    Returns:
        A ``DecisionReport`` ready for committee review.
    """
    reasoning = list(analysis.reasoning_chain) if analysis is not None else [
        decision.reasoning
    ]
    timeline = _build_timeline(decision.notification_id, audit_log)

    return DecisionReport(
        decision=decision,
        reasoning_chain=reasoning,
        timeline=timeline,
        generated_at=datetime.now(timezone.utc).isoformat(),
    )


def _build_timeline(
    notification_id: str, audit_log: Optional[AuditLog]
) -> list[dict[str, str]]:
    """Chronological list of the notification's audited events."""
    if audit_log is None:
        return []

    events: list[dict[str, str]] = []
    for entry in audit_log.query(notification_id=notification_id):
        description = _EVENT_DESCRIPTIONS[entry.event_type]
        if entry.event_type == AuditEventType.STATUS_CHANGED:
            description = (
                f"Status changed from {entry.metadata.get('from')} "
                f"to {entry.metadata.get('to')}."
            )
        events.append({
            "event": entry.event_type.value,
            "timestamp": entry.timestamp.isoformat(),
            "actor": entry.actor_id,
            "description": description,
        })
    return events
