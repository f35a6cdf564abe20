"""
Human-in-the-Loop Triage Workflow.

Sequences one notification through the triage steps as an explicit state
machine:

    ANALYSIS -> REVIEW -> DECISION

* ``run_analysis()`` moves ANALYSIS to REVIEW.  It is refused until the
  practitioner has had the opportunity to respond (natural justice), and it
  invokes the engine exactly once.
* In REVIEW the reviewer may change the selected outcome and add their own
  reasoning.  The selection is seeded with the engine's recommendation.
* ``finalize()`` moves REVIEW to DECISION and returns the ``TriageDecision``.
  Finalizing without a selected outcome raises ``MissingSelectionError`` and
  leaves the workflow in REVIEW, so the caller can prompt again.

There is no path back from REVIEW to ANALYSIS and nothing leaves DECISION.
Each workflow instance handles a single notification, once.  Instances share
no state, so many notifications can be triaged side by side with one
workflow each.
"""

from __future__ import annotations

import logging
from typing import Optional

from practiceguard import risk_factors
from practiceguard.analysis import REASONING_SEPARATOR, analyze_notification
from practiceguard.audit import AuditEventType, AuditLog
from practiceguard.config import DEFAULT_POLICY, TriagePolicy
from practiceguard.models import (
    AIAnalysis,
    AIRecommendation,
    DecidedBy,
    DoctorResponse,
    InvalidInputError,
    Notification,
    NTTOutcome,
    TriageDecision,
    WorkflowStep,
)
from practiceguard.scoring import map_overall_risk_to_level
from practiceguard.similar_cases import SimilarCaseFinder

logger = logging.getLogger(__name__)

PREVIOUS_NOTIFICATIONS_RECOMMENDATION = "Review previous notifications"


# ---------------------------------------------------------------------------
# Valid state transitions
# ---------------------------------------------------------------------------

_VALID_TRANSITIONS: dict[WorkflowStep, set[WorkflowStep]] = {
    WorkflowStep.ANALYSIS: {WorkflowStep.REVIEW},
    WorkflowStep.REVIEW: {WorkflowStep.DECISION},
    WorkflowStep.DECISION: set(),  # terminal state
}


# ---------------------------------------------------------------------------
# Workflow errors
# ---------------------------------------------------------------------------

class InvalidTransitionError(Exception):
    """Raised when an action is not permitted in the current step."""
    pass


class DoctorResponsePendingError(Exception):
    """Raised when analysis is requested before the practitioner has responded."""
    pass


class MissingSelectionError(Exception):
    """Raised when finalizing without a selected outcome.

    Recoverable: select an outcome and call ``finalize()`` again.
    """
    pass


class NotificationMismatchError(Exception):
    """Raised when a response refers to a different notification."""
    pass


# ---------------------------------------------------------------------------
# Triage workflow
# ---------------------------------------------------------------------------

class TriageWorkflow:
    """Triage state machine for a single notification.

    Args:
        notification: The notification under triage.  Read only.
        policy: Thresholds and caps for the engine and the decision.
        case_finder: Similar-case source passed to the engine.
        audit_log: Optional log receiving an entry for every action.
        reviewer_id: Identifier recorded against reviewer actions.
    """

    def __init__(
        self,
        notification: Notification,
        policy: TriagePolicy = DEFAULT_POLICY,
        case_finder: Optional[SimilarCaseFinder] = None,
        audit_log: Optional[AuditLog] = None,
        reviewer_id: str = "reviewer",
    ) -> None:
        self._notification = notification
        self._policy = policy
        self._case_finder = case_finder
        self._audit_log = audit_log
        self._reviewer_id = reviewer_id

        self._step = WorkflowStep.ANALYSIS
        self._doctor_response: Optional[DoctorResponse] = None
        self._analysis: Optional[AIAnalysis] = None
        self._selected_outcome: Optional[NTTOutcome] = None
        self._human_reasoning = ""
        self._decision: Optional[TriageDecision] = None

    # -- read-only state --

    @property
    def notification(self) -> Notification:
        return self._notification

    @property
    def step(self) -> WorkflowStep:
        return self._step

    @property
    def analysis(self) -> Optional[AIAnalysis]:
        """The engine's analysis, available from REVIEW onwards."""
        return self._analysis

    @property
    def selected_outcome(self) -> Optional[NTTOutcome]:
        return self._selected_outcome

    @property
    def human_reasoning(self) -> str:
        return self._human_reasoning

    @property
    def doctor_response(self) -> Optional[DoctorResponse]:
        return self._doctor_response

    @property
    def decision(self) -> Optional[TriageDecision]:
        return self._decision

    # -- helpers --

    def _validate_transition(self, target: WorkflowStep) -> None:
        allowed = _VALID_TRANSITIONS.get(self._step, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition from {self._step.value} to {target.value}. "
                f"Allowed transitions: {[s.value for s in allowed]}"
            )

    def _require_step(self, step: WorkflowStep, action: str) -> None:
        if self._step != step:
            raise InvalidTransitionError(
                f"Cannot {action} during the {self._step.value} step; "
                f"only during {step.value}."
            )

    def _emit_audit(
        self,
        event_type: AuditEventType,
        actor_id: str = "SYSTEM",
        actor_role: str = "SYSTEM",
        metadata: dict | None = None,
    ) -> None:
        if self._audit_log is None:
            return
        self._audit_log.record(
            event_type,
            self._notification.id,
            actor_id=actor_id,
            actor_role=actor_role,
            metadata=metadata,
        )

    # -- analysis step --

    def record_doctor_response(self, response: DoctorResponse) -> None:
        """Record the practitioner's response, satisfying the natural justice gate.

        Raises:
            InvalidTransitionError: If analysis has already run.
            NotificationMismatchError: If the response is for another notification.
        """
        self._require_step(WorkflowStep.ANALYSIS, "record a doctor response")
        if response.notification_id != self._notification.id:
            raise NotificationMismatchError(
                f"Response is for notification '{response.notification_id}', "
                f"not '{self._notification.id}'."
            )
        self._doctor_response = response
        self._emit_audit(
            AuditEventType.DOCTOR_RESPONSE_RECORDED,
            metadata={
                "received_at": response.received_at.isoformat(),
                "document_count": len(response.documents or []),
            },
        )

    def run_analysis(self, doctor_response_received: bool = False) -> AIAnalysis:
        """Run the engine and move to REVIEW.

        Args:
            doctor_response_received: Caller's confirmation that the
                practitioner has responded.  Not needed if a response was
                recorded with ``record_doctor_response()``.

        Returns:
            The analysis, also available as ``self.analysis``.

        Raises:
            InvalidTransitionError: If not in the ANALYSIS step.
            DoctorResponsePendingError: If no response has been received.
        """
        self._validate_transition(WorkflowStep.REVIEW)

        if not doctor_response_received and self._doctor_response is None:
            logger.warning(
                "Analysis refused for notification %s: awaiting doctor response",
                self._notification.id,
            )
            raise DoctorResponsePendingError(
                f"Notification {self._notification.id}: the practitioner must "
                "have the opportunity to respond before analysis can run."
            )

        analysis = analyze_notification(
            self._notification, self._policy, self._case_finder
        )
        self._analysis = analysis
        self._selected_outcome = analysis.recommended_outcome
        self._step = WorkflowStep.REVIEW

        self._emit_audit(
            AuditEventType.ANALYSIS_COMPLETED,
            actor_id="ENGINE",
            actor_role="ENGINE",
            metadata={
                "recommended_outcome": analysis.recommended_outcome.value,
                "confidence": analysis.confidence,
                "overall_risk": analysis.risk_assessment.overall_risk,
                "key_factors": list(analysis.key_factors),
                "new_step": WorkflowStep.REVIEW.value,
            },
        )
        logger.info(
            "Notification %s analysed: recommended %s (confidence %.2f)",
            self._notification.id,
            analysis.recommended_outcome.value,
            analysis.confidence,
        )
        return analysis

    # -- review step --

    def select_outcome(self, outcome: NTTOutcome) -> None:
        """Choose the outcome to finalize with."""
        self._require_step(WorkflowStep.REVIEW, "select an outcome")
        try:
            self._selected_outcome = NTTOutcome(outcome)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown outcome: {outcome!r}") from exc
        self._emit_audit(
            AuditEventType.OUTCOME_SELECTED,
            actor_id=self._reviewer_id,
            actor_role="REVIEWER",
            metadata={"outcome": self._selected_outcome.value},
        )

    def clear_selection(self) -> None:
        """Withdraw the current outcome selection."""
        self._require_step(WorkflowStep.REVIEW, "clear the selection")
        self._selected_outcome = None

    def set_human_reasoning(self, reasoning: str) -> None:
        """Record the reviewer's own reasoning.  Any non-empty text counts."""
        self._require_step(WorkflowStep.REVIEW, "add reasoning")
        self._human_reasoning = reasoning

    def finalize(self) -> TriageDecision:
        """Build the final decision and move to DECISION.

        With reviewer reasoning the decision is attributed to the human,
        carries the override confidence and embeds a snapshot of the AI
        recommendation.  Without it the decision is attributed to the AI and
        carries the engine's reasoning chain and confidence.

        Raises:
            InvalidTransitionError: If not in the REVIEW step.
            MissingSelectionError: If no outcome is selected.  The workflow
                stays in REVIEW.
        """
        self._validate_transition(WorkflowStep.DECISION)
        analysis = self._analysis

        if self._selected_outcome is None:
            logger.warning(
                "Finalize refused for notification %s: no outcome selected",
                self._notification.id,
            )
            raise MissingSelectionError(
                "Select an outcome before finalizing the triage decision."
            )

        ai_reasoning = REASONING_SEPARATOR.join(analysis.reasoning_chain)

        # The recommendation is the last step of the reasoning chain.
        recommendations = analysis.reasoning_chain[-1:]
        if risk_factors.PATTERN_OF_BEHAVIOR in analysis.key_factors:
            recommendations = (PREVIOUS_NOTIFICATIONS_RECOMMENDATION,) + recommendations

        if self._human_reasoning:
            decided_by = DecidedBy.HUMAN
            reasoning = self._human_reasoning
            confidence = self._policy.human_override_confidence
            ai_recommendation = AIRecommendation(
                outcome=analysis.recommended_outcome,
                reasoning=ai_reasoning,
                confidence=analysis.confidence,
            )
        else:
            decided_by = DecidedBy.AI
            reasoning = ai_reasoning
            confidence = analysis.confidence
            ai_recommendation = None

        decision = TriageDecision(
            notification_id=self._notification.id,
            outcome=self._selected_outcome,
            reasoning=reasoning,
            confidence=confidence,
            risk_level=map_overall_risk_to_level(
                analysis.risk_assessment.overall_risk, self._policy
            ),
            recommendations=recommendations,
            decided_by=decided_by,
            ai_recommendation=ai_recommendation,
        )
        self._decision = decision
        self._step = WorkflowStep.DECISION

        actor_id, actor_role = (
            (self._reviewer_id, "REVIEWER") if decided_by == DecidedBy.HUMAN
            else ("ENGINE", "ENGINE")
        )
        self._emit_audit(
            AuditEventType.DECISION_FINALIZED,
            actor_id=actor_id,
            actor_role=actor_role,
            metadata={
                "outcome": decision.outcome.value,
                "decided_by": decision.decided_by.value,
                "confidence": decision.confidence,
                "risk_level": decision.risk_level.value,
                "new_step": WorkflowStep.DECISION.value,
            },
        )
        if decision.outcome != analysis.recommended_outcome:
            self._emit_audit(
                AuditEventType.AI_RECOMMENDATION_OVERRIDDEN,
                actor_id=self._reviewer_id,
                actor_role="REVIEWER",
                metadata={
                    "recommended_outcome": analysis.recommended_outcome.value,
                    "final_outcome": decision.outcome.value,
                },
            )
        logger.info(
            "Notification %s decided: %s by %s",
            self._notification.id,
            decision.outcome.value,
            decision.decided_by.value,
        )
        return decision
