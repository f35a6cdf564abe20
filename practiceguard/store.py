"""
Notification Store -- In-Memory Intake Register.

Holds the notifications awaiting triage and the decisions reached on them.
The store owns notification status: it moves a notification to
``under_review`` when triage starts and to ``decided`` when a decision is
recorded, and never moves a status backwards.

Notifications are frozen, so every status change replaces the stored
instance with an updated copy.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from practiceguard.audit import AuditEventType, AuditLog
from practiceguard.models import (
    Category,
    Notification,
    NotificationStatus,
    ReferrerType,
    Severity,
    TriageDecision,
)

logger = logging.getLogger(__name__)


class NotificationStore:
    """In-memory register of notifications and their triage decisions."""

    def __init__(self, audit_log: Optional[AuditLog] = None) -> None:
        self._notifications: dict[str, Notification] = {}
        self._decisions: list[TriageDecision] = []
        self._audit_log = audit_log

    def _emit_audit(
        self, event_type: AuditEventType, notification_id: str, metadata: dict
    ) -> None:
        if self._audit_log is not None:
            self._audit_log.record(event_type, notification_id, metadata=metadata)

    # -- intake --

    def add(self, notification: Notification) -> Notification:
        """Register an existing notification.

        Raises:
            ValueError: If a notification with the same ID is already stored.
        """
        if notification.id in self._notifications:
            raise ValueError(f"Notification '{notification.id}' already registered.")
        self._notifications[notification.id] = notification
        self._emit_audit(
            AuditEventType.NOTIFICATION_RECEIVED,
            notification.id,
            {
                "referrer": notification.referrer,
                "referrer_type": notification.referrer_type.value,
                "doctor_name": notification.doctor_name,
                "registration_number": notification.registration_number,
                "severity": notification.severity.value,
                "category": notification.category.value,
                "urgency": notification.urgency,
            },
        )
        logger.info("Notification %s received", notification.id)
        return notification

    def submit(
        self,
        referrer: str,
        referrer_type: ReferrerType,
        doctor_name: str,
        registration_number: str,
        incident_date: date,
        description: str,
        severity: Severity,
        category: Category,
        urgency: bool,
        created_at: Optional[datetime] = None,
    ) -> Notification:
        """Create a ``new`` notification from intake fields and register it."""
        fields = dict(
            referrer=referrer,
            referrer_type=referrer_type,
            doctor_name=doctor_name,
            registration_number=registration_number,
            incident_date=incident_date,
            description=description,
            severity=severity,
            category=category,
            urgency=urgency,
        )
        if created_at is not None:
            fields["created_at"] = created_at
        return self.add(Notification(**fields))

    # -- lookups --

    def get(self, notification_id: str) -> Notification:
        """Return the current version of a notification.

        Raises:
            KeyError: If the notification is unknown.
        """
        if notification_id not in self._notifications:
            raise KeyError(f"No notification registered with id '{notification_id}'")
        return self._notifications[notification_id]

    def list_pending(self) -> list[Notification]:
        """Notifications not yet decided, newest first."""
        pending = [
            n for n in self._notifications.values()
            if n.status != NotificationStatus.DECIDED
        ]
        return sorted(pending, key=lambda n: n.created_at, reverse=True)

    @property
    def decisions(self) -> list[TriageDecision]:
        """Recorded decisions, newest first."""
        return list(reversed(self._decisions))

    def decision_for(self, notification_id: str) -> Optional[TriageDecision]:
        for decision in reversed(self._decisions):
            if decision.notification_id == notification_id:
                return decision
        return None

    # -- status transitions --

    def _advance(self, notification_id: str, status: NotificationStatus) -> Notification:
        current = self.get(notification_id)
        updated = current.with_status(status)
        self._notifications[notification_id] = updated
        if updated.status != current.status:
            self._emit_audit(
                AuditEventType.STATUS_CHANGED,
                notification_id,
                {"from": current.status.value, "to": updated.status.value},
            )
            logger.info(
                "Notification %s status %s -> %s",
                notification_id,
                current.status.value,
                updated.status.value,
            )
        return updated

    def mark_awaiting_response(self, notification_id: str) -> Notification:
        """Record that a response has been requested from the practitioner."""
        return self._advance(notification_id, NotificationStatus.AWAITING_RESPONSE)

    def begin_review(self, notification_id: str) -> Notification:
        """Move a notification to ``under_review`` as triage starts."""
        return self._advance(notification_id, NotificationStatus.UNDER_REVIEW)

    def record_decision(self, decision: TriageDecision) -> Notification:
        """Store a decision and mark its notification ``decided``.

        Raises:
            KeyError: If the decision refers to an unknown notification.
            ValueError: If the notification has already been decided.
        """
        current = self.get(decision.notification_id)
        if current.status == NotificationStatus.DECIDED:
            raise ValueError(
                f"Notification '{decision.notification_id}' has already been decided."
            )
        self._decisions.append(decision)
        return self._advance(decision.notification_id, NotificationStatus.DECIDED)

    def __len__(self) -> int:
        return len(self._notifications)

    def __contains__(self, notification_id: str) -> bool:
        return notification_id in self._notifications
