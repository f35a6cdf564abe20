"""
Append-Only Triage Audit Log (Hash-Chained).

Every step a notification takes through triage -- intake, status changes,
the practitioner's response, the engine's analysis, the reviewer's
selection and the final decision -- is recorded as an audit entry.  Entries
are linked by SHA-256 hashes so that any later edit to an entry is detected
by ``verify_chain()``.

The log lives in memory for the lifetime of the process.  It is the record
the triage team reviews when comparing AI recommendations with final
outcomes; it is not a persistence layer.
"""

from __future__ import annotations

import enum
import hashlib
import json
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Audit event types
# ---------------------------------------------------------------------------

class AuditEventType(str, enum.Enum):
    """Auditable triage events."""

    # Intake and lifecycle
    NOTIFICATION_RECEIVED = "NOTIFICATION_RECEIVED"
    STATUS_CHANGED = "STATUS_CHANGED"
    DOCTOR_RESPONSE_RECORDED = "DOCTOR_RESPONSE_RECORDED"

    # Workflow
    ANALYSIS_COMPLETED = "ANALYSIS_COMPLETED"
    OUTCOME_SELECTED = "OUTCOME_SELECTED"
    DECISION_FINALIZED = "DECISION_FINALIZED"
    AI_RECOMMENDATION_OVERRIDDEN = "AI_RECOMMENDATION_OVERRIDDEN"


# ---------------------------------------------------------------------------
# Audit entry model
# ---------------------------------------------------------------------------

class AuditEntry(BaseModel):
    """A single audit log entry, linked to its predecessor by hash."""

    entry_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique identifier for this audit entry (UUID).",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="UTC timestamp of the event.",
    )
    notification_id: str = Field(
        ...,
        description="Notification the event concerns.",
    )
    actor_id: str = Field(
        ...,
        description="Reviewer ID, or SYSTEM / ENGINE for automated steps.",
    )
    actor_role: str = Field(
        ...,
        description="Role of the actor (SYSTEM, ENGINE, REVIEWER).",
    )
    event_type: AuditEventType
    metadata: dict[str, Any] = Field(default_factory=dict)
    previous_hash: str = Field(
        default="",
        description="SHA-256 of the previous entry.  Empty for the first entry.",
    )

    def canonical_bytes(self) -> bytes:
        """Deterministic byte representation used for hashing."""
        data = {
            "entry_id": self.entry_id,
            "timestamp": self.timestamp.isoformat(),
            "notification_id": self.notification_id,
            "actor_id": self.actor_id,
            "actor_role": self.actor_role,
            "event_type": self.event_type.value,
            "metadata": self.metadata,
            "previous_hash": self.previous_hash,
        }
        return json.dumps(data, sort_keys=True, default=str).encode("utf-8")

    def compute_hash(self) -> str:
        return hashlib.sha256(self.canonical_bytes()).hexdigest()


# ---------------------------------------------------------------------------
# Practitioner identifier redaction
# ---------------------------------------------------------------------------

_IDENTIFIER_PATTERNS: dict[str, re.Pattern] = {
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b"),
    "phone": re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),
}

# Metadata keys whose values identify a practitioner or referrer.
_IDENTIFIER_KEYS = {"doctor_name", "registration_number", "referrer",
                    "practitioner_name", "email", "phone"}


def redact_identifiers(metadata: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``metadata`` with identifying values redacted.

    Keys in the identifier list are replaced outright; string values are
    scrubbed of email addresses and phone numbers.  Nested mappings are
    handled recursively.
    """
    redacted = {}
    for key, value in metadata.items():
        if key.lower() in _IDENTIFIER_KEYS:
            redacted[key] = "[REDACTED]"
        elif isinstance(value, str):
            redacted_value = value
            for pattern_name, pattern in _IDENTIFIER_PATTERNS.items():
                redacted_value = pattern.sub(f"[REDACTED-{pattern_name.upper()}]", redacted_value)
            redacted[key] = redacted_value
        elif isinstance(value, dict):
            redacted[key] = redact_identifiers(value)
        else:
            redacted[key] = value
    return redacted


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------

class AuditLog:
    """Triage audit trail shared by the intake store and the workflows.

    Entries are only ever appended.  Each entry stores the hash of the one
    before it, so an edit anywhere in the trail shows up in
    ``verify_chain()``.  Reads hand back copies; exports for the committee
    have practitioner identifiers redacted.
    """

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []
        self._hashes: list[str] = []  # hash of each entry as appended

    def append(self, entry: AuditEntry) -> AuditEntry:
        """Link ``entry`` to the last recorded step and store it."""
        entry.previous_hash = self._hashes[-1] if self._hashes else ""
        self._entries.append(entry)
        self._hashes.append(entry.compute_hash())
        return entry

    def record(
        self,
        event_type: AuditEventType,
        notification_id: str,
        actor_id: str = "SYSTEM",
        actor_role: str = "SYSTEM",
        metadata: dict[str, Any] | None = None,
    ) -> AuditEntry:
        """Record one triage step against a notification."""
        return self.append(AuditEntry(
            notification_id=notification_id,
            actor_id=actor_id,
            actor_role=actor_role,
            event_type=event_type,
            metadata=metadata or {},
        ))

    def verify_chain(self) -> tuple[bool, Optional[int]]:
        """Recompute the trail's hashes.

        Returns:
            ``(True, None)`` for an intact trail, otherwise ``(False, i)``
            with ``i`` the position of the first entry that no longer
            matches.
        """
        expected_previous = ""
        for position, (entry, stored_hash) in enumerate(zip(self._entries, self._hashes)):
            if entry.previous_hash != expected_previous:
                return (False, position)
            current = entry.compute_hash()
            if current != stored_hash:
                return (False, position)
            expected_previous = current
        return (True, None)

    def query(
        self,
        notification_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        time_start: Optional[datetime] = None,
        time_end: Optional[datetime] = None,
        actor_id: Optional[str] = None,
    ) -> list[AuditEntry]:
        """Copies of the steps matching every filter given, oldest first."""
        checks = []
        if notification_id is not None:
            checks.append(lambda e: e.notification_id == notification_id)
        if event_type is not None:
            checks.append(lambda e: e.event_type == event_type)
        if time_start is not None:
            checks.append(lambda e: e.timestamp >= time_start)
        if time_end is not None:
            checks.append(lambda e: e.timestamp <= time_end)
        if actor_id is not None:
            checks.append(lambda e: e.actor_id == actor_id)

        return [
            entry.model_copy(deep=True)
            for entry in self._entries
            if all(check(entry) for check in checks)
        ]

    def export_for_review(
        self,
        notification_id: Optional[str] = None,
        time_start: Optional[datetime] = None,
        time_end: Optional[datetime] = None,
    ) -> dict[str, Any]:
        """Bundle the trail for committee review.

        Args:
            notification_id: Only export the steps of this notification.
            time_start: Earliest step to include.
            time_end: Latest step to include.

        Returns:
            A JSON-serializable mapping with ``export_metadata`` (scope,
            entry count, per-event counts and the chain check) and the
            redacted ``entries``.
        """
        entries = self.query(notification_id, time_start=time_start, time_end=time_end)

        exported = []
        event_counts: dict[str, int] = {}
        for entry in entries:
            item = entry.model_dump(mode="json")
            item["metadata"] = redact_identifiers(entry.metadata)
            exported.append(item)
            event_counts[entry.event_type.value] = event_counts.get(entry.event_type.value, 0) + 1

        intact, broken_at = self.verify_chain()

        return {
            "export_metadata": {
                "notification_id": notification_id,
                "exported_at": datetime.now(timezone.utc).isoformat(),
                "entry_count": len(exported),
                "event_counts": event_counts,
                "chain_integrity": "VALID" if intact else f"BROKEN_AT_INDEX_{broken_at}",
            },
            "entries": exported,
        }

    def __len__(self) -> int:
        return len(self._entries)
