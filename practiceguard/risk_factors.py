"""
Risk Factor Extractor.

Scans a notification's structured fields and free-text description for known
risk signals.  Each rule fires at most once, so the returned labels are
unique and appear in detection order.

The description scan is literal, case-insensitive substring containment over
a fixed phrase list.  Coincidental matches ("skill" inside "skillset",
"pattern" inside "patterns of rostering") count.
"""

from __future__ import annotations

from practiceguard.models import Category, Notification, ReferrerType, Severity


# ---------------------------------------------------------------------------
# Factor labels
# ---------------------------------------------------------------------------

URGENT = "Marked as urgent by referrer"
CRITICAL_SEVERITY = "Critical severity level reported"
HIGH_SEVERITY = "High severity incident"
CONDUCT_CONCERN = "Professional conduct concern"
COMPETENCE_CONCERN = "Clinical competence concern"
EMPLOYER_REFERRAL = "Employer-initiated referral (institutional concern)"
MINISTRY_REFERRAL = "Ministry of Health referral (regulatory concern)"
PATIENT_COMPLAINT = "Patient complaint (direct impact)"
PATIENT_SAFETY = "Patient safety implications identified"
PATTERN_OF_BEHAVIOR = "Pattern of behavior suggested"
SUBSTANCE_USE = "Substance use concern"
UNPROFESSIONAL_BEHAVIOR = "Unprofessional behavior reported"
COMPETENCY_QUESTIONED = "Clinical competency questioned"

# Phrase families scanned in the description, in detection order.
DESCRIPTION_PHRASES: list[tuple[tuple[str, ...], str]] = [
    (("patient harm", "patient safety"), PATIENT_SAFETY),
    (("repeated", "pattern"), PATTERN_OF_BEHAVIOR),
    (("intoxicated", "substance"), SUBSTANCE_USE),
    (("unprofessional", "inappropriate"), UNPROFESSIONAL_BEHAVIOR),
    (("competency", "skill"), COMPETENCY_QUESTIONED),
]

_SEVERITY_FACTORS = {
    Severity.CRITICAL: CRITICAL_SEVERITY,
    Severity.HIGH: HIGH_SEVERITY,
}

_CATEGORY_FACTORS = {
    Category.CONDUCT: CONDUCT_CONCERN,
    Category.COMPETENCE: COMPETENCE_CONCERN,
}

_REFERRER_FACTORS = {
    ReferrerType.EMPLOYER: EMPLOYER_REFERRAL,
    ReferrerType.MINISTRY: MINISTRY_REFERRAL,
    ReferrerType.PATIENT: PATIENT_COMPLAINT,
}


def extract_risk_factors(notification: Notification) -> list[str]:
    """Return the risk factors detected in a notification.

    Args:
        notification: The notification to scan.

    Returns:
        Factor labels in detection order: urgency, severity, category,
        referrer type, then description phrases.
    """
    factors: list[str] = []

    if notification.urgency:
        factors.append(URGENT)

    # Each lookup yields at most one label per rule group.
    for table, key in (
        (_SEVERITY_FACTORS, notification.severity),
        (_CATEGORY_FACTORS, notification.category),
        (_REFERRER_FACTORS, notification.referrer_type),
    ):
        label = table.get(key)
        if label is not None:
            factors.append(label)

    description = notification.description.lower()
    for phrases, label in DESCRIPTION_PHRASES:
        if any(phrase in description for phrase in phrases):
            factors.append(label)

    return factors
