"""
Risk Scorer.

Converts a notification and its detected factors into three weighted
sub-scores and an overall score.  All functions here are pure.

Overall risk weights public safety highest, reputational risk second and
recurrence third.  Sub-scores are clamped to 1.0 before weighting; each of
the four reported values is rounded once, at the end.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from practiceguard import risk_factors
from practiceguard.config import DEFAULT_POLICY, TriagePolicy
from practiceguard.models import (
    Notification,
    ReferrerType,
    RiskAssessment,
    RiskLevel,
    Severity,
)

logger = logging.getLogger(__name__)


BASE_PUBLIC_SAFETY = 0.3
BASE_REPUTATIONAL = 0.2
BASE_RECURRENCE = 0.2

PUBLIC_SAFETY_WEIGHT = 0.5
REPUTATIONAL_WEIGHT = 0.3
RECURRENCE_WEIGHT = 0.2


def round_score(value: float, places: int = 2) -> float:
    """Round half-up to ``places`` decimals."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def calculate_risk_scores(
    notification: Notification, factors: list[str]
) -> RiskAssessment:
    """Score a notification.

    Args:
        notification: The notification being triaged.
        factors: Labels from ``extract_risk_factors()`` for the same
            notification.

    Returns:
        A ``RiskAssessment`` with every score in [0, 1], rounded to two
        decimals.
    """
    public_safety = BASE_PUBLIC_SAFETY
    reputational = BASE_REPUTATIONAL
    recurrence = BASE_RECURRENCE

    if notification.urgency:
        public_safety += 0.4
    if notification.severity == Severity.CRITICAL:
        public_safety += 0.3
    elif notification.severity == Severity.HIGH:
        public_safety += 0.2

    if risk_factors.PATIENT_SAFETY in factors:
        public_safety += 0.2
    if risk_factors.PATTERN_OF_BEHAVIOR in factors:
        recurrence += 0.4
        public_safety += 0.1
    if risk_factors.SUBSTANCE_USE in factors:
        public_safety += 0.3
        recurrence += 0.2

    if notification.referrer_type == ReferrerType.MINISTRY:
        reputational += 0.3
    elif notification.referrer_type == ReferrerType.EMPLOYER:
        reputational += 0.2
    if risk_factors.UNPROFESSIONAL_BEHAVIOR in factors:
        reputational += 0.2

    # Adjustments are non-negative, so only the ceiling needs clamping.
    public_safety = min(1.0, public_safety)
    reputational = min(1.0, reputational)
    recurrence = min(1.0, recurrence)

    overall = (
        public_safety * PUBLIC_SAFETY_WEIGHT
        + reputational * REPUTATIONAL_WEIGHT
        + recurrence * RECURRENCE_WEIGHT
    )

    assessment = RiskAssessment(
        public_safety_risk=round_score(public_safety),
        reputational_risk=round_score(reputational),
        recurrence_risk=round_score(recurrence),
        overall_risk=round_score(overall),
    )
    logger.debug(
        "Scored notification %s: public_safety=%.2f reputational=%.2f "
        "recurrence=%.2f overall=%.2f",
        notification.id,
        assessment.public_safety_risk,
        assessment.reputational_risk,
        assessment.recurrence_risk,
        assessment.overall_risk,
    )
    return assessment


def map_overall_risk_to_level(
    overall_risk: float, policy: TriagePolicy = DEFAULT_POLICY
) -> RiskLevel:
    """Map an overall score to a coarse risk level using the policy bands."""
    bands = policy.risk_level_bands
    if overall_risk >= bands.critical:
        return RiskLevel.CRITICAL
    if overall_risk >= bands.high:
        return RiskLevel.HIGH
    if overall_risk >= bands.medium:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW
