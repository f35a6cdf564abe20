"""
Outcome Recommender and Confidence Estimator.

The recommender is an ordered decision table: the first matching rule wins,
so a public-safety concern always outranks the laxer overall-score rules
below it.  Thresholds come from the ``TriagePolicy``; the rule order does
not.

Confidence reflects how much the engine had to go on (description length,
number of factors, referrer provenance, reported severity).  It is capped
below 1 so that every recommendation still leaves room for the reviewer.
"""

from __future__ import annotations

from practiceguard import risk_factors
from practiceguard.config import DEFAULT_POLICY, TriagePolicy
from practiceguard.models import (
    AIAnalysis,
    Notification,
    NTTOutcome,
    ReferrerType,
    RiskAssessment,
    Severity,
)
from practiceguard.scoring import round_score


BASE_CONFIDENCE = 0.6
CONFIDENCE_STEP = 0.1
DETAILED_DESCRIPTION_LENGTH = 200
CORROBORATED_FACTOR_COUNT = 3

_INSTITUTIONAL_REFERRERS = (ReferrerType.EMPLOYER, ReferrerType.MINISTRY)
_SERIOUS_SEVERITIES = (Severity.CRITICAL, Severity.HIGH)


def determine_recommended_outcome(
    assessment: RiskAssessment,
    factors: list[str],
    policy: TriagePolicy = DEFAULT_POLICY,
) -> NTTOutcome:
    """Select the recommended disposition for a scored notification.

    Args:
        assessment: Rounded risk scores.
        factors: Detected risk factors.
        policy: Threshold values for the decision table.

    Returns:
        The first outcome whose rule matches.
    """
    t = policy.outcome_thresholds
    overall = assessment.overall_risk
    public_safety = assessment.public_safety_risk

    if (
        public_safety >= t.temporary_limitations_public_safety
        or risk_factors.URGENT in factors
    ):
        return NTTOutcome.TEMPORARY_LIMITATIONS

    if overall >= t.refer_pcc_overall or public_safety >= t.refer_pcc_public_safety:
        return NTTOutcome.REFER_PCC

    if overall >= t.refer_council_overall or risk_factors.PATTERN_OF_BEHAVIOR in factors:
        return NTTOutcome.REFER_COUNCIL

    if overall >= t.education_overall:
        return NTTOutcome.EDUCATION

    return NTTOutcome.NO_ACTION


def calculate_confidence(
    notification: Notification,
    factors: list[str],
    policy: TriagePolicy = DEFAULT_POLICY,
) -> float:
    """Estimate confidence in the recommendation, in [0.60, cap]."""
    confidence = BASE_CONFIDENCE

    if len(notification.description) > DETAILED_DESCRIPTION_LENGTH:
        confidence += CONFIDENCE_STEP
    if len(factors) >= CORROBORATED_FACTOR_COUNT:
        confidence += CONFIDENCE_STEP
    if notification.referrer_type in _INSTITUTIONAL_REFERRERS:
        confidence += CONFIDENCE_STEP
    if notification.severity in _SERIOUS_SEVERITIES:
        confidence += CONFIDENCE_STEP

    return min(policy.confidence_cap, round_score(confidence))


def generate_recommendations(analysis: AIAnalysis) -> list[str]:
    """Follow-up recommendations for a decision made without human review."""
    recommendations: list[str] = []

    if analysis.risk_assessment.public_safety_risk > 0.6:
        recommendations.append("Consider immediate practice monitoring")

    if risk_factors.PATTERN_OF_BEHAVIOR in analysis.key_factors:
        recommendations.append("Review previous notifications for this practitioner")

    if analysis.confidence < 0.8:
        recommendations.append("Request additional information before final decision")

    recommendations.append(
        "Ensure doctor response is obtained per natural justice principles"
    )
    return recommendations
