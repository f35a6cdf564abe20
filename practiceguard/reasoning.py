"""
Reasoning Chain Builder.

Renders the scoring and recommendation as ordered, human-readable
justification steps.  The chain is the audit trail for an AI
recommendation: identical inputs always produce an identical chain.
"""

from __future__ import annotations

from practiceguard.models import Notification, NTTOutcome, RiskAssessment

KEY_FACTOR_LIMIT = 3

# Justification line closing every reasoning chain.
OUTCOME_JUSTIFICATIONS: dict[NTTOutcome, str] = {
    NTTOutcome.NO_ACTION: "No further action required based on low risk assessment",
    NTTOutcome.EDUCATION: "Educational intervention recommended for moderate risk",
    NTTOutcome.REFER_COUNCIL: "Council referral needed due to elevated risk factors",
    NTTOutcome.REFER_PCC: "PCC referral required for serious conduct concerns",
    NTTOutcome.TEMPORARY_LIMITATIONS: "Immediate practice limitations due to public safety risk",
}

# Short labels shown to reviewers choosing an outcome.
OUTCOME_DESCRIPTIONS: dict[NTTOutcome, str] = {
    NTTOutcome.NO_ACTION: "No further action required",
    NTTOutcome.EDUCATION: "Provide educational guidance to doctor",
    NTTOutcome.REFER_COUNCIL: "Refer to full Council meeting",
    NTTOutcome.REFER_PCC: "Refer to Professional Conduct Committee",
    NTTOutcome.TEMPORARY_LIMITATIONS: "Implement temporary practice limitations",
}


def _percent(score: float) -> int:
    return int(round(score * 100))


def build_reasoning_chain(
    notification: Notification,
    assessment: RiskAssessment,
    factors: list[str],
    outcome: NTTOutcome,
) -> list[str]:
    """Build the reasoning chain for a recommendation.

    Args:
        notification: The notification being triaged.
        assessment: Its risk scores.
        factors: Detected risk factors.
        outcome: The recommended outcome.

    Returns:
        Summary line, key factors line (only when factors exist), score
        breakdown, and the recommendation justification.
    """
    chain = [
        f"Initial assessment: {notification.category.value} concern "
        f"with {notification.severity.value} severity"
    ]

    if factors:
        chain.append(
            "Key risk factors identified: "
            + ", ".join(factors[:KEY_FACTOR_LIMIT])
        )

    chain.append(
        f"Risk analysis: Public safety ({_percent(assessment.public_safety_risk)}%), "
        f"Reputational ({_percent(assessment.reputational_risk)}%), "
        f"Recurrence ({_percent(assessment.recurrence_risk)}%)"
    )

    chain.append(f"Recommendation: {OUTCOME_JUSTIFICATIONS[outcome]}")
    return chain
