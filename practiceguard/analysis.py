"""
Analysis Engine -- Composes the Scoring Pipeline.

``analyze_notification()`` runs the extractor, scorer, recommender,
confidence estimator, reasoning builder and similar-case finder over one
notification and returns a fresh ``AIAnalysis``.  Nothing is cached; the
same notification analysed twice (with a fixed similar-case count) yields
equal analyses.

``generate_triage_decision()`` turns an analysis straight into a decision
attributed to the engine, for callers that do not route the notification
through a reviewer.

DISCLAIMER: Recommendations are decision support for the notification
triage team.  A human reviewer confirms or overrides every outcome in the
standard workflow.
"""

from __future__ import annotations

import logging
from typing import Optional

from practiceguard.config import DEFAULT_POLICY, TriagePolicy
from practiceguard.models import (
    AIAnalysis,
    DecidedBy,
    InvalidInputError,
    Notification,
    TriageDecision,
)
from practiceguard.reasoning import build_reasoning_chain
from practiceguard.recommender import (
    calculate_confidence,
    determine_recommended_outcome,
    generate_recommendations,
)
from practiceguard.risk_factors import extract_risk_factors
from practiceguard.scoring import calculate_risk_scores, map_overall_risk_to_level
from practiceguard.similar_cases import SimilarCaseFinder

logger = logging.getLogger(__name__)

REASONING_SEPARATOR = ". "


def analyze_notification(
    notification: Notification,
    policy: TriagePolicy = DEFAULT_POLICY,
    case_finder: Optional[SimilarCaseFinder] = None,
) -> AIAnalysis:
    """Score a notification and recommend an outcome.

    Args:
        notification: The notification to analyse.
        policy: Thresholds and caps to apply.
        case_finder: Source of advisory similar cases.  Defaults to a
            finder over the policy's references with a random count.

    Returns:
        A new ``AIAnalysis``.

    Raises:
        InvalidInputError: If ``notification`` is not a ``Notification``.
    """
    if not isinstance(notification, Notification):
        raise InvalidInputError(
            f"Expected a Notification, got {type(notification).__name__}. "
            "Use parse_notification() to validate raw input."
        )

    factors = extract_risk_factors(notification)
    assessment = calculate_risk_scores(notification, factors)
    outcome = determine_recommended_outcome(assessment, factors, policy)
    confidence = calculate_confidence(notification, factors, policy)
    chain = build_reasoning_chain(notification, assessment, factors, outcome)

    finder = case_finder or SimilarCaseFinder.from_policy(policy)

    analysis = AIAnalysis(
        risk_assessment=assessment,
        key_factors=tuple(factors),
        similar_cases=tuple(finder.find(notification)),
        recommended_outcome=outcome,
        confidence=confidence,
        reasoning_chain=tuple(chain),
    )
    logger.debug(
        "Analysed notification %s: %d factors, outcome=%s, confidence=%.2f",
        notification.id,
        len(factors),
        outcome.value,
        confidence,
    )
    return analysis


def generate_triage_decision(
    notification: Notification,
    policy: TriagePolicy = DEFAULT_POLICY,
    case_finder: Optional[SimilarCaseFinder] = None,
) -> TriageDecision:
    """Produce an engine-only decision for a notification.

    The decision is attributed to the AI, carries the joined reasoning chain
    and the engine's confidence, and lists follow-up recommendations for
    whoever picks it up.
    """
    analysis = analyze_notification(notification, policy, case_finder)
    decision = TriageDecision(
        notification_id=notification.id,
        outcome=analysis.recommended_outcome,
        reasoning=REASONING_SEPARATOR.join(analysis.reasoning_chain),
        confidence=analysis.confidence,
        risk_level=map_overall_risk_to_level(
            analysis.risk_assessment.overall_risk, policy
        ),
        recommendations=tuple(generate_recommendations(analysis)),
        decided_by=DecidedBy.AI,
    )
    logger.info(
        "Engine decision for notification %s: %s",
        notification.id,
        decision.outcome.value,
    )
    return decision
