"""
Tests for practiceguard.scoring -- Risk Scorer.
"""

from datetime import date

from practiceguard.config import RiskLevelBands, TriagePolicy
from practiceguard.models import (
    Category,
    Notification,
    ReferrerType,
    RiskLevel,
    Severity,
)
from practiceguard.risk_factors import extract_risk_factors
from practiceguard.scoring import (
    calculate_risk_scores,
    map_overall_risk_to_level,
    round_score,
)


def _make_notification(**kwargs) -> Notification:
    defaults = {
        "referrer": "Synthetic Referrer",
        "referrer_type": ReferrerType.COLLEAGUE,
        "doctor_name": "Dr. Example",
        "registration_number": "00001",
        "incident_date": date(2024, 1, 15),
        "description": "",
        "severity": Severity.LOW,
        "category": Category.OTHER,
        "urgency": False,
    }
    defaults.update(kwargs)
    return Notification(**defaults)


def _score(**kwargs):
    notification = _make_notification(**kwargs)
    return calculate_risk_scores(notification, extract_risk_factors(notification))


# ---------------------------------------------------------------------------
# 1. Base values and adjustments
# ---------------------------------------------------------------------------

class TestAdjustments:
    def test_base_scores(self):
        scores = _score()
        assert scores.public_safety_risk == 0.3
        assert scores.reputational_risk == 0.2
        assert scores.recurrence_risk == 0.2
        assert scores.overall_risk == 0.25

    def test_urgency_and_high_severity(self):
        scores = _score(urgency=True, severity=Severity.HIGH)
        assert scores.public_safety_risk == 0.9

    def test_critical_severity(self):
        assert _score(severity=Severity.CRITICAL).public_safety_risk == 0.6

    def test_pattern_raises_recurrence_and_public_safety(self):
        scores = _score(description="A repeated problem.")
        assert scores.recurrence_risk == 0.6
        assert scores.public_safety_risk == 0.4

    def test_substance_use(self):
        scores = _score(description="Suspected substance use.")
        assert scores.public_safety_risk == 0.6
        assert scores.recurrence_risk == 0.4

    def test_patient_safety(self):
        assert _score(description="patient safety concern").public_safety_risk == 0.5

    def test_referrer_reputational_adjustments(self):
        assert _score(referrer_type=ReferrerType.MINISTRY).reputational_risk == 0.5
        assert _score(referrer_type=ReferrerType.EMPLOYER).reputational_risk == 0.4
        assert _score(referrer_type=ReferrerType.PATIENT).reputational_risk == 0.2

    def test_unprofessional_behavior(self):
        scores = _score(referrer_type=ReferrerType.MINISTRY, description="Unprofessional.")
        assert scores.reputational_risk == 0.7

    def test_each_adjustment_applies_once(self):
        scores = _score(description="repeated pattern, repeated pattern")
        assert scores.recurrence_risk == 0.6


# ---------------------------------------------------------------------------
# 2. Clamping and weighting
# ---------------------------------------------------------------------------

class TestClampingAndWeighting:
    def test_public_safety_clamps_to_one(self):
        scores = _score(
            urgency=True,
            severity=Severity.CRITICAL,
            category=Category.HEALTH,
            description="Appeared intoxicated on shift.",
        )
        assert scores.public_safety_risk == 1.0
        assert scores.recurrence_risk == 0.4
        # 0.5 * 1.0 + 0.3 * 0.2 + 0.2 * 0.4
        assert scores.overall_risk == 0.64

    def test_overall_uses_clamped_sub_scores(self):
        scores = _score(
            urgency=True,
            severity=Severity.CRITICAL,
            referrer_type=ReferrerType.MINISTRY,
            description="patient harm, repeated, intoxicated, unprofessional",
        )
        assert scores.public_safety_risk == 1.0
        assert scores.reputational_risk == 0.7
        assert scores.recurrence_risk == 0.8
        # 0.5 * 1.0 + 0.3 * 0.7 + 0.2 * 0.8
        assert scores.overall_risk == 0.87

    def test_scores_always_within_unit_interval(self):
        descriptions = ["", "patient harm repeated intoxicated unprofessional skill"]
        for urgency in (False, True):
            for severity in Severity:
                for referrer_type in ReferrerType:
                    for description in descriptions:
                        scores = _score(
                            urgency=urgency,
                            severity=severity,
                            referrer_type=referrer_type,
                            description=description,
                        )
                        for value in (
                            scores.public_safety_risk,
                            scores.reputational_risk,
                            scores.recurrence_risk,
                            scores.overall_risk,
                        ):
                            assert 0.0 <= value <= 1.0

    def test_scoring_is_deterministic(self):
        kwargs = {"urgency": True, "description": "repeated substance use"}
        assert _score(**kwargs) == _score(**kwargs)


# ---------------------------------------------------------------------------
# 3. Rounding and risk levels
# ---------------------------------------------------------------------------

class TestRoundingAndLevels:
    def test_round_score_is_half_up(self):
        assert round_score(0.125) == 0.13
        assert round_score(0.7000000000000001) == 0.7
        assert round_score(0.6449) == 0.64

    def test_default_risk_level_bands(self):
        assert map_overall_risk_to_level(0.39) == RiskLevel.LOW
        assert map_overall_risk_to_level(0.4) == RiskLevel.MEDIUM
        assert map_overall_risk_to_level(0.6) == RiskLevel.HIGH
        assert map_overall_risk_to_level(0.8) == RiskLevel.CRITICAL
        assert map_overall_risk_to_level(1.0) == RiskLevel.CRITICAL

    def test_custom_risk_level_bands(self):
        policy = TriagePolicy(risk_level_bands=RiskLevelBands(medium=0.2, high=0.3, critical=0.5))
        assert map_overall_risk_to_level(0.25, policy) == RiskLevel.MEDIUM
        assert map_overall_risk_to_level(0.5, policy) == RiskLevel.CRITICAL
