"""
Tests for practiceguard.analysis -- Analysis Engine.

Covers: the intoxication scenario (public safety clamp), the low-risk
conduct scenario, idempotence, invalid input, and engine-only decisions.
"""

from datetime import date

import pytest

from practiceguard import risk_factors
from practiceguard.analysis import analyze_notification, generate_triage_decision
from practiceguard.models import (
    Category,
    DecidedBy,
    InvalidInputError,
    Notification,
    NTTOutcome,
    ReferrerType,
    RiskLevel,
    Severity,
    parse_notification,
)
from practiceguard.similar_cases import SimilarCaseFinder


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


def _intoxication_notification() -> Notification:
    return _make_notification(
        urgency=True,
        severity=Severity.CRITICAL,
        category=Category.HEALTH,
        description="Appeared intoxicated during night shift.",
    )


def _late_to_meeting_notification() -> Notification:
    return _make_notification(
        severity=Severity.LOW,
        category=Category.CONDUCT,
        description="Was late to a team meeting.",
    )


_FINDER = SimilarCaseFinder(count=1)


# ---------------------------------------------------------------------------
# 1. End-to-end scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_intoxication_scenario(self):
        analysis = analyze_notification(_intoxication_notification(), case_finder=_FINDER)
        assert analysis.risk_assessment.public_safety_risk == 1.0
        assert analysis.recommended_outcome == NTTOutcome.TEMPORARY_LIMITATIONS
        assert analysis.key_factors == (
            risk_factors.URGENT,
            risk_factors.CRITICAL_SEVERITY,
            risk_factors.SUBSTANCE_USE,
        )
        assert analysis.confidence == 0.8
        assert analysis.reasoning_chain[-1] == (
            "Recommendation: Immediate practice limitations due to public safety risk"
        )

    def test_low_risk_conduct_scenario(self):
        analysis = analyze_notification(_late_to_meeting_notification(), case_finder=_FINDER)
        assert analysis.risk_assessment.overall_risk < 0.3
        assert analysis.recommended_outcome == NTTOutcome.NO_ACTION
        assert analysis.confidence == 0.6
        assert analysis.key_factors == (risk_factors.CONDUCT_CONCERN,)


# ---------------------------------------------------------------------------
# 2. Idempotence and purity
# ---------------------------------------------------------------------------

class TestIdempotence:
    def test_repeat_analysis_is_identical(self):
        notification = _intoxication_notification()
        first = analyze_notification(notification, case_finder=_FINDER)
        second = analyze_notification(notification, case_finder=_FINDER)
        assert first == second
        assert first is not second

    def test_similar_cases_do_not_affect_recommendation(self):
        notification = _intoxication_notification()
        one = analyze_notification(notification, case_finder=SimilarCaseFinder(count=1))
        three = analyze_notification(notification, case_finder=SimilarCaseFinder(count=3))
        assert len(one.similar_cases) == 1
        assert len(three.similar_cases) == 3
        assert one.model_dump(exclude={"similar_cases"}) == three.model_dump(
            exclude={"similar_cases"}
        )

    def test_notification_is_not_modified(self):
        notification = _intoxication_notification()
        before = notification.model_dump()
        analyze_notification(notification, case_finder=_FINDER)
        assert notification.model_dump() == before


# ---------------------------------------------------------------------------
# 3. Invalid input
# ---------------------------------------------------------------------------

class TestInvalidInput:
    def test_raw_mapping_rejected(self):
        with pytest.raises(InvalidInputError):
            analyze_notification({"severity": "low"})

    def test_unknown_enum_value_rejected(self):
        data = _make_notification().model_dump()
        data["severity"] = "catastrophic"
        with pytest.raises(InvalidInputError):
            parse_notification(data)

    def test_missing_field_rejected(self):
        data = _make_notification().model_dump()
        del data["category"]
        with pytest.raises(InvalidInputError):
            parse_notification(data)

    def test_valid_mapping_parsed(self):
        data = _make_notification().model_dump(mode="json")
        notification = parse_notification(data)
        assert notification.severity == Severity.LOW
        assert notification.incident_date == date(2024, 1, 15)


# ---------------------------------------------------------------------------
# 4. Engine-only decisions
# ---------------------------------------------------------------------------

class TestGenerateTriageDecision:
    def test_engine_decision_for_intoxication_scenario(self):
        notification = _intoxication_notification()
        decision = generate_triage_decision(notification, case_finder=_FINDER)
        analysis = analyze_notification(notification, case_finder=_FINDER)

        assert decision.notification_id == notification.id
        assert decision.outcome == NTTOutcome.TEMPORARY_LIMITATIONS
        assert decision.decided_by == DecidedBy.AI
        assert decision.confidence == 0.8
        assert decision.risk_level == RiskLevel.HIGH
        assert decision.reasoning == ". ".join(analysis.reasoning_chain)
        assert decision.ai_recommendation is None
        assert decision.recommendations == (
            "Consider immediate practice monitoring",
            "Ensure doctor response is obtained per natural justice principles",
        )

    def test_engine_decision_for_low_risk(self):
        decision = generate_triage_decision(_late_to_meeting_notification(), case_finder=_FINDER)
        assert decision.outcome == NTTOutcome.NO_ACTION
        assert decision.risk_level == RiskLevel.LOW
        assert "Request additional information before final decision" in decision.recommendations
