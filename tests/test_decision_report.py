"""
Tests for practiceguard.decision_report -- Decision Transparency Reports.
"""

from datetime import date

from practiceguard.audit import AuditLog
from practiceguard.decision_report import generate_decision_report
from practiceguard.models import (
    Category,
    NTTOutcome,
    ReferrerType,
    Severity,
)
from practiceguard.similar_cases import SimilarCaseFinder
from practiceguard.store import NotificationStore
from practiceguard.workflow import TriageWorkflow


def _run_triage(override: bool = False):
    audit_log = AuditLog()
    store = NotificationStore(audit_log)
    notification = store.submit(
        referrer="Synthetic Referrer",
        referrer_type=ReferrerType.EMPLOYER,
        doctor_name="Dr. Example",
        registration_number="00001",
        incident_date=date(2024, 1, 15),
        description="Appeared intoxicated during night shift.",
        severity=Severity.CRITICAL,
        category=Category.HEALTH,
        urgency=True,
    )
    store.begin_review(notification.id)
    workflow = TriageWorkflow(
        notification,
        case_finder=SimilarCaseFinder(count=1),
        audit_log=audit_log,
    )
    workflow.run_analysis(doctor_response_received=True)
    if override:
        workflow.select_outcome(NTTOutcome.REFER_PCC)
        workflow.set_human_reasoning("Practitioner has stood down voluntarily.")
    decision = workflow.finalize()
    store.record_decision(decision)
    return decision, workflow.analysis, audit_log


class TestDecisionReport:
    def test_report_contains_required_fields(self):
        decision, analysis, audit_log = _run_triage()
        d = generate_decision_report(decision, analysis, audit_log).to_dict()
        assert d["report_type"] == "Triage Decision Report"
        assert d["notification_id"] == decision.notification_id
        assert d["outcome"] == "temporary_limitations"
        assert d["outcome_description"] == "Implement temporary practice limitations"
        assert d["decided_by"] == "ai"
        assert d["ai_recommendation"] is None
        assert d["overridden"] is False
        assert d["reasoning_chain"] == list(analysis.reasoning_chain)

    def test_disclaimer_present(self):
        decision, analysis, _ = _run_triage()
        d = generate_decision_report(decision, analysis).to_dict()
        assert "not constitute" in d["disclaimer"].lower()

    def test_override_report(self):
        decision, analysis, audit_log = _run_triage(override=True)
        report = generate_decision_report(decision, analysis, audit_log)
        d = report.to_dict()
        assert report.overridden is True
        assert d["decided_by"] == "human"
        assert d["reasoning"] == "Practitioner has stood down voluntarily."
        assert d["ai_recommendation"]["outcome"] == "temporary_limitations"
        assert d["ai_recommendation"]["confidence"] == analysis.confidence

    def test_timeline_follows_audit_log(self):
        decision, analysis, audit_log = _run_triage(override=True)
        report = generate_decision_report(decision, analysis, audit_log)
        events = [item["event"] for item in report.timeline]
        assert events == [
            "NOTIFICATION_RECEIVED",
            "STATUS_CHANGED",
            "ANALYSIS_COMPLETED",
            "OUTCOME_SELECTED",
            "DECISION_FINALIZED",
            "AI_RECOMMENDATION_OVERRIDDEN",
            "STATUS_CHANGED",
        ]
        assert report.timeline[1]["description"] == "Status changed from new to under_review."

    def test_report_without_analysis_or_log(self):
        decision, _, _ = _run_triage()
        report = generate_decision_report(decision)
        assert report.reasoning_chain == [decision.reasoning]
        assert report.timeline == []
