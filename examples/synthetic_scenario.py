"""
Synthetic Scenario: Triage of Two Notifications
===============================================

Walks two synthetic notifications through the PracticeGuard triage workflow.
All names and registration numbers are invented.

Steps demonstrated:
  1. Load the triage policy from YAML
  2. Register notifications in the intake store
  3. Natural justice gate: analysis refused until the practitioner responds
  4. Accept the AI recommendation for a low-risk notification
  5. Override the AI recommendation for a serious notification
  6. Generate a Triage Decision Report
  7. Export the audit log for committee review

Usage:
    python -m examples.synthetic_scenario
    # or: python examples/synthetic_scenario.py
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import date
from pathlib import Path

# Ensure the project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from practiceguard.audit import AuditLog
from practiceguard.config import DEFAULT_POLICY, load_policy_from_yaml
from practiceguard.decision_report import generate_decision_report
from practiceguard.models import (
    Category,
    DoctorResponse,
    NTTOutcome,
    ReferrerType,
    Severity,
)
from practiceguard.similar_cases import SimilarCaseFinder
from practiceguard.store import NotificationStore
from practiceguard.workflow import DoctorResponsePendingError, TriageWorkflow


def _banner(text: str) -> None:
    print(f"\n{'=' * 60}")
    print(f"  {text}")
    print(f"{'=' * 60}\n")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    _banner("PracticeGuard Synthetic Scenario")
    print("All data in this demo is synthetic.\n")

    # ------------------------------------------------------------------
    # Step 1: Load policy
    # ------------------------------------------------------------------
    _banner("Step 1: Load Triage Policy")

    policy_yaml = Path(__file__).parent / "triage_policy.yaml"
    policy = load_policy_from_yaml(policy_yaml) if policy_yaml.exists() else DEFAULT_POLICY
    print(f"Policy: {policy.name}")

    audit_log = AuditLog()
    store = NotificationStore(audit_log)
    finder = SimilarCaseFinder.from_policy(policy, count=2)

    # ------------------------------------------------------------------
    # Step 2: Intake
    # ------------------------------------------------------------------
    _banner("Step 2: Register Notifications")

    late_rounds = store.submit(
        referrer="Dr. Synthetic Colleague",
        referrer_type=ReferrerType.COLLEAGUE,
        doctor_name="Dr. Example One",
        registration_number="00001",
        incident_date=date(2024, 1, 15),
        description="Arrived late to morning rounds twice this month. No effect on care observed.",
        severity=Severity.LOW,
        category=Category.CONDUCT,
        urgency=False,
    )
    night_shift = store.submit(
        referrer="Synthetic ED Nurse Manager",
        referrer_type=ReferrerType.COLLEAGUE,
        doctor_name="Dr. Example Two",
        registration_number="00002",
        incident_date=date(2024, 1, 22),
        description=(
            "Appeared intoxicated during night shift. Patient safety was at risk "
            "and the doctor was removed from duty. Second similar incident in "
            "three months."
        ),
        severity=Severity.CRITICAL,
        category=Category.HEALTH,
        urgency=True,
    )
    for notification in store.list_pending():
        print(f"  {notification.id}: {notification.severity.value} {notification.category.value}")

    # ------------------------------------------------------------------
    # Step 3: Natural justice gate
    # ------------------------------------------------------------------
    _banner("Step 3: Natural Justice Gate")

    store.mark_awaiting_response(late_rounds.id)
    workflow = TriageWorkflow(store.begin_review(late_rounds.id), policy, finder, audit_log)
    try:
        workflow.run_analysis()
    except DoctorResponsePendingError as exc:
        print(f"Refused as expected: {exc}")

    workflow.record_doctor_response(DoctorResponse(
        notification_id=late_rounds.id,
        response="(Synthetic) Childcare arrangements have since been resolved.",
    ))

    # ------------------------------------------------------------------
    # Step 4: Accept the AI recommendation
    # ------------------------------------------------------------------
    _banner("Step 4: Accept AI Recommendation")

    analysis = workflow.run_analysis()
    for step in analysis.reasoning_chain:
        print(f"  - {step}")
    decision = workflow.finalize()
    store.record_decision(decision)
    print(f"\nDecision: {decision.outcome.value} by {decision.decided_by.value} "
          f"(confidence {decision.confidence})")

    # ------------------------------------------------------------------
    # Step 5: Override the AI recommendation
    # ------------------------------------------------------------------
    _banner("Step 5: Reviewer Override")

    workflow = TriageWorkflow(
        store.begin_review(night_shift.id), policy, finder, audit_log, reviewer_id="ntt_chair"
    )
    analysis = workflow.run_analysis(doctor_response_received=True)
    print(f"AI recommends: {analysis.recommended_outcome.value}")
    workflow.select_outcome(NTTOutcome.REFER_PCC)
    workflow.set_human_reasoning(
        "(Synthetic) Practitioner has voluntarily stood down from clinical "
        "duties; refer to the Professional Conduct Committee."
    )
    decision = workflow.finalize()
    store.record_decision(decision)
    print(f"Decision: {decision.outcome.value} by {decision.decided_by.value}")
    print(f"  Overrides AI: {decision.overrides_ai}")

    # ------------------------------------------------------------------
    # Step 6: Decision report
    # ------------------------------------------------------------------
    _banner("Step 6: Triage Decision Report")

    report = generate_decision_report(decision, analysis, audit_log)
    print(json.dumps(report.to_dict(), indent=2, default=str))

    # ------------------------------------------------------------------
    # Step 7: Audit export
    # ------------------------------------------------------------------
    _banner("Step 7: Audit Log Export")

    export = audit_log.export_for_review()
    print(json.dumps(export["export_metadata"], indent=2))
    valid, broken_at = audit_log.verify_chain()
    print(f"\nFull chain verification: valid={valid}, broken_at={broken_at}")
    print(f"Pending notifications: {len(store.list_pending())}")


if __name__ == "__main__":
    main()
