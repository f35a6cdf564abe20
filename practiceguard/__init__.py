"""
PracticeGuard Notification Triage Engine
========================================

Risk scoring and outcome recommendation for professional-conduct
notifications about registered practitioners, with a human-in-the-loop
triage workflow: analysis, reviewer confirmation or override, and an
auditable final decision.

DISCLAIMER: Recommendations are decision support only.  Every outcome in
the standard workflow is confirmed or overridden by a human reviewer, and no
analysis runs before the practitioner has had the opportunity to respond.
"""

__version__ = "0.1.0"
