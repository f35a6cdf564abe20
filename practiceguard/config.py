"""
Triage Policy -- Configurable Thresholds for the Recommendation Engine.

The outcome decision table, the coarse risk-level bands and the confidence
caps are expressed as a validated ``TriagePolicy``.  ``DEFAULT_POLICY``
carries the values the triage team works to today; a different policy can
be loaded from YAML for calibration exercises.

The *order* of the outcome rules is fixed in code (public safety first).
Only the threshold values are configurable, and the validators below refuse
any combination in which a laxer rule would sit above a stricter one.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Outcome thresholds
# ---------------------------------------------------------------------------

class OutcomeThresholds(BaseModel):
    """Score thresholds for the outcome decision table.

    Rules are evaluated top to bottom and the first match wins:

    1. public safety >= ``temporary_limitations_public_safety`` (or urgent)
    2. overall >= ``refer_pcc_overall`` or public safety >= ``refer_pcc_public_safety``
    3. overall >= ``refer_council_overall`` (or a pattern of behaviour)
    4. overall >= ``education_overall``
    5. no action
    """

    temporary_limitations_public_safety: float = Field(default=0.8, ge=0, le=1)
    refer_pcc_public_safety: float = Field(
        default=0.6,
        ge=0,
        le=1,
        description="Must not exceed the temporary limitations public-safety threshold.",
    )
    refer_pcc_overall: float = Field(default=0.7, ge=0, le=1)
    refer_council_overall: float = Field(default=0.5, ge=0, le=1)
    education_overall: float = Field(default=0.3, ge=0, le=1)

    @field_validator("refer_pcc_public_safety")
    @classmethod
    def pcc_below_limitations(cls, v: float, info) -> float:
        limit = info.data.get("temporary_limitations_public_safety")
        if limit is not None and v > limit:
            raise ValueError(
                f"refer_pcc_public_safety ({v}) must be <= "
                f"temporary_limitations_public_safety ({limit})"
            )
        return v

    @field_validator("refer_council_overall")
    @classmethod
    def council_below_pcc(cls, v: float, info) -> float:
        pcc = info.data.get("refer_pcc_overall")
        if pcc is not None and v > pcc:
            raise ValueError(
                f"refer_council_overall ({v}) must be <= refer_pcc_overall ({pcc})"
            )
        return v

    @field_validator("education_overall")
    @classmethod
    def education_below_council(cls, v: float, info) -> float:
        council = info.data.get("refer_council_overall")
        if council is not None and v > council:
            raise ValueError(
                f"education_overall ({v}) must be <= refer_council_overall ({council})"
            )
        return v


class RiskLevelBands(BaseModel):
    """Minimum overall score for each coarse risk level.  Below ``medium`` is low."""

    medium: float = Field(default=0.4, ge=0, le=1)
    high: float = Field(default=0.6, ge=0, le=1)
    critical: float = Field(default=0.8, ge=0, le=1)

    @field_validator("high")
    @classmethod
    def high_above_medium(cls, v: float, info) -> float:
        medium = info.data.get("medium")
        if medium is not None and v < medium:
            raise ValueError(f"high ({v}) must be >= medium ({medium})")
        return v

    @field_validator("critical")
    @classmethod
    def critical_above_high(cls, v: float, info) -> float:
        high = info.data.get("high")
        if high is not None and v < high:
            raise ValueError(f"critical ({v}) must be >= high ({high})")
        return v


# ---------------------------------------------------------------------------
# Triage policy
# ---------------------------------------------------------------------------

DEFAULT_SIMILAR_CASE_REFERENCES = [
    "Case #2023-045: Similar conduct concern with colleague referral",
    "Case #2023-122: Competence issue with comparable severity",
    "Case #2024-008: Patient safety concern with similar outcome",
]


class TriagePolicy(BaseModel):
    """Complete configuration for the triage engine and workflow."""

    name: str = Field(default="default", min_length=1)
    outcome_thresholds: OutcomeThresholds = Field(default_factory=OutcomeThresholds)
    risk_level_bands: RiskLevelBands = Field(default_factory=RiskLevelBands)
    confidence_cap: float = Field(
        default=0.95,
        ge=0.6,
        le=0.95,
        description=(
            "Upper bound on engine confidence.  Never below the 0.6 base "
            "confidence and never above 0.95."
        ),
    )
    human_override_confidence: float = Field(
        default=0.95,
        gt=0,
        le=0.95,
        description="Confidence recorded on decisions where a reviewer supplied reasoning.",
    )
    similar_case_references: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SIMILAR_CASE_REFERENCES),
        description="Reference cases shown to reviewers.  Advisory only.",
    )

    @field_validator("similar_case_references")
    @classmethod
    def references_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("similar_case_references must contain at least one case")
        return v


DEFAULT_POLICY = TriagePolicy()
"""Policy with the thresholds currently in use by the triage team."""


# ---------------------------------------------------------------------------
# YAML loader
# ---------------------------------------------------------------------------

def load_policy_from_yaml(path: str | Path) -> TriagePolicy:
    """Load a triage policy from a YAML file.

    The file must contain a top-level ``policy`` mapping::

        policy:
          name: "calibration-2024"
          outcome_thresholds:
            refer_pcc_overall: 0.65
          confidence_cap: 0.9

    Omitted fields take their default values.

    Args:
        path: Path to the YAML file.

    Returns:
        The validated ``TriagePolicy``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the YAML structure is invalid.
        pydantic.ValidationError: If the policy fails validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Policy file not found: {path}")

    with open(path, "r") as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict) or "policy" not in raw:
        raise ValueError("YAML file must contain a top-level 'policy' mapping.")

    entry = raw["policy"]
    if not isinstance(entry, dict):
        raise ValueError("'policy' must be a mapping.")

    policy = TriagePolicy(**entry)
    logger.info("Loaded triage policy '%s' from %s", policy.name, path)
    return policy
