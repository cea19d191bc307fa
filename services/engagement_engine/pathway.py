"""
Readiness pathway recommendation.

Combines the overall readiness score with the risk profile to pick one of the
three delivery pathways, and records the consultant overrides applied on top
of that recommendation.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

import numpy as np

from services.engagement_engine.models import (
    CategoryScore,
    EstimatedDuration,
    IntakeAssessment,
    InvalidOverrideError,
    PathwayOverride,
    PathwayRecommendation,
    RiskProfile,
)
from services.engagement_engine.utils import round_half_up

logger = logging.getLogger(__name__)

RISK_WEIGHTS: Dict[str, float] = {
    "low": 1.0,
    "medium": 0.85,
    "high": 0.7,
    "critical": 0.5,
}

# Minimum risk-adjusted score for each pathway, checked top-down.
PATHWAY_THRESHOLDS: Dict[str, int] = {
    "accelerated": 75,
    "standard": 50,
}

DURATIONS: Dict[str, EstimatedDuration] = {
    "accelerated": EstimatedDuration(weeks=8, label="6-8 weeks"),
    "standard": EstimatedDuration(weeks=12, label="10-14 weeks"),
    "extended": EstimatedDuration(weeks=20, label="16-24 weeks"),
}

RATIONALES: Dict[str, str] = {
    "critical": "Critical risk factors require extended timeline for proper mitigation",
    "accelerated": "Strong readiness across all categories supports accelerated implementation",
    "standard": "Moderate readiness suggests standard implementation timeline",
    "extended": "Lower readiness scores indicate need for extended preparation",
}

FOCUS_AREA_COUNT = 2
FOCUS_AREA_THRESHOLD = 60
MIN_JUSTIFICATION_LENGTH = 10


def calculate_confidence(category_scores: List[CategoryScore]) -> int:
    """Higher when category scores agree; 100 minus twice their population stddev."""
    if not category_scores:
        return 0
    spread = float(np.std([c.score for c in category_scores]))
    return round_half_up(max(0.0, min(100.0, 100 - spread * 2)))


def get_estimated_duration(pathway: str) -> EstimatedDuration:
    return DURATIONS[pathway].model_copy()


def get_focus_areas(category_scores: List[CategoryScore]) -> List[str]:
    lowest = sorted(category_scores, key=lambda c: c.score)[:FOCUS_AREA_COUNT]
    return [c.category for c in lowest if c.score < FOCUS_AREA_THRESHOLD]


def recommend_pathway(
    overall_score: int,
    risk_profile: RiskProfile,
    category_scores: List[CategoryScore],
) -> PathwayRecommendation:
    adjusted = round_half_up(overall_score * RISK_WEIGHTS[risk_profile.level])

    if risk_profile.level == "critical":
        pathway = "extended"
        rationale = RATIONALES["critical"]
    elif adjusted >= PATHWAY_THRESHOLDS["accelerated"]:
        pathway = "accelerated"
        rationale = RATIONALES["accelerated"]
    elif adjusted >= PATHWAY_THRESHOLDS["standard"]:
        pathway = "standard"
        rationale = RATIONALES["standard"]
    else:
        pathway = "extended"
        rationale = RATIONALES["extended"]

    focus_areas = get_focus_areas(category_scores)
    if focus_areas and pathway != "accelerated":
        rationale = f"{rationale}. Focus areas: {', '.join(focus_areas)}"

    logger.debug(
        f"Pathway {pathway}: overall={overall_score}, adjusted={adjusted}, risk={risk_profile.level}"
    )
    return PathwayRecommendation(
        pathway=pathway,
        confidence=calculate_confidence(category_scores),
        rationale=rationale,
        estimated_duration=get_estimated_duration(pathway),
        focus_areas=focus_areas,
        adjusted_score=adjusted,
    )


def apply_pathway_override(
    assessment: IntakeAssessment,
    pathway: str,
    justification: str,
    overridden_by: str,
    overridden_at: Optional[datetime] = None,
) -> IntakeAssessment:
    """
    Returns a copy of ``assessment`` carrying a consultant override.

    The justification must hold at least 10 characters once surrounding
    whitespace is removed. The original assessment is left untouched.
    """
    justification = (justification or "").strip()
    if len(justification) < MIN_JUSTIFICATION_LENGTH:
        raise InvalidOverrideError(
            f"Override justification must be at least {MIN_JUSTIFICATION_LENGTH} characters"
        )
    if pathway not in DURATIONS:
        raise InvalidOverrideError(f"Unknown readiness pathway '{pathway}'")

    override = PathwayOverride(
        original_pathway=assessment.recommended_pathway,
        new_pathway=pathway,
        justification=justification,
        overridden_by=overridden_by,
        overridden_at=overridden_at or datetime.now(timezone.utc),
    )
    logger.info(
        f"Pathway override for {assessment.engagement_id}: "
        f"{override.original_pathway} -> {override.new_pathway} by {overridden_by}"
    )
    return assessment.model_copy(update={"override": override})
