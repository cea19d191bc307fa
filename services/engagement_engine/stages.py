import logging
from typing import Iterable, List

from services.engagement_engine.models import (
    ACTIVE_ARTIFACT_STATUSES,
    ArtifactInput,
    StageInfo,
    UnknownPathwayError,
    WorkflowCatalog,
)
from services.engagement_engine.workflow import get_pathway_stages

logger = logging.getLogger(__name__)


def get_current_stage(
    pathway: str,
    artifacts: Iterable[ArtifactInput],
    catalog: WorkflowCatalog,
) -> StageInfo:
    """
    Locates an engagement within its pathway.

    The latest stage whose required artifacts are all present counts as done,
    so the engagement sits in the stage after it (or stays in the final stage).
    Stages with no required artifacts never mark progress. With nothing done
    the engagement is in stage 1.
    """
    stages = get_pathway_stages(pathway, catalog)

    completed: List[str] = []
    for artifact in artifacts:
        if artifact.status in ACTIVE_ARTIFACT_STATUSES and artifact.template_id not in completed:
            completed.append(artifact.template_id)
    present = set(completed)

    if not stages:
        raise UnknownPathwayError(f"Service pathway '{pathway}' defines no stages")

    # Indexed by list position; only the loader checks stage numbering.
    current_index = 0
    for index in range(len(stages) - 1, -1, -1):
        required = stages[index].required_artifacts
        if required and all(t in present for t in required):
            current_index = min(index + 1, len(stages) - 1)
            break

    stage = stages[current_index]
    current = current_index + 1
    logger.debug(f"Pathway {pathway} is at stage {current} ({stage.name})")
    return StageInfo(
        stage_number=current,
        stage_name=stage.name,
        completed_artifacts=completed,
        next_artifacts=list(stage.output_artifacts),
    )
