# Station gatekeeping for the delivery workflow.
# A station may run only when its required artifacts exist in an active state
# and its predecessor station has been approved or completed.

import logging
from typing import Iterable, List, Set

from services.engagement_engine.models import (
    ACTIVE_ARTIFACT_STATUSES,
    COMPLETED_STATION_STATUSES,
    ArtifactInput,
    StationAvailability,
    StationInput,
    UnknownPathwayError,
    UnknownStationError,
    ValidationResult,
    WorkflowCatalog,
    WorkflowStage,
)

logger = logging.getLogger(__name__)


def active_template_ids(artifacts: Iterable[ArtifactInput]) -> Set[str]:
    return {a.template_id for a in artifacts if a.status in ACTIVE_ARTIFACT_STATUSES}


def get_pathway_stages(pathway: str, catalog: WorkflowCatalog) -> List[WorkflowStage]:
    try:
        return catalog.pathways[pathway]
    except KeyError:
        raise UnknownPathwayError(f"Unknown service pathway '{pathway}'")


def validate_station_prerequisites(
    station_id: str,
    artifacts: Iterable[ArtifactInput],
    completed_stations: Iterable[StationInput],
    catalog: WorkflowCatalog,
) -> ValidationResult:
    """
    Checks whether ``station_id`` can run given the engagement's artifacts and
    station history.

    Missing required artifacts and an incomplete predecessor block the run.
    Missing optional artifacts only add a warning.
    """
    requirement = catalog.stations.get(station_id)
    if requirement is None:
        raise UnknownStationError(f"Unknown station '{station_id}'")

    present = active_template_ids(artifacts)
    finished = {s.station_id for s in completed_stations if s.status in COMPLETED_STATION_STATUSES}
    result = ValidationResult()

    for template_id in requirement.required_artifacts:
        if template_id in present:
            continue
        result.missing_artifacts.append(template_id)
        result.can_run = False
        template = catalog.templates[template_id]
        if template.scope == "client":
            result.warnings.append(f"{template.name} should be created at the Client level")

    previous = requirement.previous_station
    if previous is not None and previous not in finished:
        result.missing_stations.append(previous)
        result.can_run = False
        predecessor = catalog.stations[previous]
        if predecessor.scope == "client":
            result.warnings.append(f"{predecessor.name} must be run at the Client level first")

    for template_id in requirement.optional_artifacts:
        if template_id not in present:
            template = catalog.templates[template_id]
            result.warnings.append(
                f"Optional: {template.name} ({template_id}) not found - output may be less detailed"
            )

    logger.debug(
        f"Station {station_id}: can_run={result.can_run}, missing_artifacts={result.missing_artifacts}, "
        f"missing_stations={result.missing_stations}"
    )
    return result


def get_available_stations(
    pathway: str,
    artifacts: Iterable[ArtifactInput],
    completed_stations: Iterable[StationInput],
    catalog: WorkflowCatalog,
) -> List[StationAvailability]:
    """Validates every station of a pathway, in order of first appearance across its stages."""
    stages = get_pathway_stages(pathway, catalog)
    artifacts = list(artifacts)
    completed_stations = list(completed_stations)

    station_ids: List[str] = []
    for stage in stages:
        for station_id in stage.stations:
            if station_id not in station_ids:
                station_ids.append(station_id)

    availability = []
    for station_id in station_ids:
        validation = validate_station_prerequisites(station_id, artifacts, completed_stations, catalog)
        availability.append(StationAvailability(
            station_id=station_id,
            can_run=validation.can_run,
            validation=validation,
        ))
    return availability
