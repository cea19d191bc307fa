import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from services.engagement_engine.engine import EngagementEngine, get_engine
from services.engagement_engine.models import (
    StageInfo,
    StationAvailability,
    UnknownPathwayError,
    UnknownStationError,
    ValidationResult,
)
from src.schemas.engagement import WorkflowStateRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/workflow/stations/{station_id}/validate", response_model=ValidationResult)
async def validate_station(
    station_id: str,
    request: WorkflowStateRequest,
    engine: EngagementEngine = Depends(get_engine),
):
    """Checks whether a station's prerequisites are met."""
    try:
        return engine.validate_station_prerequisites(station_id, request.artifacts, request.completed_stations)
    except UnknownStationError as e:
        logger.error(f"Station validation failed: {e.args[0]}")
        raise HTTPException(status_code=404, detail=e.args[0])


@router.post("/workflow/pathways/{pathway}/stage", response_model=StageInfo)
async def current_stage(
    pathway: str,
    request: WorkflowStateRequest,
    engine: EngagementEngine = Depends(get_engine),
):
    try:
        return engine.get_current_stage(pathway, request.artifacts)
    except UnknownPathwayError as e:
        logger.error(f"Stage lookup failed: {e.args[0]}")
        raise HTTPException(status_code=404, detail=e.args[0])


@router.post("/workflow/pathways/{pathway}/stations", response_model=List[StationAvailability])
async def available_stations(
    pathway: str,
    request: WorkflowStateRequest,
    engine: EngagementEngine = Depends(get_engine),
):
    """Validates every station of the pathway against the engagement's state."""
    try:
        return engine.get_available_stations(pathway, request.artifacts, request.completed_stations)
    except UnknownPathwayError as e:
        logger.error(f"Station listing failed: {e.args[0]}")
        raise HTTPException(status_code=404, detail=e.args[0])
