import logging

from fastapi import APIRouter, Depends, HTTPException

from services.engagement_engine.engine import EngagementEngine, get_engine
from services.engagement_engine.models import (
    AssessmentScores,
    IntakeAssessment,
    InvalidOverrideError,
    QuestionCatalog,
)
from src.schemas.engagement import (
    AnswersRequest,
    AssessmentRequest,
    NextQuestionResponse,
    OverrideRequest,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/intake/questions", response_model=QuestionCatalog)
async def list_questions(engine: EngagementEngine = Depends(get_engine)):
    """Returns the intake question catalog: categories, questions and follow-ups."""
    return engine.question_catalog


@router.post("/intake/score", response_model=AssessmentScores)
async def score_answers(request: AnswersRequest, engine: EngagementEngine = Depends(get_engine)):
    """Scores a (possibly partial) set of answers and recommends a readiness pathway."""
    try:
        return engine.calculate_assessment_score(request.answers)
    except Exception as e:
        logger.exception(f"Unexpected error while scoring intake answers: {e}")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/intake/next-question", response_model=NextQuestionResponse)
async def next_question(request: AnswersRequest, engine: EngagementEngine = Depends(get_engine)):
    question = engine.get_next_question(request.answers)
    follow_ups = engine.get_applicable_follow_ups(request.answers)
    return NextQuestionResponse(
        question=question,
        is_complete=question is None,
        applicable_follow_ups=[f.id for f in follow_ups],
    )


@router.post("/intake/assessment", response_model=IntakeAssessment)
async def build_assessment(request: AssessmentRequest, engine: EngagementEngine = Depends(get_engine)):
    try:
        return engine.build_assessment(request.engagement_id, request.answers, request.status)
    except Exception as e:
        logger.exception(f"Unexpected error building assessment for {request.engagement_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/intake/override", response_model=IntakeAssessment)
async def override_pathway(request: OverrideRequest, engine: EngagementEngine = Depends(get_engine)):
    """Records a consultant override of the recommended readiness pathway."""
    try:
        return engine.apply_pathway_override(
            request.assessment,
            request.pathway,
            request.justification,
            request.overridden_by,
        )
    except InvalidOverrideError as e:
        logger.error(f"Rejected pathway override for {request.assessment.engagement_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
