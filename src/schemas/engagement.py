from typing import List, Optional, Union

from pydantic import BaseModel, Field

from services.engagement_engine.models import (
    Answer,
    ArtifactInput,
    AssessmentStatus,
    FollowUpQuestion,
    IntakeAssessment,
    Question,
    ReadinessPathway,
    StationInput,
)


class AnswersRequest(BaseModel):
    answers: List[Answer] = Field(default_factory=list)


class NextQuestionResponse(BaseModel):
    question: Optional[Union[FollowUpQuestion, Question]] = None
    is_complete: bool
    applicable_follow_ups: List[str] = Field(default_factory=list)


class AssessmentRequest(BaseModel):
    engagement_id: str
    answers: List[Answer] = Field(default_factory=list)
    status: Optional[AssessmentStatus] = None


class OverrideRequest(BaseModel):
    assessment: IntakeAssessment
    pathway: ReadinessPathway
    justification: str
    overridden_by: str


class WorkflowStateRequest(BaseModel):
    artifacts: List[ArtifactInput] = Field(default_factory=list)
    completed_stations: List[StationInput] = Field(default_factory=list)
