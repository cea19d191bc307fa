from datetime import datetime
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

QuestionType = Literal["single_choice", "multiple_choice", "scale", "text", "number"]
RiskLevel = Literal["low", "medium", "high", "critical"]
ReadinessPathway = Literal["accelerated", "standard", "extended"]
ServicePathway = Literal["knowledge_spine", "roi_audit", "workflow_sprint"]
ArtifactStatus = Literal["draft", "approved", "pending_review", "archived", "rejected"]
StationStatus = Literal[
    "pending", "running", "complete", "awaiting_approval", "approved", "rejected", "failed"
]
ArtifactScope = Literal["client", "engagement"]
AssessmentStatus = Literal["in_progress", "completed", "reviewed"]

# Artifacts in these states satisfy a requirement; archived/rejected never do.
ACTIVE_ARTIFACT_STATUSES = frozenset({"draft", "approved", "pending_review"})
# A predecessor station counts as done only in these states.
COMPLETED_STATION_STATUSES = frozenset({"approved", "complete"})

AnswerValue = Union[List[str], int, float, str]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- Question catalog ---

class QuestionOption(_Frozen):
    id: str
    label: str
    value: str
    score: float = Field(..., ge=0, le=100)
    description: Optional[str] = None
    risk_level: Optional[RiskLevel] = None
    triggers_follow_up: List[str] = Field(default_factory=list)


class ScaleLabels(_Frozen):
    min: str
    max: str


class Question(_Frozen):
    id: str
    text: str
    type: QuestionType
    category: str
    weight: float = Field(..., ge=1, le=5)
    options: List[QuestionOption] = Field(default_factory=list)
    scale_min: Optional[float] = None
    scale_max: Optional[float] = None
    scale_labels: Optional[ScaleLabels] = None
    help_text: Optional[str] = None
    required: bool = True
    order: Optional[int] = None

    def option_for(self, value: str) -> Optional[QuestionOption]:
        for option in self.options:
            if option.value == value:
                return option
        return None


class FollowUpQuestion(Question):
    parent_question_id: str
    trigger_option_value: str
    impact_multiplier: float = 1.0


class CategoryDefinition(_Frozen):
    id: str
    name: str
    description: str = ""
    weight: float = Field(1.0, gt=0)
    default_weight: int = 2
    icon: Optional[str] = None


class QuestionCatalog(_Frozen):
    version: str
    categories: List[CategoryDefinition]
    questions: List[Question]
    follow_up_questions: List[FollowUpQuestion] = Field(default_factory=list)

    def category_weight(self, category: str) -> float:
        for definition in self.categories:
            if definition.id == category:
                return definition.weight
        return 1.0


# --- Answers and derived scores ---

class Answer(BaseModel):
    question_id: str
    value: AnswerValue
    notes: Optional[str] = None
    answered_at: Optional[datetime] = None

    def selected_values(self) -> List[str]:
        """Option values picked by this answer; numeric answers select none."""
        if isinstance(self.value, list):
            return list(self.value)
        if isinstance(self.value, str):
            return [self.value]
        return []


class CategoryScore(BaseModel):
    category: str
    score: int
    weight: float
    max_score: int = 100
    answered_count: int
    total_questions: int


class RiskProfile(BaseModel):
    level: RiskLevel = "low"
    factors: List[str] = Field(default_factory=list)


class EstimatedDuration(BaseModel):
    weeks: int
    label: str


class PathwayRecommendation(BaseModel):
    pathway: ReadinessPathway
    confidence: int
    rationale: str
    estimated_duration: EstimatedDuration
    focus_areas: List[str] = Field(default_factory=list)
    adjusted_score: int = 0


class AssessmentScores(BaseModel):
    overall_score: int
    category_scores: List[CategoryScore]
    risk_profile: RiskProfile
    pathway_recommendation: PathwayRecommendation
    answered_questions: int
    total_questions: int
    completion_percentage: int


class AnswerValidation(BaseModel):
    valid: bool
    missing_questions: List[str]


class PathwayOverride(BaseModel):
    original_pathway: ReadinessPathway
    new_pathway: ReadinessPathway
    justification: str
    overridden_by: str
    overridden_at: datetime


class IntakeAssessment(BaseModel):
    engagement_id: str
    answers: List[Answer] = Field(default_factory=list)
    scores: AssessmentScores
    recommended_pathway: ReadinessPathway
    override: Optional[PathwayOverride] = None
    status: AssessmentStatus = "in_progress"
    completed_at: Optional[datetime] = None

    @computed_field
    @property
    def effective_pathway(self) -> ReadinessPathway:
        if self.override is not None:
            return self.override.new_pathway
        return self.recommended_pathway


class QuestionWeightOverride(BaseModel):
    question_id: str
    weight: float = Field(..., ge=1, le=5)
    is_active: bool = True


class CategoryWeightOverride(BaseModel):
    category: str
    weight: float = Field(..., ge=0.1, le=2.0)
    display_name: Optional[str] = None
    description: Optional[str] = None
    display_order: int = 0


# --- Workflow catalog ---

class TemplateMetadata(_Frozen):
    template_id: str
    name: str
    stage: Literal["intake", "discovery", "scoping", "delivery", "handoff"]
    tier: Literal["T1", "T2"]
    scope: ArtifactScope
    description: str = ""


class StationRequirement(_Frozen):
    station_id: str
    name: str
    description: str = ""
    scope: ArtifactScope
    required_artifacts: List[str] = Field(default_factory=list)
    optional_artifacts: List[str] = Field(default_factory=list)
    output_artifacts: List[str] = Field(default_factory=list)
    previous_station: Optional[str] = None


class WorkflowStage(_Frozen):
    stage: int = Field(..., ge=1)
    name: str
    description: str = ""
    stations: List[str] = Field(default_factory=list)
    required_artifacts: List[str] = Field(default_factory=list)
    output_artifacts: List[str] = Field(default_factory=list)


class WorkflowCatalog(_Frozen):
    version: str
    templates: Dict[str, TemplateMetadata]
    stations: Dict[str, StationRequirement]
    pathways: Dict[ServicePathway, List[WorkflowStage]]


class ArtifactInput(BaseModel):
    template_id: str
    status: ArtifactStatus
    scope: Optional[ArtifactScope] = None


class StationInput(BaseModel):
    station_id: str
    status: StationStatus
    scope: Optional[ArtifactScope] = None


class ValidationResult(BaseModel):
    can_run: bool = True
    missing_artifacts: List[str] = Field(default_factory=list)
    missing_stations: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class StageInfo(BaseModel):
    stage_number: int
    stage_name: str
    completed_artifacts: List[str]
    next_artifacts: List[str]


class StationAvailability(BaseModel):
    station_id: str
    can_run: bool
    validation: ValidationResult


# --- Errors ---

class CatalogConfigurationError(ValueError):
    """Raised when a question or workflow catalog is internally inconsistent."""
    pass


class InvalidOverrideError(ValueError):
    """Raised for a pathway override or weight change that fails validation."""
    pass


class UnknownStationError(KeyError):
    """Raised when a station id is not defined in the workflow catalog."""
    pass


class UnknownPathwayError(KeyError):
    """Raised when a service pathway has no workflow definition."""
    pass
