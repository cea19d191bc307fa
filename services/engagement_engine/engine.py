import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Iterable, List, Optional, Union

from services.engagement_engine import pathway as pathway_recommender
from services.engagement_engine import risk, scorer, stages, weights, workflow
from services.engagement_engine.core.config import EngineSettings, get_settings
from services.engagement_engine.loader import (
    load_question_catalog_from_file,
    load_workflow_catalog_from_file,
)
from services.engagement_engine.models import (
    Answer,
    AnswerValidation,
    ArtifactInput,
    AssessmentScores,
    CategoryScore,
    FollowUpQuestion,
    IntakeAssessment,
    PathwayRecommendation,
    Question,
    QuestionCatalog,
    RiskProfile,
    StageInfo,
    StationAvailability,
    StationInput,
    ValidationResult,
    WorkflowCatalog,
)
from services.engagement_engine.strategies import AggregationStrategy, average_of_selected, get_strategy

logger = logging.getLogger(__name__)

EMPTY_RATIONALE = "Assessment not yet complete"


def _as_models(model, items: Optional[Iterable[Any]]) -> List[Any]:
    return [item if isinstance(item, model) else model.model_validate(item) for item in items or []]


class EngagementEngine:
    """
    Entry point for intake scoring and workflow gatekeeping.

    Holds the two catalogs and the multi-select aggregation strategy; every
    method is a pure computation over its arguments and those catalogs.
    Answers, artifacts and station runs may be passed as models or plain dicts.
    """

    def __init__(
        self,
        question_catalog: QuestionCatalog,
        workflow_catalog: WorkflowCatalog,
        strategy: AggregationStrategy = average_of_selected,
    ):
        self.question_catalog = question_catalog
        self.workflow_catalog = workflow_catalog
        self.strategy = strategy

    @classmethod
    def from_settings(cls, settings: Optional[EngineSettings] = None) -> "EngagementEngine":
        """Loads both catalogs from the configured YAML paths."""
        settings = settings or get_settings()
        logger.info(
            f"Initializing engagement engine (strategy={settings.multi_select_strategy})"
        )
        return cls(
            question_catalog=load_question_catalog_from_file(settings.questions_path),
            workflow_catalog=load_workflow_catalog_from_file(settings.workflow_path),
            strategy=get_strategy(settings.multi_select_strategy),
        )

    # --- Intake ---

    def calculate_assessment_score(self, answers: Iterable[Union[Answer, dict]]) -> AssessmentScores:
        return scorer.calculate_assessment_score(_as_models(Answer, answers), self.question_catalog, self.strategy)

    def is_assessment_complete(self, answers: Iterable[Union[Answer, dict]]) -> bool:
        return scorer.is_assessment_complete(_as_models(Answer, answers), self.question_catalog)

    def get_next_question(self, answers: Iterable[Union[Answer, dict]]) -> Optional[Question]:
        return scorer.get_next_question(_as_models(Answer, answers), self.question_catalog)

    def get_applicable_follow_ups(self, answers: Iterable[Union[Answer, dict]]) -> List[FollowUpQuestion]:
        return scorer.get_applicable_follow_ups(
            _as_models(Answer, answers),
            self.question_catalog.questions,
            self.question_catalog.follow_up_questions,
        )

    def get_applicable_questions(self, answers: Iterable[Union[Answer, dict]]) -> List[Question]:
        return scorer.get_applicable_questions(_as_models(Answer, answers), self.question_catalog)

    def validate_answers(
        self,
        answers: Iterable[Union[Answer, dict]],
        questions: Optional[List[Question]] = None,
    ) -> AnswerValidation:
        """Lists unanswered questions; defaults to every currently applicable question."""
        answers = _as_models(Answer, answers)
        if questions is None:
            questions = scorer.get_applicable_questions(answers, self.question_catalog)
        return scorer.validate_answers(answers, questions)

    def get_questions_by_category(self, category: str) -> List[Question]:
        return scorer.get_questions_by_category(category, self.question_catalog.questions)

    def assess_risk(self, answers: Iterable[Union[Answer, dict]]) -> RiskProfile:
        answers = _as_models(Answer, answers)
        return risk.assess_risk(answers, scorer.get_applicable_questions(answers, self.question_catalog))

    def recommend_pathway(
        self,
        overall_score: int,
        risk_profile: RiskProfile,
        category_scores: List[CategoryScore],
    ) -> PathwayRecommendation:
        return pathway_recommender.recommend_pathway(overall_score, risk_profile, category_scores)

    def create_empty_assessment(self, engagement_id: str) -> IntakeAssessment:
        scores = AssessmentScores(
            overall_score=0,
            category_scores=[],
            risk_profile=RiskProfile(level="low", factors=[]),
            pathway_recommendation=PathwayRecommendation(
                pathway="standard",
                confidence=0,
                rationale=EMPTY_RATIONALE,
                estimated_duration=pathway_recommender.get_estimated_duration("standard"),
                focus_areas=[],
            ),
            answered_questions=0,
            total_questions=len(self.question_catalog.questions),
            completion_percentage=0,
        )
        return IntakeAssessment(
            engagement_id=engagement_id,
            answers=[],
            scores=scores,
            recommended_pathway="standard",
            status="in_progress",
        )

    def build_assessment(
        self,
        engagement_id: str,
        answers: Iterable[Union[Answer, dict]],
        status: Optional[str] = None,
    ) -> IntakeAssessment:
        """
        Scores ``answers`` into an assessment record.

        Without an explicit status the assessment is "completed" once every
        applicable question is answered and "in_progress" before that.
        """
        answers = _as_models(Answer, answers)
        scores = self.calculate_assessment_score(answers)
        if status is None:
            status = "completed" if scores.completion_percentage == 100 else "in_progress"
        completed_at = datetime.now(timezone.utc) if status == "completed" else None
        logger.info(
            f"Built assessment for {engagement_id}: status={status}, "
            f"pathway={scores.pathway_recommendation.pathway}"
        )
        return IntakeAssessment(
            engagement_id=engagement_id,
            answers=answers,
            scores=scores,
            recommended_pathway=scores.pathway_recommendation.pathway,
            status=status,
            completed_at=completed_at,
        )

    def apply_pathway_override(
        self,
        assessment: IntakeAssessment,
        pathway: str,
        justification: str,
        overridden_by: str,
        overridden_at: Optional[datetime] = None,
    ) -> IntakeAssessment:
        return pathway_recommender.apply_pathway_override(
            assessment, pathway, justification, overridden_by, overridden_at
        )

    def with_weight_overrides(self, question_weights=None, category_weights=None) -> "EngagementEngine":
        """A new engine whose question catalog carries the given weight overrides."""
        catalog = weights.apply_weight_overrides(self.question_catalog, question_weights, category_weights)
        return EngagementEngine(catalog, self.workflow_catalog, self.strategy)

    # --- Workflow ---

    def validate_station_prerequisites(
        self,
        station_id: str,
        artifacts: Iterable[Union[ArtifactInput, dict]],
        completed_stations: Iterable[Union[StationInput, dict]],
    ) -> ValidationResult:
        return workflow.validate_station_prerequisites(
            station_id,
            _as_models(ArtifactInput, artifacts),
            _as_models(StationInput, completed_stations),
            self.workflow_catalog,
        )

    def get_current_stage(self, pathway: str, artifacts: Iterable[Union[ArtifactInput, dict]]) -> StageInfo:
        return stages.get_current_stage(pathway, _as_models(ArtifactInput, artifacts), self.workflow_catalog)

    def get_available_stations(
        self,
        pathway: str,
        artifacts: Iterable[Union[ArtifactInput, dict]],
        completed_stations: Iterable[Union[StationInput, dict]],
    ) -> List[StationAvailability]:
        return workflow.get_available_stations(
            pathway,
            _as_models(ArtifactInput, artifacts),
            _as_models(StationInput, completed_stations),
            self.workflow_catalog,
        )


@lru_cache
def get_engine() -> EngagementEngine:
    return EngagementEngine.from_settings()
