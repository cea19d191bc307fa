# Readiness scoring for the intake questionnaire.
# Turns a list of answers into per-category and overall 0-100 scores.

import logging
import math
from typing import Dict, Iterable, List, Optional, Union

from services.engagement_engine.models import (
    Answer,
    AnswerValidation,
    AssessmentScores,
    CategoryScore,
    FollowUpQuestion,
    Question,
    QuestionCatalog,
)
from services.engagement_engine.pathway import recommend_pathway
from services.engagement_engine.risk import assess_risk
from services.engagement_engine.strategies import AggregationStrategy, average_of_selected
from services.engagement_engine.utils import round_half_up

logger = logging.getLogger(__name__)

AnyQuestion = Union[Question, FollowUpQuestion]


def index_answers(answers: Iterable[Answer]) -> Dict[str, Answer]:
    """Keys answers by question id; a later answer to the same question replaces an earlier one."""
    indexed: Dict[str, Answer] = {}
    for answer in answers:
        indexed[answer.question_id] = answer
    return indexed


def get_applicable_follow_ups(
    answers: Iterable[Answer],
    questions: List[Question],
    follow_up_questions: List[FollowUpQuestion],
) -> List[FollowUpQuestion]:
    """
    Returns the follow-up questions triggered by the current answers.

    A follow-up applies when a selected option lists it in ``triggers_follow_up``
    and the follow-up's parent is the answered question. Each follow-up appears
    once, in the order it was first triggered.
    """
    questions_by_id = {q.id: q for q in questions}
    applicable: Dict[str, FollowUpQuestion] = {}

    for answer in index_answers(answers).values():
        question = questions_by_id.get(answer.question_id)
        if question is None or not question.options:
            continue
        for value in answer.selected_values():
            option = question.option_for(value)
            if option is None or not option.triggers_follow_up:
                continue
            for follow_up in follow_up_questions:
                if (
                    follow_up.id in option.triggers_follow_up
                    and follow_up.parent_question_id == question.id
                    and follow_up.id not in applicable
                ):
                    applicable[follow_up.id] = follow_up

    return list(applicable.values())


def get_applicable_questions(answers: Iterable[Answer], catalog: QuestionCatalog) -> List[AnyQuestion]:
    """Catalog questions followed by the follow-ups the answers currently trigger."""
    follow_ups = get_applicable_follow_ups(answers, catalog.questions, catalog.follow_up_questions)
    return list(catalog.questions) + follow_ups


def _scale_score(answer: Answer, question: AnyQuestion) -> float:
    if isinstance(answer.value, list) or isinstance(answer.value, bool):
        return 0.0
    try:
        value = float(answer.value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    span = question.scale_max - question.scale_min
    normalized = (value - question.scale_min) / span * 100
    return max(0.0, min(100.0, normalized))


def _is_scored_scale(question: AnyQuestion) -> bool:
    return (
        not question.options
        and question.type == "scale"
        and question.scale_min is not None
        and question.scale_max is not None
        and question.scale_max > question.scale_min
    )


def get_answer_score(
    answer: Answer,
    question: AnyQuestion,
    strategy: AggregationStrategy = average_of_selected,
) -> float:
    """
    Raw 0-100 score for one answer.

    Multi-valued answers are combined with ``strategy``; values that match no
    option are ignored. Scale questions without options score linearly across
    their range. Free-text and numeric questions score 0.
    """
    if question.options:
        if isinstance(answer.value, list):
            selected = [question.option_for(v) for v in answer.value]
            return strategy([o.score for o in selected if o is not None])
        values = answer.selected_values()
        option = question.option_for(values[0]) if values else None
        return option.score if option is not None else 0.0
    if _is_scored_scale(question):
        return _scale_score(answer, question)
    return 0.0


def get_question_max_score(question: AnyQuestion) -> float:
    if question.options:
        return max(o.score for o in question.options)
    if _is_scored_scale(question):
        return 100.0
    return 0.0


def calculate_category_scores(
    answers: Iterable[Answer],
    questions: List[AnyQuestion],
    catalog: QuestionCatalog,
    strategy: AggregationStrategy = average_of_selected,
) -> List[CategoryScore]:
    """Scores each category of ``questions`` on a 0-100 scale, in first-seen category order."""
    answers_by_id = index_answers(answers)
    categories: Dict[str, List[AnyQuestion]] = {}
    for question in questions:
        categories.setdefault(question.category, []).append(question)

    category_scores = []
    for category, category_questions in categories.items():
        weighted_sum = 0.0
        max_possible = 0.0
        answered_count = 0

        for question in category_questions:
            answer = answers_by_id.get(question.id)
            if answer is not None:
                answered_count += 1
                weighted_sum += get_answer_score(answer, question, strategy) * question.weight
            max_possible += get_question_max_score(question) * question.weight

        score = round_half_up(weighted_sum / max_possible * 100) if max_possible > 0 else 0
        category_scores.append(CategoryScore(
            category=category,
            score=score,
            weight=catalog.category_weight(category),
            answered_count=answered_count,
            total_questions=len(category_questions),
        ))

    return category_scores


def calculate_overall_score(category_scores: List[CategoryScore]) -> int:
    weighted_sum = 0.0
    total_weight = 0.0
    for category in category_scores:
        weighted_sum += category.score * category.weight
        total_weight += category.weight
    return round_half_up(weighted_sum / total_weight) if total_weight > 0 else 0


def calculate_assessment_score(
    answers: Iterable[Answer],
    catalog: QuestionCatalog,
    strategy: AggregationStrategy = average_of_selected,
) -> AssessmentScores:
    """
    Scores a (possibly partial) set of intake answers.

    Answers to unknown questions, or to follow-ups that are not currently
    triggered, are ignored. The result is fully derived from the inputs.
    """
    answers = list(answers)
    questions = get_applicable_questions(answers, catalog)
    answers_by_id = index_answers(answers)

    category_scores = calculate_category_scores(answers, questions, catalog, strategy)
    overall_score = calculate_overall_score(category_scores)
    risk_profile = assess_risk(answers, questions)
    recommendation = recommend_pathway(overall_score, risk_profile, category_scores)

    answered = sum(1 for q in questions if q.id in answers_by_id)
    total = len(questions)
    completion = round_half_up(answered / total * 100) if total > 0 else 0

    logger.debug(
        f"Scored {answered}/{total} answers: overall={overall_score}, risk={risk_profile.level}, "
        f"pathway={recommendation.pathway}"
    )
    return AssessmentScores(
        overall_score=overall_score,
        category_scores=category_scores,
        risk_profile=risk_profile,
        pathway_recommendation=recommendation,
        answered_questions=answered,
        total_questions=total,
        completion_percentage=completion,
    )


def get_next_question(answers: Iterable[Answer], catalog: QuestionCatalog) -> Optional[AnyQuestion]:
    """First unanswered catalog question, then the first unanswered triggered follow-up."""
    answers = list(answers)
    answered_ids = set(index_answers(answers))

    for question in catalog.questions:
        if question.id not in answered_ids:
            return question

    for follow_up in get_applicable_follow_ups(answers, catalog.questions, catalog.follow_up_questions):
        if follow_up.id not in answered_ids:
            return follow_up

    return None


def is_assessment_complete(answers: Iterable[Answer], catalog: QuestionCatalog) -> bool:
    return get_next_question(answers, catalog) is None


def validate_answers(answers: Iterable[Answer], questions: List[AnyQuestion]) -> AnswerValidation:
    answered_ids = set(index_answers(answers))
    missing = [q.id for q in questions if q.id not in answered_ids]
    return AnswerValidation(valid=not missing, missing_questions=missing)


def get_questions_by_category(category: str, questions: List[AnyQuestion]) -> List[AnyQuestion]:
    return [q for q in questions if q.category == category]
