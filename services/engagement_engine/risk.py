import logging
from typing import Iterable, List

from services.engagement_engine.models import Answer, Question, RiskProfile

logger = logging.getLogger(__name__)

# Escalation thresholds, evaluated top-down.
HIGH_RISK_ESCALATION_COUNT = 3
CRITICAL_PREFIX = "CRITICAL - "


def determine_risk_level(high_count: int, critical_count: int) -> str:
    if critical_count > 0:
        return "critical"
    if high_count >= HIGH_RISK_ESCALATION_COUNT:
        return "high"
    if high_count >= 1:
        return "medium"
    return "low"


def assess_risk(answers: Iterable[Answer], questions: List[Question]) -> RiskProfile:
    """
    Derives the risk profile from option-level risk annotations.

    Every selected option marked high or critical becomes a factor string
    "{category}: {label}"; critical factors carry the "CRITICAL - " prefix.
    Answers to questions outside ``questions`` are ignored.
    """
    questions_by_id = {q.id: q for q in questions}
    latest = {}
    for answer in answers:
        latest[answer.question_id] = answer

    factors = []
    high_count = 0
    critical_count = 0

    for answer in latest.values():
        question = questions_by_id.get(answer.question_id)
        if question is None or not question.options:
            continue
        for value in answer.selected_values():
            option = question.option_for(value)
            if option is None:
                continue
            if option.risk_level == "high":
                high_count += 1
                factors.append(f"{question.category}: {option.label}")
            elif option.risk_level == "critical":
                critical_count += 1
                factors.append(f"{CRITICAL_PREFIX}{question.category}: {option.label}")

    level = determine_risk_level(high_count, critical_count)
    logger.debug(f"Risk profile: level={level}, high={high_count}, critical={critical_count}")
    return RiskProfile(level=level, factors=factors)
