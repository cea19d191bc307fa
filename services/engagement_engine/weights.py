import logging
from typing import Any, Dict, Iterable, Optional, Union

from pydantic import ValidationError

from services.engagement_engine.models import (
    CatalogConfigurationError,
    CategoryWeightOverride,
    InvalidOverrideError,
    QuestionCatalog,
    QuestionWeightOverride,
)

logger = logging.getLogger(__name__)


def _coerce(model, item: Union[Dict[str, Any], Any]):
    if isinstance(item, model):
        return item
    try:
        return model.model_validate(item)
    except ValidationError as e:
        raise InvalidOverrideError(f"Invalid {model.__name__}: {e}")


def apply_weight_overrides(
    catalog: QuestionCatalog,
    question_weights: Optional[Iterable[Any]] = None,
    category_weights: Optional[Iterable[Any]] = None,
) -> QuestionCatalog:
    """
    Returns a new catalog with administrator weight overrides applied.

    Question weights must lie in 1-5 and category weights in 0.1-2.0; values
    outside those ranges raise InvalidOverrideError. Inactive question
    overrides are skipped. Overrides naming a question or category the catalog
    does not define raise CatalogConfigurationError. ``catalog`` is unchanged.
    """
    question_updates: Dict[str, float] = {}
    for item in question_weights or []:
        override = _coerce(QuestionWeightOverride, item)
        if override.is_active:
            question_updates[override.question_id] = override.weight

    category_updates: Dict[str, CategoryWeightOverride] = {}
    for item in category_weights or []:
        override = _coerce(CategoryWeightOverride, item)
        category_updates[override.category] = override

    known_questions = {q.id for q in catalog.questions} | {f.id for f in catalog.follow_up_questions}
    for question_id in question_updates:
        if question_id not in known_questions:
            raise CatalogConfigurationError(f"Weight override references unknown question '{question_id}'")

    known_categories = {c.id for c in catalog.categories}
    for category in category_updates:
        if category not in known_categories:
            raise CatalogConfigurationError(f"Weight override references unknown category '{category}'")

    def _reweigh(question):
        if question.id in question_updates:
            return question.model_copy(update={"weight": question_updates[question.id]})
        return question

    categories = []
    for definition in catalog.categories:
        override = category_updates.get(definition.id)
        if override is None:
            categories.append(definition)
            continue
        update: Dict[str, Any] = {"weight": override.weight}
        if override.display_name:
            update["name"] = override.display_name
        if override.description is not None:
            update["description"] = override.description
        categories.append(definition.model_copy(update=update))

    logger.info(
        f"Applied {len(question_updates)} question and {len(category_updates)} category weight overrides"
    )
    return catalog.model_copy(update={
        "categories": categories,
        "questions": [_reweigh(q) for q in catalog.questions],
        "follow_up_questions": [_reweigh(f) for f in catalog.follow_up_questions],
    })
