import copy

import pytest

from services.engagement_engine.core.config import ASSETS_DIR
from services.engagement_engine.engine import EngagementEngine
from services.engagement_engine.loader import (
    load_question_catalog_data,
    load_question_catalog_from_file,
    load_workflow_catalog_from_file,
)

QUESTIONS_PATH = ASSETS_DIR / "intake_questions.yml"
WORKFLOW_PATH = ASSETS_DIR / "workflow.yml"

# Two categories, one question of each scored kind, and one follow-up.
# alpha is weighted twice as heavily as beta.
MINIMAL_QUESTION_DATA = {
    "version": "test-1",
    "categories": [
        {"id": "alpha", "name": "Alpha", "weight": 2.0},
        {"id": "beta", "name": "Beta", "weight": 1.0},
    ],
    "questions": [
        {
            "id": "q1", "text": "Single choice?", "type": "single_choice", "category": "alpha", "weight": 2,
            "options": [
                {"id": "q1_low", "label": "Low", "value": "low", "score": 20, "risk_level": "high",
                 "triggers_follow_up": ["f1"]},
                {"id": "q1_mid", "label": "Mid", "value": "mid", "score": 60, "risk_level": "medium"},
                {"id": "q1_top", "label": "Top", "value": "top", "score": 100, "risk_level": "low"},
            ],
        },
        {
            "id": "q2", "text": "Pick any?", "type": "multiple_choice", "category": "alpha", "weight": 1,
            "options": [
                {"id": "q2_x", "label": "X", "value": "x", "score": 40},
                {"id": "q2_y", "label": "Y", "value": "y", "score": 80},
                {"id": "q2_z", "label": "Z", "value": "z", "score": 100, "risk_level": "critical"},
            ],
        },
        {
            "id": "q3", "text": "How much?", "type": "scale", "category": "beta", "weight": 1,
            "scale_min": 0, "scale_max": 10,
        },
    ],
    "follow_up_questions": [
        {
            "id": "f1", "text": "Why low?", "type": "single_choice", "category": "alpha", "weight": 1,
            "parent_question_id": "q1", "trigger_option_value": "low",
            "options": [
                {"id": "f1_yes", "label": "Yes", "value": "yes", "score": 100},
                {"id": "f1_no", "label": "No", "value": "no", "score": 0, "risk_level": "high"},
            ],
        },
    ],
}


@pytest.fixture
def minimal_question_data():
    """A fresh, mutable copy of the minimal catalog data."""
    return copy.deepcopy(MINIMAL_QUESTION_DATA)


@pytest.fixture
def minimal_catalog():
    return load_question_catalog_data(copy.deepcopy(MINIMAL_QUESTION_DATA))


@pytest.fixture(scope="session")
def question_catalog():
    """The packaged intake question catalog."""
    return load_question_catalog_from_file(QUESTIONS_PATH)


@pytest.fixture(scope="session")
def workflow_catalog():
    """The packaged workflow catalog."""
    return load_workflow_catalog_from_file(WORKFLOW_PATH)


@pytest.fixture(scope="session")
def engine(question_catalog, workflow_catalog):
    return EngagementEngine(question_catalog, workflow_catalog)


@pytest.fixture
def best_answers():
    """Top option for every packaged main question."""
    return [
        {"question_id": "data_readiness_1", "value": "cloud_native"},
        {"question_id": "data_readiness_2", "value": "excellent"},
        {"question_id": "process_maturity_1", "value": "fully_documented"},
        {"question_id": "process_maturity_2", "value": "roi_complete"},
        {"question_id": "stakeholder_1", "value": "executive"},
        {"question_id": "stakeholder_2", "value": "eager"},
        {"question_id": "timeline_1", "value": "flexible"},
        {"question_id": "budget_1", "value": "enterprise"},
        {"question_id": "budget_2", "value": "approved"},
        {"question_id": "overall_1", "value": 10},
    ]


@pytest.fixture
def shared_follow_up_catalog(minimal_question_data):
    """Minimal catalog where options x and y of q2 both trigger follow-up f2."""
    options = minimal_question_data["questions"][1]["options"]
    options[0]["triggers_follow_up"] = ["f2"]
    options[1]["triggers_follow_up"] = ["f2"]
    minimal_question_data["follow_up_questions"].append({
        "id": "f2", "text": "Which first?", "type": "single_choice", "category": "alpha", "weight": 1,
        "parent_question_id": "q2", "trigger_option_value": "x",
        "options": [{"id": "f2_a", "label": "A", "value": "a", "score": 100}],
    })
    return load_question_catalog_data(minimal_question_data)
