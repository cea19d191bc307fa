import pytest
import yaml
from pathlib import Path
from pydantic import ValidationError

from services.engagement_engine.loader import (
    load_question_catalog_data,
    load_question_catalog_from_file,
    load_workflow_catalog_data,
    load_workflow_catalog_from_file,
)
from services.engagement_engine.core.config import ASSETS_DIR
from services.engagement_engine.models import CatalogConfigurationError

WORKFLOW_PATH = ASSETS_DIR / "workflow.yml"


def create_temp_yaml(tmp_path: Path, filename: str, content) -> Path:
    filepath = tmp_path / filename
    with open(filepath, 'w') as f:
        yaml.dump(content, f)
    return filepath


@pytest.fixture
def workflow_data():
    with open(WORKFLOW_PATH, 'r') as f:
        return yaml.safe_load(f)


# --- Packaged catalogs ---

def test_packaged_question_catalog_loads(question_catalog):
    assert len(question_catalog.categories) == 8
    assert len(question_catalog.questions) == 10
    assert len(question_catalog.follow_up_questions) == 7
    assert question_catalog.category_weight("data_readiness") == 1.2


def test_packaged_workflow_catalog_loads(workflow_catalog):
    assert set(workflow_catalog.pathways) == {"knowledge_spine", "roi_audit", "workflow_sprint"}
    assert all(len(stages) == 5 for stages in workflow_catalog.pathways.values())
    assert workflow_catalog.stations["S-02"].previous_station == "S-01"
    assert workflow_catalog.templates["TPL-01"].scope == "client"
    assert workflow_catalog.templates["TPL-03"].tier == "T2"


def test_catalog_models_are_frozen(question_catalog):
    with pytest.raises(ValidationError):
        question_catalog.questions[0].weight = 5


# --- File handling ---

def test_load_question_catalog_from_temp_file(tmp_path, minimal_question_data):
    path = create_temp_yaml(tmp_path, "questions.yml", minimal_question_data)
    catalog = load_question_catalog_from_file(path)
    assert [q.id for q in catalog.questions] == ["q1", "q2", "q3"]


def test_missing_file_raises(tmp_path):
    with pytest.raises(CatalogConfigurationError, match="File not found"):
        load_question_catalog_from_file(tmp_path / "does_not_exist.yml")


def test_invalid_yaml_raises(tmp_path):
    path = tmp_path / "broken.yml"
    path.write_text("version: [unclosed\n")
    with pytest.raises(CatalogConfigurationError, match="Error parsing YAML"):
        load_workflow_catalog_from_file(path)


def test_empty_yaml_raises(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")
    with pytest.raises(CatalogConfigurationError, match="empty or invalid"):
        load_question_catalog_from_file(path)


# --- Question catalog validation ---

def test_schema_violation_raises_validation_error(minimal_question_data):
    minimal_question_data["questions"][0]["weight"] = 9
    with pytest.raises(ValidationError):
        load_question_catalog_data(minimal_question_data)


def test_duplicate_category_id(minimal_question_data):
    minimal_question_data["categories"].append({"id": "alpha", "name": "Again"})
    with pytest.raises(CatalogConfigurationError, match="Duplicate category ID found: alpha"):
        load_question_catalog_data(minimal_question_data)


def test_duplicate_question_id_across_follow_ups(minimal_question_data):
    minimal_question_data["follow_up_questions"][0]["id"] = "q2"
    minimal_question_data["questions"][0]["options"][0]["triggers_follow_up"] = ["q2"]
    with pytest.raises(CatalogConfigurationError, match="Duplicate question ID found: q2"):
        load_question_catalog_data(minimal_question_data)


def test_unknown_category(minimal_question_data):
    minimal_question_data["questions"][2]["category"] = "gamma"
    with pytest.raises(CatalogConfigurationError, match="unknown category 'gamma'"):
        load_question_catalog_data(minimal_question_data)


def test_duplicate_option_value(minimal_question_data):
    minimal_question_data["questions"][1]["options"][1]["value"] = "x"
    with pytest.raises(CatalogConfigurationError, match="Duplicate option value 'x'"):
        load_question_catalog_data(minimal_question_data)


def test_scale_question_needs_range(minimal_question_data):
    del minimal_question_data["questions"][2]["scale_max"]
    with pytest.raises(CatalogConfigurationError, match="needs scale_min and scale_max"):
        load_question_catalog_data(minimal_question_data)


def test_scale_question_with_empty_range(minimal_question_data):
    minimal_question_data["questions"][2]["scale_max"] = 0
    with pytest.raises(CatalogConfigurationError, match="empty range"):
        load_question_catalog_data(minimal_question_data)


def test_follow_up_with_unknown_parent(minimal_question_data):
    minimal_question_data["follow_up_questions"][0]["parent_question_id"] = "missing"
    with pytest.raises(CatalogConfigurationError, match="unknown parent question 'missing'"):
        load_question_catalog_data(minimal_question_data)


def test_follow_up_trigger_must_be_parent_option(minimal_question_data):
    minimal_question_data["follow_up_questions"][0]["trigger_option_value"] = "nope"
    with pytest.raises(CatalogConfigurationError, match="not an option of 'q1'"):
        load_question_catalog_data(minimal_question_data)


def test_option_triggers_unknown_follow_up(minimal_question_data):
    minimal_question_data["questions"][0]["options"][1]["triggers_follow_up"] = ["ghost"]
    with pytest.raises(CatalogConfigurationError, match="triggers unknown follow-up 'ghost'"):
        load_question_catalog_data(minimal_question_data)


def test_option_triggers_follow_up_of_another_question(minimal_question_data):
    minimal_question_data["questions"][1]["options"][0]["triggers_follow_up"] = ["f1"]
    with pytest.raises(CatalogConfigurationError, match="its parent is 'q1'"):
        load_question_catalog_data(minimal_question_data)


# --- Workflow catalog validation ---

def test_station_key_must_match_id(workflow_data):
    workflow_data["stations"]["S-01"]["station_id"] = "S-99"
    with pytest.raises(CatalogConfigurationError, match="does not match station_id"):
        load_workflow_catalog_data(workflow_data)


def test_unknown_predecessor(workflow_data):
    workflow_data["stations"]["S-03"]["previous_station"] = "S-42"
    with pytest.raises(CatalogConfigurationError, match="unknown predecessor 'S-42'"):
        load_workflow_catalog_data(workflow_data)


def test_predecessor_cycle(workflow_data):
    workflow_data["stations"]["S-01"]["previous_station"] = "S-03"
    with pytest.raises(CatalogConfigurationError, match="cycle"):
        load_workflow_catalog_data(workflow_data)


def test_station_references_unknown_template(workflow_data):
    workflow_data["stations"]["S-03"]["optional_artifacts"] = ["TPL-77"]
    with pytest.raises(CatalogConfigurationError, match="unknown template 'TPL-77'"):
        load_workflow_catalog_data(workflow_data)


def test_stage_references_unknown_station(workflow_data):
    workflow_data["pathways"]["roi_audit"][1]["stations"] = ["S-09"]
    with pytest.raises(CatalogConfigurationError, match="unknown station 'S-09'"):
        load_workflow_catalog_data(workflow_data)


def test_empty_pathway(workflow_data):
    workflow_data["pathways"]["workflow_sprint"] = []
    with pytest.raises(CatalogConfigurationError, match="defines no stages"):
        load_workflow_catalog_data(workflow_data)


def test_stages_must_be_numbered_in_order(workflow_data):
    workflow_data["pathways"]["knowledge_spine"][1]["stage"] = 3
    with pytest.raises(CatalogConfigurationError, match="expected 2"):
        load_workflow_catalog_data(workflow_data)


def test_unknown_service_pathway_is_schema_error(workflow_data):
    workflow_data["pathways"]["moonshot"] = workflow_data["pathways"]["roi_audit"]
    with pytest.raises(ValidationError):
        load_workflow_catalog_data(workflow_data)
