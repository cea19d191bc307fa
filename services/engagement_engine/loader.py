import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from services.engagement_engine.models import (
    CatalogConfigurationError,
    QuestionCatalog,
    WorkflowCatalog,
)

logger = logging.getLogger(__name__)


def _read_yaml(file_path: Union[str, Path]) -> Dict[str, Any]:
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise CatalogConfigurationError(f"File not found: {file_path}")
    except yaml.YAMLError as e:
        raise CatalogConfigurationError(f"Error parsing YAML file {file_path}: {e}")

    if not isinstance(data, dict):
        raise CatalogConfigurationError(f"YAML file is empty or invalid: {file_path}")
    return data


def load_question_catalog_data(data: Dict[str, Any]) -> QuestionCatalog:
    """
    Validates raw question catalog data against the QuestionCatalog model and
    cross-checks the references pydantic cannot see: categories, follow-up
    parents and triggers, and id uniqueness.
    """
    # Schema problems surface as pydantic ValidationError.
    catalog = QuestionCatalog.model_validate(data)

    category_ids = set()
    for category in catalog.categories:
        if category.id in category_ids:
            raise CatalogConfigurationError(f"Duplicate category ID found: {category.id}")
        category_ids.add(category.id)

    question_ids = set()
    for question in list(catalog.questions) + list(catalog.follow_up_questions):
        if question.id in question_ids:
            raise CatalogConfigurationError(f"Duplicate question ID found: {question.id}")
        question_ids.add(question.id)

        if question.category not in category_ids:
            raise CatalogConfigurationError(
                f"Question '{question.id}' references unknown category '{question.category}'"
            )

        option_values = set()
        for option in question.options:
            if option.value in option_values:
                raise CatalogConfigurationError(
                    f"Duplicate option value '{option.value}' in question '{question.id}'"
                )
            option_values.add(option.value)

        if question.type == "scale" and not question.options:
            if question.scale_min is None or question.scale_max is None:
                raise CatalogConfigurationError(f"Scale question '{question.id}' needs scale_min and scale_max")
            if question.scale_max <= question.scale_min:
                raise CatalogConfigurationError(f"Scale question '{question.id}' has an empty range")

    main_questions = {q.id: q for q in catalog.questions}
    follow_ups = {f.id: f for f in catalog.follow_up_questions}

    for follow_up in catalog.follow_up_questions:
        parent = main_questions.get(follow_up.parent_question_id)
        if parent is None:
            raise CatalogConfigurationError(
                f"Follow-up '{follow_up.id}' references unknown parent question '{follow_up.parent_question_id}'"
            )
        trigger = parent.option_for(follow_up.trigger_option_value)
        if trigger is None:
            raise CatalogConfigurationError(
                f"Follow-up '{follow_up.id}' is triggered by '{follow_up.trigger_option_value}', "
                f"which is not an option of '{parent.id}'"
            )

    for question in catalog.questions:
        for option in question.options:
            for follow_up_id in option.triggers_follow_up:
                follow_up = follow_ups.get(follow_up_id)
                if follow_up is None:
                    raise CatalogConfigurationError(
                        f"Option '{option.id}' of '{question.id}' triggers unknown follow-up '{follow_up_id}'"
                    )
                if follow_up.parent_question_id != question.id:
                    raise CatalogConfigurationError(
                        f"Follow-up '{follow_up_id}' is triggered from '{question.id}' but its parent is "
                        f"'{follow_up.parent_question_id}'"
                    )

    return catalog


def load_workflow_catalog_data(data: Dict[str, Any]) -> WorkflowCatalog:
    """
    Validates raw workflow data. Every station, template and predecessor a
    stage or station mentions must be defined, and each pathway's stages must
    be numbered 1..n in order.
    """
    # Schema problems surface as pydantic ValidationError.
    catalog = WorkflowCatalog.model_validate(data)

    for key, template in catalog.templates.items():
        if key != template.template_id:
            raise CatalogConfigurationError(f"Template key '{key}' does not match template_id '{template.template_id}'")

    def _check_templates(owner: str, template_ids):
        for template_id in template_ids:
            if template_id not in catalog.templates:
                raise CatalogConfigurationError(f"{owner} references unknown template '{template_id}'")

    for key, station in catalog.stations.items():
        if key != station.station_id:
            raise CatalogConfigurationError(f"Station key '{key}' does not match station_id '{station.station_id}'")
        owner = f"Station '{key}'"
        _check_templates(owner, station.required_artifacts)
        _check_templates(owner, station.optional_artifacts)
        _check_templates(owner, station.output_artifacts)
        if station.previous_station is not None and station.previous_station not in catalog.stations:
            raise CatalogConfigurationError(
                f"Station '{key}' requires unknown predecessor '{station.previous_station}'"
            )

    _check_predecessor_cycles(catalog)

    for pathway, stages in catalog.pathways.items():
        if not stages:
            raise CatalogConfigurationError(f"Pathway '{pathway}' defines no stages")
        for index, stage in enumerate(stages, start=1):
            if stage.stage != index:
                raise CatalogConfigurationError(
                    f"Pathway '{pathway}' stage '{stage.name}' is numbered {stage.stage}, expected {index}"
                )
            owner = f"Pathway '{pathway}' stage {stage.stage}"
            _check_templates(owner, stage.required_artifacts)
            _check_templates(owner, stage.output_artifacts)
            for station_id in stage.stations:
                if station_id not in catalog.stations:
                    raise CatalogConfigurationError(f"{owner} references unknown station '{station_id}'")

    return catalog


def _check_predecessor_cycles(catalog: WorkflowCatalog) -> None:
    for start in catalog.stations:
        seen = {start}
        current = catalog.stations[start].previous_station
        while current is not None:
            if current in seen:
                raise CatalogConfigurationError(f"Station predecessors form a cycle through '{current}'")
            seen.add(current)
            current = catalog.stations[current].previous_station


def load_question_catalog_from_file(file_path: Union[str, Path]) -> QuestionCatalog:
    """Loads and validates a question catalog YAML file."""
    catalog = load_question_catalog_data(_read_yaml(file_path))
    logger.info(
        f"Loaded question catalog {catalog.version} from {file_path}: "
        f"{len(catalog.questions)} questions, {len(catalog.follow_up_questions)} follow-ups"
    )
    return catalog


def load_workflow_catalog_from_file(file_path: Union[str, Path]) -> WorkflowCatalog:
    """Loads and validates a workflow catalog YAML file."""
    catalog = load_workflow_catalog_data(_read_yaml(file_path))
    logger.info(
        f"Loaded workflow catalog {catalog.version} from {file_path}: "
        f"{len(catalog.stations)} stations, {len(catalog.pathways)} pathways"
    )
    return catalog
