from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

ASSETS_DIR = Path(__file__).resolve().parent.parent / "assets"


class EngineSettings(BaseSettings):
    questions_path: Path = ASSETS_DIR / "intake_questions.yml"
    workflow_path: Path = ASSETS_DIR / "workflow.yml"
    multi_select_strategy: Literal["average", "maximum", "capped_sum"] = "average"
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(
        env_prefix="ENGAGEMENT_ENGINE_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> EngineSettings:
    return EngineSettings()
