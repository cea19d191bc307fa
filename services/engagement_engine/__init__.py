from services.engagement_engine.engine import EngagementEngine, get_engine
from services.engagement_engine.models import (
    CatalogConfigurationError,
    InvalidOverrideError,
    UnknownPathwayError,
    UnknownStationError,
)

__all__ = [
    "EngagementEngine",
    "get_engine",
    "CatalogConfigurationError",
    "InvalidOverrideError",
    "UnknownPathwayError",
    "UnknownStationError",
]
