from ._config import get_config_value, load_config, validate_config
from .pipeline import (
    AGGREGATE_STAGES,
    CLASSIFIED_STAGE,
    SCORED_STAGE,
    STAGES,
    Stage,
    SurveyPipeline,
    main,
    run_pipeline,
)

__all__ = [
    "SurveyPipeline",
    "Stage",
    "STAGES",
    "CLASSIFIED_STAGE",
    "SCORED_STAGE",
    "AGGREGATE_STAGES",
    "run_pipeline",
    "main",
    "load_config",
    "validate_config",
    "get_config_value",
]
