from .io import (
    export_formatted_results,
    export_snapshot,
    export_table,
    load_comfort_food_data,
    load_survey_data,
)

__all__ = [
    "load_survey_data",
    "load_comfort_food_data",
    "export_table",
    "export_snapshot",
    "export_formatted_results",
]
