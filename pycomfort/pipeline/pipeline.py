"""
Pipeline runner for the comfort-food survey metrics.

Stages form an explicit directed acyclic graph. Each stage is a pure function
of its named inputs, materialised at most once per pipeline and cached, so
every downstream table is derived from exactly one upstream snapshot.

Usage:
    python -m pycomfort.pipeline --config configs/pipeline.yaml

The run performs the following steps:
1. Load respondent and comfort food data
2. Compute weight percentiles by gender
3. Classify perception accuracy and calorie awareness
4. Join classifications and score alignment
5. Build the aggregate report tables
6. Export every table as a snapshot
"""

import argparse
import json
import logging
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, NamedTuple

import pyarrow as pa
import pyarrow.csv as pv

from ..aggregation import (
    alignment_by_gender,
    awareness_by_income,
    awareness_by_perception,
    comfort_food_by_gender,
    comfort_food_detailed,
)
from ..io import export_snapshot, load_comfort_food_data, load_survey_data
from ..io._io_utils import (
    COMFORT_FOOD_REQUIRED_COLS,
    ID_COL,
    META_KEY_STAGE,
    RESPONDENT_NUMERIC_COLS,
    RESPONDENT_REQUIRED_COLS,
    _attach_metadata,
    _check_unique_ids,
    _validate_columns,
)
from ..scoring import (
    classify_calorie_awareness,
    classify_perception,
    compute_weight_percentiles,
    join_classifications,
    score_alignment,
)
from ._config import get_config_value, load_config, validate_config

logger = logging.getLogger(__name__)


class Stage(NamedTuple):
    inputs: tuple[str, ...]
    func: Callable[..., pa.Table]
    options: tuple[str, ...] = ()


STAGES: dict[str, Stage] = {
    "weight_percentiles": Stage(("respondents",), compute_weight_percentiles),
    "perception_accuracy": Stage(
        ("respondents", "weight_percentiles"), classify_perception
    ),
    "calorie_awareness": Stage(("respondents",), classify_calorie_awareness),
    "behavioral_insight": Stage(
        ("perception_accuracy", "calorie_awareness"), join_classifications
    ),
    "alignment": Stage(("behavioral_insight",), score_alignment),
    "awareness_by_perception": Stage(("behavioral_insight",), awareness_by_perception),
    "awareness_by_income": Stage(
        ("behavioral_insight",), awareness_by_income, ("verbosity",)
    ),
    "alignment_by_gender": Stage(("alignment",), alignment_by_gender),
    "comfort_food_by_gender": Stage(
        ("comfort_food", "respondents"), comfort_food_by_gender
    ),
    "comfort_food_detailed": Stage(
        ("comfort_food", "respondents"), comfort_food_detailed, ("verbosity",)
    ),
}

# Per-record tables and aggregate tables, as exposed to reporting
CLASSIFIED_STAGE = "behavioral_insight"
SCORED_STAGE = "alignment"
AGGREGATE_STAGES = (
    "awareness_by_perception",
    "awareness_by_income",
    "alignment_by_gender",
    "comfort_food_by_gender",
    "comfort_food_detailed",
)


class SurveyPipeline:
    """
    Lazily materialised, cached stage graph over one survey snapshot.

    Both inputs are validated on construction, so a structurally broken
    dataset fails before any classification runs.

    Args:
        respondents: Respondent table (see `pycomfort.io.load_survey_data`).
        comfort_food: Comfort food entries (see `pycomfort.io.load_comfort_food_data`).
        verbosity: Passed to stages that emit data-quality warnings.
        stages: Stage graph; defaults to `STAGES`.
    """

    def __init__(
        self,
        respondents: pa.Table,
        comfort_food: pa.Table,
        verbosity: int = 0,
        stages: dict[str, Stage] | None = None,
    ):
        _validate_columns(
            respondents,
            required_cols=RESPONDENT_REQUIRED_COLS,
            numeric_cols=RESPONDENT_NUMERIC_COLS,
            table_desc="respondent",
        )
        _check_unique_ids(respondents, ID_COL)
        _validate_columns(
            comfort_food, required_cols=COMFORT_FOOD_REQUIRED_COLS, table_desc="comfort food"
        )

        self.stages = dict(STAGES if stages is None else stages)
        self.options: dict[str, Any] = {"verbosity": verbosity}
        self._sources = {"respondents": respondents, "comfort_food": comfort_food}
        self._cache: dict[str, pa.Table] = {}
        self._check_graph()

    def _check_graph(self) -> None:
        for name, stage in self.stages.items():
            if name in self._sources:
                raise ValueError(f"Stage name '{name}' shadows an input table.")
            unknown = [
                dep for dep in stage.inputs if dep not in self.stages and dep not in self._sources
            ]
            if unknown:
                raise ValueError(f"Stage '{name}' depends on unknown input(s): {unknown}")
        self.stage_order()  # raises on cycles

    def stage_order(self) -> list[str]:
        """Stage names in dependency order (inputs before dependents)."""
        order: list[str] = []
        visiting: set[str] = set()

        def visit(name: str) -> None:
            if name in self._sources or name in order:
                return
            if name in visiting:
                raise ValueError(f"Stage graph has a cycle through '{name}'.")
            visiting.add(name)
            for dep in self.stages[name].inputs:
                visit(dep)
            visiting.discard(name)
            order.append(name)

        for name in self.stages:
            visit(name)
        return order

    def get(self, name: str) -> pa.Table:
        """
        Returns a stage's table, materialising it and its inputs on first use.

        Raises:
            KeyError: If `name` is neither a stage nor an input table.
            RuntimeError: If the stage function fails.
        """
        if name in self._sources:
            return self._sources[name]
        if name in self._cache:
            return self._cache[name]
        if name not in self.stages:
            raise KeyError(f"Unknown stage '{name}'. Available: {list(self.stages)}")

        stage = self.stages[name]
        inputs = [self.get(dep) for dep in stage.inputs]
        kwargs = {opt: self.options[opt] for opt in stage.options}
        try:
            table = stage.func(*inputs, **kwargs)
        except Exception as e:
            raise RuntimeError(f"Pipeline stage '{name}' failed: {e}") from e

        table = _attach_metadata(table, {META_KEY_STAGE: name})
        logger.debug(f"Stage '{name}' produced {table.num_rows} rows")
        self._cache[name] = table
        return table

    def run(self) -> dict[str, pa.Table]:
        """Materialises every stage; returns stage name to table in dependency order."""
        return {name: self.get(name) for name in self.stage_order()}

    def clear(self) -> None:
        """Drops cached stage tables so the next access recomputes them."""
        self._cache.clear()


def setup_logging(log_level: str) -> None:
    """Configure logging level from config."""
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    logging.getLogger().setLevel(level)


def _read_options(dataset_config: dict[str, Any]) -> dict[str, Any]:
    delimiter = dataset_config.get("delimiter")
    if delimiter is None:
        return {}
    return {"csv": {"parse_options": pv.ParseOptions(delimiter=delimiter)}}


def run_pipeline(
    config_path: str | Path,
    output_dir: str | Path | None = None,
    output_format: str | None = None,
) -> dict[str, Any]:
    """
    Run the complete survey pipeline and export a snapshot.

    Args:
        config_path: Path to the configuration YAML file
        output_dir: If provided, write tables to this directory instead of config default
        output_format: If provided, 'csv' or 'parquet', overriding config

    Returns:
        Dictionary with the output directory, written file paths and row counts

    Raises:
        ValueError: If the configuration has issues or the input data is malformed
        FileNotFoundError: If the configuration or a data file does not exist
    """
    config = load_config(config_path)
    issues = validate_config(config)
    for issue in issues:
        logger.warning(f"Config issue: {issue}")
    if issues:
        raise ValueError(f"Invalid configuration '{config_path}': {issues}")

    setup_logging(get_config_value(config, "global.log_level", "INFO"))
    verbosity = get_config_value(config, "global.verbosity", 0)

    respondents_cfg = config["data"]["respondents"]
    comfort_cfg = config["data"]["comfort_food"]
    respondents = load_survey_data(
        respondents_cfg["path"],
        source_type=respondents_cfg.get("source_type"),
        read_options=_read_options(respondents_cfg),
    )
    comfort_food = load_comfort_food_data(
        comfort_cfg["path"],
        source_type=comfort_cfg.get("source_type"),
        read_options=_read_options(comfort_cfg),
    )

    pipeline = SurveyPipeline(respondents, comfort_food, verbosity=verbosity)
    tables = pipeline.run()

    effective_output_dir = output_dir or get_config_value(config, "output.dir", "output")
    effective_format = output_format or get_config_value(config, "output.format", "csv")
    written = export_snapshot(tables, effective_output_dir, format=effective_format)

    row_counts = {name: table.num_rows for name, table in tables.items()}
    summary = {
        "config_path": str(config_path),
        "respondents": respondents.num_rows,
        "comfort_food_entries": comfort_food.num_rows,
        "row_counts": row_counts,
    }
    with open(os.path.join(str(effective_output_dir), "run_summary.json"), "w") as f:
        json.dump(summary, f, indent=2, sort_keys=True)

    for name, count in row_counts.items():
        logger.info(f"  {name}: {count} rows")

    return {
        "success": True,
        "output_dir": str(effective_output_dir),
        "artifacts": written,
        "row_counts": row_counts,
    }


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the pipeline."""
    parser = argparse.ArgumentParser(
        description="Compute comfort-food survey awareness and alignment tables"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/pipeline.yaml",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Output directory for tables (overrides config)",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["csv", "parquet"],
        default=None,
        help="Output file format (overrides config)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        result = run_pipeline(
            args.config, output_dir=args.output_dir, output_format=args.format
        )
    except Exception as e:
        logger.exception(f"Pipeline failed with error: {e}")
        return 1

    logger.info(f"Pipeline completed successfully, tables written to {result['output_dir']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
