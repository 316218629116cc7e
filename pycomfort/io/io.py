import logging
import os
from pathlib import Path
from typing import Any

import pandas as pd
import pyarrow as pa
import pyarrow.csv as pv
import pyarrow.parquet as pq
from pandas.io.formats.style import Styler  # For type hinting formatted results

from ._io_core import _load_data_to_pyarrow, _normalise_column_names
from ._io_utils import (
    COMFORT_FOOD_REQUIRED_COLS,
    META_KEY_DATASET,
    META_KEY_STAGE,
    RESPONDENT_NUMERIC_COLS,
    RESPONDENT_REQUIRED_COLS,
    _attach_metadata,
    _check_unique_ids,
    _read_metadata,
    _validate_columns,
)

logger = logging.getLogger(__name__)

VALID_EXPORT_FORMATS = ["dataframe", "csv", "parquet"]


def load_survey_data(
    source: str | Path | pd.DataFrame,
    source_type: str | None = None,
    read_options: dict[str, Any] | None = None,
) -> pa.Table:
    """
    Loads and validates respondent survey records into a PyArrow Table.

    Column names are lower-cased so that 'ID'/'Gender' style headers from
    upstream exports match. The table must contain one row per respondent.

    Args:
        source: Path to a CSV/Parquet file or a Pandas DataFrame.
        source_type: Optional hint for the source type ('csv', 'parquet', 'pandas').
                     If None, attempts to infer from the source path extension or type.
        read_options: Optional dictionary containing specific read options for
                      pyarrow readers (e.g., CSV delimiter). Keys should match
                      source_type ('csv', 'parquet').

    Returns:
        A validated PyArrow Table with schema metadata
        `pycomfort.io.dataset = "respondents"`.

    Raises:
        FileNotFoundError: If the source path does not exist.
        ValueError: If required columns are missing, numeric columns are not
                    numeric, or respondent ids are null or duplicated.
        TypeError: If the source type is unsupported or cannot be inferred.
    """
    if read_options is None:
        read_options = {}

    table, resolved_source_type = _load_data_to_pyarrow(
        source=source,
        resolved_source_type=source_type,
        read_options=read_options,
    )
    table = _normalise_column_names(table)

    _validate_columns(
        table,
        required_cols=RESPONDENT_REQUIRED_COLS,
        numeric_cols=RESPONDENT_NUMERIC_COLS,
        table_desc="respondent",
    )
    _check_unique_ids(table)

    logger.info(
        f"Loaded {table.num_rows} respondent records ({table.num_columns} columns) "
        f"from {resolved_source_type} source"
    )
    return _attach_metadata(table, {META_KEY_DATASET: "respondents"})


def load_comfort_food_data(
    source: str | Path | pd.DataFrame,
    source_type: str | None = None,
    read_options: dict[str, Any] | None = None,
) -> pa.Table:
    """
    Loads and validates comfort-food entries (zero or more per respondent).

    Args:
        source: Path to a CSV/Parquet file or a Pandas DataFrame.
        source_type: Optional hint for the source type ('csv', 'parquet', 'pandas').
        read_options: Optional dictionary of pyarrow reader options keyed by source type.

    Returns:
        A validated PyArrow Table with schema metadata
        `pycomfort.io.dataset = "comfort_food"`.

    Raises:
        FileNotFoundError: If the source path does not exist.
        ValueError: If `id`, `comfort_food` or `comfort_food_mapped` is missing.
        TypeError: If the source type is unsupported or cannot be inferred.
    """
    if read_options is None:
        read_options = {}

    table, resolved_source_type = _load_data_to_pyarrow(
        source=source,
        resolved_source_type=source_type,
        read_options=read_options,
    )
    table = _normalise_column_names(table)
    _validate_columns(
        table, required_cols=COMFORT_FOOD_REQUIRED_COLS, table_desc="comfort food"
    )

    logger.info(
        f"Loaded {table.num_rows} comfort food entries from {resolved_source_type} source"
    )
    return _attach_metadata(table, {META_KEY_DATASET: "comfort_food"})


def export_table(
    table: pa.Table,
    output_path: str | Path | None = None,
    format: str = "dataframe",
    **kwargs: Any,
) -> pd.DataFrame | None:
    """
    Exports a pipeline table (PyArrow Table) to different formats.

    Prioritizes native PyArrow writers for CSV and Parquet formats.

    Args:
        table: The PyArrow Table to export.
        output_path: The file path to write to. Required for 'csv' and 'parquet' formats.
                     Ignored for 'dataframe' format.
        format: The desired output format. Options: 'csv', 'parquet', 'dataframe'.
                Defaults to 'dataframe'.
        **kwargs: Additional keyword arguments to pass to the underlying write functions.
                  For 'csv': `write_options` dict for pyarrow.csv.WriteOptions.
                  For 'parquet': pyarrow.parquet.write_table options (e.g., compression='snappy').
                  For 'dataframe': pyarrow.Table.to_pandas options.

    Returns:
        If format is 'dataframe', returns a Pandas DataFrame.
        If format is 'csv' or 'parquet', writes to the specified output_path and returns None.

    Raises:
        TypeError: If `table` is not a PyArrow Table.
        ValueError: If `format` is not one of 'csv', 'parquet', 'dataframe', or if
                    `output_path` is None when `format` is 'csv' or 'parquet'.
    """
    if not isinstance(table, pa.Table):
        raise TypeError(
            f"Expected table to be a pyarrow.Table, got {type(table).__name__}"
        )

    if format not in VALID_EXPORT_FORMATS:
        raise ValueError(
            f"Invalid format '{format}'. Must be one of {VALID_EXPORT_FORMATS}"
        )

    if format in ["csv", "parquet"] and output_path is None:
        raise ValueError(f"output_path must be provided for format '{format}'")

    if format == "dataframe":
        return table.to_pandas(**kwargs)
    elif format == "csv":
        write_options_dict = kwargs.pop("write_options", {})
        write_options = pv.WriteOptions(**write_options_dict)
        pv.write_csv(table, str(output_path), write_options=write_options, **kwargs)
        return None
    else:
        pq.write_table(table, str(output_path), **kwargs)
        return None


def export_snapshot(
    tables: dict[str, pa.Table],
    output_dir: str | Path,
    format: str = "csv",
    **kwargs: Any,
) -> dict[str, str]:
    """
    Writes every table of a pipeline run into `output_dir`, one file per table.

    Files are named after the table's `pycomfort.stage` metadata when present,
    otherwise after its key in `tables`.

    Args:
        tables: Mapping of table name to PyArrow Table.
        output_dir: Directory to write into; created if missing.
        format: 'csv' or 'parquet'.
        **kwargs: Passed through to `export_table`.

    Returns:
        Mapping of table name to the written file path.

    Raises:
        ValueError: If `format` is not 'csv' or 'parquet'.
    """
    if format not in ("csv", "parquet"):
        raise ValueError(f"Snapshot format must be 'csv' or 'parquet', got '{format}'")

    os.makedirs(output_dir, exist_ok=True)
    written: dict[str, str] = {}
    for name, table in tables.items():
        file_stem = _read_metadata(table, META_KEY_STAGE) or name
        path = os.path.join(str(output_dir), f"{file_stem}.{format}")
        export_table(table, output_path=path, format=format, **kwargs)
        written[name] = path
        logger.debug(f"Wrote {table.num_rows} rows to {path}")

    logger.info(f"Exported {len(written)} tables to {output_dir}")
    return written


def export_formatted_results(
    styler: Styler,
    output_path: str | Path | None = None,
    format: str = "dataframe",
    **kwargs: Any,
) -> pd.DataFrame | None:
    """
    Exports a formatted report table (Pandas Styler) to different formats.

    Uses Pandas writers as PyArrow cannot handle Styler formatting directly.
    Styler formatting is not preserved in CSV or Parquet output, only the
    underlying data is exported.

    Args:
        styler: The Pandas Styler object, e.g. from `format_aggregate_table`.
        output_path: The file path to write to. Required for 'csv' and 'parquet' formats.
        format: The desired output format. Options: 'csv', 'parquet', 'dataframe'.
        **kwargs: Additional keyword arguments to pass to the underlying Pandas write functions.

    Returns:
        If format is 'dataframe', returns the underlying Pandas DataFrame from the Styler.
        If format is 'csv' or 'parquet', writes to the specified output_path and returns None.

    Raises:
        TypeError: If `styler` is not a Pandas Styler object.
        ValueError: If `format` is invalid or `output_path` is missing for file formats.
    """
    if not isinstance(styler, Styler):
        raise TypeError(
            f"Expected styler to be a pandas.io.formats.style.Styler, got {type(styler).__name__}"
        )

    if format not in VALID_EXPORT_FORMATS:
        raise ValueError(
            f"Invalid format '{format}'. Must be one of {VALID_EXPORT_FORMATS}"
        )

    if format in ["csv", "parquet"] and output_path is None:
        raise ValueError(f"output_path must be provided for format '{format}'")

    df = styler.data

    if format == "dataframe":
        return df
    elif format == "csv":
        df.to_csv(output_path, **kwargs)
        return None
    else:
        df.to_parquet(output_path, **kwargs)
        return None
