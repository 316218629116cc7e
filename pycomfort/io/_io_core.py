"""
Internal core IO operations: loading and column name handling.
"""

import os
from pathlib import Path
from typing import Any

import pandas as pd
import pyarrow as pa
import pyarrow.csv as pv
import pyarrow.parquet as pq


def _load_data_to_pyarrow(
    source: str | Path | pd.DataFrame,
    resolved_source_type: str | None,
    read_options: dict[str, Any],
) -> tuple[pa.Table, str]:
    """
    Loads data from various sources into a PyArrow Table.

    Handles detection of source type if not provided and uses appropriate
    PyArrow readers.

    Args:
        source: Path to a CSV/Parquet file or a Pandas DataFrame.
        resolved_source_type: Explicit source type ('csv', 'parquet', 'pandas') or None.
        read_options: Dictionary containing specific read options for PyArrow readers.

    Returns:
        A tuple containing:
            - The loaded PyArrow Table.
            - The resolved source type string ('csv', 'parquet', 'pandas').

    Raises:
        FileNotFoundError: If the source path does not exist.
        ValueError: If source type is invalid or conversion fails.
        TypeError: If the source type is unsupported or cannot be inferred.
    """
    table: pa.Table | None = None

    if isinstance(source, pd.DataFrame):
        if resolved_source_type is None:
            resolved_source_type = "pandas"
        elif resolved_source_type != "pandas":
            raise ValueError(
                f"Source is a DataFrame, but source_type is '{resolved_source_type}'"
            )
        try:
            table = pa.Table.from_pandas(source, preserve_index=False)
        except Exception as e:
            raise ValueError(
                f"Failed to convert Pandas DataFrame to PyArrow Table: {e}"
            ) from e

    elif isinstance(source, (str, Path)):
        source = str(source)
        if not os.path.exists(source):
            raise FileNotFoundError(f"Source file not found: {source}")

        if resolved_source_type is None:
            _, ext = os.path.splitext(source)
            ext = ext.lower()
            if ext == ".csv":
                resolved_source_type = "csv"
            elif ext == ".parquet":
                resolved_source_type = "parquet"
            else:
                raise TypeError(
                    f"Cannot infer source type from file extension: {ext}. Please specify source_type."
                )

        if resolved_source_type == "csv":
            try:
                csv_opts = read_options.get("csv", {})
                table = pv.read_csv(source, **csv_opts)
            except Exception as e:
                raise ValueError(
                    f"Failed to read CSV file '{source}' with PyArrow: {e}"
                ) from e
        elif resolved_source_type == "parquet":
            try:
                pq_opts = read_options.get("parquet", {})
                table = pq.read_table(source, **pq_opts)
            except Exception as e:
                raise ValueError(
                    f"Failed to read Parquet file '{source}' with PyArrow: {e}"
                ) from e
        else:
            raise TypeError(
                f"Unsupported source_type for file path: '{resolved_source_type}'"
            )

    else:
        raise TypeError(
            f"Unsupported source type: {type(source)}. Must be a file path (str) or Pandas DataFrame."
        )

    return table, resolved_source_type


def _normalise_column_names(table: pa.Table) -> pa.Table:
    """
    Lower-cases and strips all column names.

    Raises:
        ValueError: If two columns collapse to the same normalised name.
    """
    normalised = [name.strip().lower() for name in table.column_names]
    if len(set(normalised)) != len(normalised):
        clashes = sorted({n for n in normalised if normalised.count(n) > 1})
        raise ValueError(
            f"Column names clash after case normalisation: {clashes}"
        )
    return table.rename_columns(normalised)
