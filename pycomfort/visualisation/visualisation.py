"""
Visualisation and display helpers
"""

import pandas as pd
import pyarrow as pa
from pandas.io.formats.style import Styler

# Columns holding rounded means or proportions in the aggregate tables
DEFAULT_FLOAT_COLS = [
    "avg_awareness_bracket",
    "gender_avg_awareness",
    "portion_to_gender_total",
    "average_healthy_feeling",
    # percentile cutpoints
    "p25",
    "p75",
    "p90",
]


def format_aggregate_table(
    table: pa.Table,
    decimal_places: int | None = 2,
    float_columns: list[str] | None = None,
    order_by: str | list[str] | None = None,
) -> Styler:
    """
    Converts an aggregate PyArrow Table to a styled Pandas DataFrame
    with formatted float columns.

    Args:
        table: The input PyArrow Table (typically one of the aggregation views).
        decimal_places: Number of decimal places to display float columns with.
                        If None, no number format is applied. Defaults to 2.
        float_columns: Optional list of column names to apply float formatting to.
                       If None, defaults to the columns in DEFAULT_FLOAT_COLS
                       present in the table.
        order_by: Column name(s) to sort the DataFrame by before styling.
                  If None, the table's own row order is kept.

    Returns:
        A pandas Styler object ready for display in environments like Jupyter.

    Raises:
        TypeError: If the input 'table' is not a PyArrow Table, or if 'order_by'
                   or 'float_columns' have the wrong type.
        ValueError: If 'decimal_places' is invalid, or if 'order_by' columns don't exist in the table.
        RuntimeError: If DataFrame conversion fails.
    """
    if not isinstance(table, pa.Table):
        raise TypeError("Input 'table' must be a PyArrow Table.")

    try:
        df = table.to_pandas()
    except Exception as e:
        raise RuntimeError(
            f"Failed to convert PyArrow Table to Pandas DataFrame: {e}"
        ) from e

    if order_by is not None:
        if isinstance(order_by, str):
            order_by = [order_by]
        if not isinstance(order_by, list) or not all(isinstance(c, str) for c in order_by):
            raise TypeError("'order_by' must be a string, list of strings, or None.")
        missing_cols = [col for col in order_by if col not in df.columns]
        if missing_cols:
            raise ValueError(
                f"Columns {missing_cols} not found in table. Available columns: {df.columns.tolist()}"
            )
        df = df.sort_values(by=order_by, kind="mergesort").reset_index(drop=True)

    if decimal_places is None:
        return df.style

    if not isinstance(decimal_places, int) or decimal_places < 0:
        raise ValueError("'decimal_places' must be a non-negative integer or None.")

    if float_columns is None:
        cols_to_format = [col for col in DEFAULT_FLOAT_COLS if col in df.columns]
    else:
        if not isinstance(float_columns, list) or not all(
            isinstance(c, str) for c in float_columns
        ):
            raise TypeError("'float_columns' must be a list of strings or None.")
        cols_to_format = [col for col in float_columns if col in df.columns]

    format_str = f"{{:,.{decimal_places}f}}"  # e.g., '{:,.2f}'
    format_dict = {col: format_str for col in cols_to_format}

    styler = df.style
    if format_dict:
        styler = styler.format(format_dict, na_rep="")
    return styler
