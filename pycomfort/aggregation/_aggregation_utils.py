import math
from decimal import ROUND_HALF_UP, Decimal

import pandas as pd
import pyarrow as pa


def _round_half_away(value: float | None, decimal_places: int = 2) -> float | None:
    """
    Rounds half away from zero (2.675 -> 2.68, -0.125 -> -0.13).

    Python's built-in `round` rounds half to even and works on the binary
    float, so the decimal repr of the value is rounded instead.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    quantum = Decimal(1).scaleb(-decimal_places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def _round_series(series: pd.Series, decimal_places: int = 2) -> pd.Series:
    return series.map(lambda v: _round_half_away(v, decimal_places)).astype("float64")


def _dense_rank_desc(values: pd.Series) -> pd.Series:
    """Dense rank, highest value first: 1 + number of distinct larger values."""
    return values.rank(method="dense", ascending=False).astype("int64")


def _is_blank(series: pd.Series) -> pd.Series:
    """True for null or whitespace-only values."""
    return series.isna() | (series.astype(str).str.strip() == "")


def _to_table(df: pd.DataFrame, fields: list[pa.Field]) -> pa.Table:
    """Converts an aggregate DataFrame to a PyArrow Table with a fixed schema."""
    schema = pa.schema(fields)
    try:
        return pa.Table.from_pandas(
            df[schema.names].reset_index(drop=True), schema=schema, preserve_index=False
        )
    except Exception as e:
        raise ValueError(
            f"Failed to convert aggregated Pandas DataFrame back to PyArrow Table: {e}"
        ) from e
