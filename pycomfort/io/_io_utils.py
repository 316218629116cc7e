"""
Internal utilities for IO operations, like column definitions, validation and
metadata handling.
"""

import pyarrow as pa
import pyarrow.compute as pc

# Survey column names (after lower-casing on load)
ID_COL = "id"
GENDER_COL = "gender"
WEIGHT_COL = "weight"
SELF_PERCEPTION_COL = "self_perception_weight"
INCOME_COL = "income"
HEALTHY_FEELING_COL = "healthy_feeling"

CHICKEN_COL = "calories_chicken"
SCONE_COL = "calories_scone"
TORTILLA_COL = "tortilla_calories"
TURKEY_COL = "turkey_calories"
WAFFLE_COL = "waffle_calories"
CALORIE_GUESS_COLS = [CHICKEN_COL, SCONE_COL, TORTILLA_COL, TURKEY_COL, WAFFLE_COL]

COMFORT_FOOD_COL = "comfort_food"
COMFORT_FOOD_MAPPED_COL = "comfort_food_mapped"

RESPONDENT_REQUIRED_COLS = [
    ID_COL,
    GENDER_COL,
    WEIGHT_COL,
    SELF_PERCEPTION_COL,
    *CALORIE_GUESS_COLS,
    INCOME_COL,
    HEALTHY_FEELING_COL,
]
RESPONDENT_NUMERIC_COLS = [WEIGHT_COL, *CALORIE_GUESS_COLS, HEALTHY_FEELING_COL]

# Behavioural covariates carried through unmodified when present
COVARIATE_COLS = [
    "calories_day",
    "cook",
    "diet_current_coded",
    "eating_changes_coded",
    "eating_out",
    "employment",
    "exercise",
    "fav_food",
    "fruit_day",
    "grade_level",
    "life_rewarding",
    "marital_status",
    "parents_cook",
    "sports",
    "vitamins",
]

COMFORT_FOOD_REQUIRED_COLS = [ID_COL, COMFORT_FOOD_COL, COMFORT_FOOD_MAPPED_COL]

# Schema metadata keys
META_KEY_DATASET = "pycomfort.io.dataset"
META_KEY_STAGE = "pycomfort.stage"


def _validate_columns(
    table: pa.Table,
    required_cols: list[str],
    numeric_cols: list[str] | None = None,
    table_desc: str = "input",
) -> None:
    """
    Validates the existence and basic types of required columns.

    Args:
        table: The PyArrow Table to validate.
        required_cols: Column names that must be present.
        numeric_cols: Subset of columns that must be integer or floating-point
                      typed (an all-null column is accepted).
        table_desc: Human-readable table name used in error messages.

    Raises:
        TypeError: If `table` is not a PyArrow Table.
        ValueError: If required columns are missing or have non-numeric types.
    """
    if not isinstance(table, pa.Table):
        raise TypeError(
            f"Expected {table_desc} to be a pyarrow.Table, got {type(table).__name__}"
        )

    missing_cols = [col for col in required_cols if col not in table.column_names]
    if missing_cols:
        raise ValueError(
            f"Missing required columns in the {table_desc} data: {missing_cols}"
        )

    for col in numeric_cols or []:
        col_type = table.schema.field(col).type
        if not (
            pa.types.is_integer(col_type)
            or pa.types.is_floating(col_type)
            or pa.types.is_decimal(col_type)
            or pa.types.is_null(col_type)
        ):
            raise ValueError(
                f"Column '{col}' in the {table_desc} data must be numeric, "
                f"but found {col_type}."
            )


def _check_unique_ids(table: pa.Table, id_col: str = ID_COL) -> None:
    """Raises ValueError if `id_col` holds nulls or duplicate values."""
    ids = table[id_col]
    if ids.null_count > 0:
        raise ValueError(f"Column '{id_col}' contains {ids.null_count} null value(s).")
    n_unique = len(pc.unique(ids))
    if n_unique != table.num_rows:
        raise ValueError(
            f"Column '{id_col}' must uniquely identify each respondent: "
            f"{table.num_rows - n_unique} duplicate value(s) found."
        )


def _attach_metadata(table: pa.Table, metadata: dict[str, str]) -> pa.Table:
    """
    Attaches `pycomfort` metadata keys to the table schema.

    Existing schema metadata is preserved; keys in `metadata` overwrite.

    Args:
        table: The PyArrow Table.
        metadata: Mapping of metadata key to value (both plain strings).

    Returns:
        The PyArrow Table with updated schema metadata.
    """
    existing_metadata = dict(table.schema.metadata or {})
    existing_metadata.update(
        {key.encode("utf-8"): value.encode("utf-8") for key, value in metadata.items()}
    )
    return table.replace_schema_metadata(existing_metadata)


def _read_metadata(table: pa.Table, key: str) -> str | None:
    """Returns the decoded value of a schema metadata key, or None."""
    metadata = table.schema.metadata or {}
    value = metadata.get(key.encode("utf-8"))
    return value.decode("utf-8") if value is not None else None
