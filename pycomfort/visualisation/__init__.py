from .visualisation import DEFAULT_FLOAT_COLS, format_aggregate_table

__all__ = ["format_aggregate_table", "DEFAULT_FLOAT_COLS"]
