import os

import pandas as pd
import pyarrow as pa
import pyarrow.csv as pv
import pyarrow.parquet as pq
import pytest

from pycomfort.io import (
    export_formatted_results,
    export_snapshot,
    export_table,
    load_comfort_food_data,
    load_survey_data,
)
from pycomfort.io._io_utils import META_KEY_DATASET, META_KEY_STAGE, _attach_metadata

##########################
# Fixtures for Test Data #
##########################


@pytest.fixture
def valid_csv_path(tmp_path, survey_dataframe):
    """Creates a valid respondent CSV file in a temporary directory."""
    path = tmp_path / "food_coded.csv"
    survey_dataframe.to_csv(path, index=False)
    return str(path)


@pytest.fixture
def valid_parquet_path(tmp_path, survey_dataframe):
    """Creates a valid respondent Parquet file in a temporary directory."""
    path = tmp_path / "food_coded.parquet"
    table = pa.Table.from_pandas(survey_dataframe, preserve_index=False)
    pq.write_table(table, path)
    return str(path)


@pytest.fixture
def csv_different_delimiter_path(tmp_path, survey_dataframe):
    """Creates a CSV file with a semicolon delimiter."""
    path = tmp_path / "delimiter_data.csv"
    survey_dataframe.to_csv(path, index=False, sep=";")
    return str(path)


@pytest.fixture
def sample_arrow_table():
    return pa.table(
        {
            "gender": [1, 1, 2],
            "alignment_level": ["Perfectly Aligned", "Slight Misalignment", "Perfectly Aligned"],
            "portion_to_gender_total": [0.5, 0.5, 1.0],
        }
    )


##########################
# Loading                #
##########################


def test_load_from_dataframe_success(survey_dataframe):
    table = load_survey_data(survey_dataframe)
    assert isinstance(table, pa.Table)
    assert table.num_rows == len(survey_dataframe)
    assert table.schema.metadata[META_KEY_DATASET.encode()] == b"respondents"
    # optional covariates are carried through untouched
    assert table["exercise"].to_pylist() == survey_dataframe["exercise"].tolist()


def test_load_from_csv_success(valid_csv_path, survey_dataframe):
    table = load_survey_data(valid_csv_path)
    assert table.num_rows == len(survey_dataframe)
    assert table["id"].to_pylist() == survey_dataframe["id"].tolist()
    # NaN weight round-trips to null
    assert table["weight"].null_count == 1


def test_load_from_parquet_success(valid_parquet_path, survey_dataframe):
    table = load_survey_data(valid_parquet_path)
    assert table.num_rows == len(survey_dataframe)
    assert set(table.column_names) == set(survey_dataframe.columns)


def test_load_csv_with_options(csv_different_delimiter_path, survey_dataframe):
    read_options = {"csv": {"parse_options": pv.ParseOptions(delimiter=";")}}
    table = load_survey_data(csv_different_delimiter_path, read_options=read_options)
    assert table.num_rows == len(survey_dataframe)
    assert table["income"][0].as_py() == "Less than $15,000"


def test_load_normalises_column_names(survey_dataframe):
    upper = survey_dataframe.rename(
        columns={"id": "ID", "gender": " Gender ", "healthy_feeling": "Healthy_Feeling"}
    )
    table = load_survey_data(upper)
    assert "id" in table.column_names
    assert "gender" in table.column_names
    assert "healthy_feeling" in table.column_names


def test_load_column_name_clash(survey_dataframe):
    clashing = survey_dataframe.assign(ID=survey_dataframe["id"])
    with pytest.raises(ValueError, match="clash"):
        load_survey_data(clashing)


def test_load_file_not_found():
    with pytest.raises(FileNotFoundError):
        load_survey_data("non_existent_file.csv")


def test_load_missing_required_column(survey_dataframe):
    with pytest.raises(ValueError, match="Missing required columns.*weight"):
        load_survey_data(survey_dataframe.drop(columns=["weight"]))


def test_load_non_numeric_calorie_guess(survey_dataframe):
    df = survey_dataframe.assign(waffle_calories=["900"] * len(survey_dataframe))
    with pytest.raises(ValueError, match="waffle_calories.*must be numeric"):
        load_survey_data(df)


def test_load_duplicate_ids(survey_dataframe):
    df = survey_dataframe.assign(id=[1, 1, 3, 4, 5, 6, 7, 8, 9])
    with pytest.raises(ValueError, match="uniquely identify"):
        load_survey_data(df)


def test_load_null_ids(survey_dataframe):
    df = survey_dataframe.assign(id=[1, None, 3, 4, 5, 6, 7, 8, 9])
    with pytest.raises(ValueError, match="null"):
        load_survey_data(df)


def test_load_unknown_extension(tmp_path):
    path = tmp_path / "data.txt"
    path.write_text("id\n1\n")
    with pytest.raises(TypeError, match="Cannot infer source type"):
        load_survey_data(str(path))


def test_load_unsupported_source_type_arg(valid_csv_path):
    with pytest.raises(TypeError, match="Unsupported source_type"):
        load_survey_data(valid_csv_path, source_type="excel")


def test_load_dataframe_with_wrong_source_type(survey_dataframe):
    with pytest.raises(ValueError, match="source_type is 'csv'"):
        load_survey_data(survey_dataframe, source_type="csv")


def test_load_unsupported_source_object():
    with pytest.raises(TypeError, match="Unsupported source type"):
        load_survey_data([1, 2, 3])


def test_load_comfort_food_success(comfort_food_dataframe):
    table = load_comfort_food_data(comfort_food_dataframe)
    assert table.num_rows == len(comfort_food_dataframe)
    assert table.schema.metadata[META_KEY_DATASET.encode()] == b"comfort_food"


def test_load_comfort_food_allows_repeated_ids(comfort_food_dataframe):
    table = load_comfort_food_data(comfort_food_dataframe)
    assert table["id"].to_pylist().count(1) == 2


def test_load_comfort_food_missing_column(comfort_food_dataframe):
    with pytest.raises(ValueError, match="comfort_food_mapped"):
        load_comfort_food_data(comfort_food_dataframe.drop(columns=["comfort_food_mapped"]))


##########################
# Export                 #
##########################


def test_export_to_dataframe_success(sample_arrow_table):
    df = export_table(sample_arrow_table, format="dataframe")
    assert isinstance(df, pd.DataFrame)
    assert df.shape == (3, 3)


def test_export_to_csv_success(sample_arrow_table, tmp_path):
    path = tmp_path / "alignment.csv"
    assert export_table(sample_arrow_table, output_path=path, format="csv") is None
    assert pv.read_csv(path).equals(sample_arrow_table)


def test_export_to_csv_with_kwargs(sample_arrow_table, tmp_path):
    path = tmp_path / "alignment.csv"
    export_table(
        sample_arrow_table,
        output_path=path,
        format="csv",
        write_options={"include_header": False},
    )
    first_line = path.read_text().splitlines()[0]
    assert "gender" not in first_line


def test_export_to_parquet_success(sample_arrow_table, tmp_path):
    path = tmp_path / "alignment.parquet"
    export_table(sample_arrow_table, output_path=path, format="parquet")
    assert pq.read_table(path).equals(sample_arrow_table)


def test_export_invalid_input_type():
    with pytest.raises(TypeError, match="pyarrow.Table"):
        export_table(pd.DataFrame({"a": [1]}), format="dataframe")


def test_export_invalid_format(sample_arrow_table):
    with pytest.raises(ValueError, match="Invalid format"):
        export_table(sample_arrow_table, output_path="x.json", format="json")


def test_export_missing_output_path(sample_arrow_table):
    with pytest.raises(ValueError, match="output_path must be provided"):
        export_table(sample_arrow_table, format="csv")


def test_export_snapshot_names_files_by_stage(sample_arrow_table, tmp_path):
    staged = _attach_metadata(sample_arrow_table, {META_KEY_STAGE: "alignment_by_gender"})
    written = export_snapshot(
        {"first": staged, "second": sample_arrow_table}, tmp_path / "out", format="parquet"
    )
    assert os.path.basename(written["first"]) == "alignment_by_gender.parquet"
    assert os.path.basename(written["second"]) == "second.parquet"
    for path in written.values():
        assert os.path.exists(path)


def test_export_snapshot_invalid_format(sample_arrow_table, tmp_path):
    with pytest.raises(ValueError, match="Snapshot format"):
        export_snapshot({"t": sample_arrow_table}, tmp_path, format="dataframe")


def test_export_formatted_results(sample_arrow_table, tmp_path):
    styler = sample_arrow_table.to_pandas().style
    df = export_formatted_results(styler, format="dataframe")
    assert list(df.columns) == sample_arrow_table.column_names

    path = tmp_path / "formatted.csv"
    export_formatted_results(styler, output_path=path, format="csv", index=False)
    assert pd.read_csv(path).shape == (3, 3)


def test_export_formatted_results_invalid_input(sample_arrow_table):
    with pytest.raises(TypeError, match="Styler"):
        export_formatted_results(sample_arrow_table, format="dataframe")
