"""
Pytest configuration for pycomfort tests.
"""
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add the project root to Python path so tests can import pycomfort without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pycomfort.io import load_comfort_food_data, load_survey_data  # noqa: E402


@pytest.fixture
def survey_dataframe():
    """
    Nine respondents, two genders (1 and 2).

    Gender 1 weights 120..200 give cutpoints p25=130, p75=150, p90=180.
    Gender 2 weights 160/180/200 (id 8 has none) give p25=170, p75=190, p90=196.
    """
    return pd.DataFrame(
        {
            "id": [1, 2, 3, 4, 5, 6, 7, 8, 9],
            "gender": [1, 1, 1, 1, 1, 2, 2, 2, 2],
            "weight": [120.0, 130.0, 140.0, 150.0, 200.0, 160.0, 180.0, None, 200.0],
            "self_perception_weight": [
                "Slim",
                "Just Right",
                "overweight",
                "Slightly Overweight",
                "i dont think myself in these terms",
                "Very Fit",
                "Slim",
                "Just right",
                "Just right",
            ],
            "calories_chicken": [610, 835, 936, 1000, 610, 610, 700, 610, None],
            "calories_scone": [420, 420, 420, 725, 420, 420, 500, 420, None],
            "tortilla_calories": [940, 940, 1165, 500, 940, 940, 1000, 940, None],
            "turkey_calories": [690, 1000, None, 900, 690, 690, 690, 690, None],
            "waffle_calories": [900, 1200, 900, 700, 900, 1200, 900, 900, None],
            "income": [
                "Less than $15,000",
                "$15,001 to $30,000",
                "Less than $15,000",
                "More than $100,000",
                None,
                "$50,001 to $70,000",
                "$50,001 to $70,000",
                "Less than $15,000",
                "  ",
            ],
            "healthy_feeling": [2, 5, 7, 3, 9, 4, 6, 8, 1],
            "exercise": [1, 2, 1, 3, 2, 1, 1, 2, 3],
        }
    )


@pytest.fixture
def comfort_food_dataframe():
    """Comfort food entries; id 5 has a blank mapping and id 99 has no respondent."""
    return pd.DataFrame(
        {
            "id": [1, 1, 2, 3, 3, 4, 5, 6, 6, 7, 8, 99],
            "comfort_food": [
                "pizza",
                "ice cream",
                "Pizza",
                "chocolate",
                "ice-cream",
                "pizza ",
                "mac n cheese",
                "pizza",
                "chips",
                "chips",
                "burgers",
                "pizza",
            ],
            "comfort_food_mapped": [
                "Pizza",
                "Ice Cream",
                "Pizza",
                "Chocolate",
                "Ice Cream",
                "Pizza",
                None,
                "Pizza",
                "Chips",
                "Chips",
                "Burger",
                "Pizza",
            ],
        }
    )


@pytest.fixture
def respondents(survey_dataframe):
    return load_survey_data(survey_dataframe)


@pytest.fixture
def comfort_food(comfort_food_dataframe):
    return load_comfort_food_data(comfort_food_dataframe)
