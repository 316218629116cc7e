import os
import sys

sys.path.insert(0, '..')

from pycomfort import io as io
from pycomfort import visualisation as vis
from pycomfort.pipeline import SurveyPipeline

# Survey export and the hand-mapped comfort food entries
respondents_path = os.path.join("data", "food_coded.csv")
comfort_food_path = os.path.join("data", "comfort_food.csv")

respondents = io.load_survey_data(respondents_path)
comfort_food = io.load_comfort_food_data(comfort_food_path)
print(f"Number of respondents: {respondents.num_rows}")
print(f"Number of comfort food entries: {comfort_food.num_rows}")
print(respondents.column_names)

pipeline = SurveyPipeline(respondents, comfort_food)

# Per-gender cutpoints that define Underweight/Normal/Overweight/Obese
print(pipeline.get("weight_percentiles").to_pandas())

classified = pipeline.get("behavioral_insight")
df = classified.to_pandas()
print(df[["id", "gender", "perception_accuracy", "calorie_awareness_score", "awareness_level"]].head(10))

# How many respondents could not be placed on the perception scale
unspecified = (df["perception_accuracy"] == "Unspecified").sum()
print(f"Unspecified self-perception: {unspecified} of {len(df)}")

for name in ["awareness_by_perception", "awareness_by_income", "alignment_by_gender"]:
    print(f"\n{name}")
    print(vis.format_aggregate_table(pipeline.get(name)).data)

top_foods = pipeline.get("comfort_food_by_gender")
styler = vis.format_aggregate_table(top_foods, order_by=["gender", "comfort_food_rank"])
print(styler.data.head(20))

# Write the formatted view and a full snapshot of every stage
os.makedirs("output", exist_ok=True)
io.export_formatted_results(
    styler, output_path=os.path.join("output", "top_foods.csv"), format="csv", index=False
)
written = io.export_snapshot(pipeline.run(), "output", format="parquet")
for name, path in written.items():
    print(f"{name}: {path}")
