"""
CSV export of a Dataset: semicolon separated, one row per GraphPoint,
wire field names as the header.
"""

import pandas as pd

# Support running as script or as package
try:
    from ..api.schemas import Dataset, GraphPoint
except ImportError:
    from api.schemas import Dataset, GraphPoint

CSV_FILENAME = "data.csv"
CSV_SEPARATOR = ";"

CSV_COLUMNS = [field.alias for field in GraphPoint.model_fields.values()]


def dataset_to_frame(dataset: Dataset) -> pd.DataFrame:
    rows = [point.model_dump(mode="json", by_alias=True) for point in dataset.graphs]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def dataset_to_csv(dataset: Dataset) -> str:
    return dataset_to_frame(dataset).to_csv(sep=CSV_SEPARATOR, index=False)
