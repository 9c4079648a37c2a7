"""
View-model projection.

Pure functions deriving chart-ready arrays from a Dataset. Nothing here is
cached or mutated; every render recomputes from the Dataset it is given.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

# Support running as script or as package
try:
    from ..api.schemas import Dataset
except ImportError:
    from api.schemas import Dataset

from .config import CHARTS, SERIES_COLORS


@dataclass(frozen=True)
class ChartSeries:
    """Labels plus one (title, values) pair per metric, index-aligned to graphs."""
    labels: List[datetime]
    series: List[Tuple[str, List[float]]]

    def values(self, title: str) -> List[float]:
        for name, values in self.series:
            if name == title:
                return values
        raise KeyError(title)


def project_series(dataset: Dataset, fields: Sequence[Tuple[str, str]]) -> ChartSeries:
    """
    Project a dataset onto x-axis labels and one series per field.

    Args:
        dataset: Dataset as returned by the Data Service
        fields: (GraphPoint attribute, series title) pairs

    Returns:
        ChartSeries in the dataset's original order; empty lists for an
        empty dataset
    """
    labels = [point.test_start_time for point in dataset.graphs]
    series = [
        (title, [getattr(point, field) for point in dataset.graphs])
        for field, title in fields
    ]
    return ChartSeries(labels=labels, series=series)


def project_charts(dataset: Dataset, charts: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
    """Build the view model of every chart in ``charts`` (defaults to CHARTS)."""
    result = []
    for chart in charts if charts is not None else CHARTS:
        projected = project_series(dataset, chart["series"])
        result.append({
            "id": chart["id"],
            "title": chart["title"],
            "xlabel": chart["xlabel"],
            "ylabel": chart["ylabel"],
            "unit": chart["unit"],
            "labels": projected.labels,
            "series": [
                {
                    "title": title,
                    "values": values,
                    "color": SERIES_COLORS[i % len(SERIES_COLORS)],
                    "latest": values[-1] if values else None,
                }
                for i, (title, values) in enumerate(projected.series)
            ],
        })
    return result
