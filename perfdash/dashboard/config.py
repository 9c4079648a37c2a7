"""
Dashboard Configuration

Chart definitions and theme tokens for the dashboard.
"""

from typing import Any, Dict, List

# Each chart plots one series per GraphPoint field against testStartTime.
# Fields are GraphPoint attribute names; titles are legend entries.
CHARTS: List[Dict[str, Any]] = [
    {
        "id": "request-time",
        "title": "Request processing time",
        "series": [
            ("req_time", "Total"),
            ("backend_time", "Backend controller"),
        ],
        "xlabel": "Date", "ylabel": "Duration", "unit": "ms",
    },
    {
        "id": "db-times",
        "title": "Database operation times",
        "series": [
            ("db_selects_time", "Selects"),
            ("db_updates_time", "Updates"),
            ("db_inserts_time", "Inserts"),
            ("db_deletes_time", "Deletes"),
        ],
        "xlabel": "Date", "ylabel": "Duration", "unit": "ms",
    },
    {
        "id": "db-counts",
        "title": "Database operation counts",
        "series": [
            ("db_selects_quantity", "Selects"),
            ("db_updates_quantity", "Updates"),
            ("db_inserts_quantity", "Inserts"),
            ("db_deletes_quantity", "Deletes"),
        ],
        "xlabel": "Date", "ylabel": "Count", "unit": "",
    },
]

# Series colors, cycled per chart
SERIES_COLORS = ["#36a2eb", "#ff6384", "#4bc0c0", "#ff9f40"]

THEMES: Dict[str, Dict[str, str]] = {
    "dark": {"background": "#282c34", "text": "white", "grid": "#44495a"},
    "light": {"background": "#ffffff", "text": "black", "grid": "#dddddd"},
}


def format_metric_value(value: Any, unit: str) -> str:
    """
    Format a metric value with proper rounding and unit.

    Args:
        value: Raw metric value
        unit: Unit string (e.g., "ms", "")

    Returns:
        Formatted string representation with proper rounding
    """
    if value is None or value == '':
        return '—'

    try:
        num_val = float(value)
    except (ValueError, TypeError):
        return '—'

    if not unit:
        # Counts: always integer
        return f"{num_val:.0f}"
    if num_val < 10:
        return f"{num_val:.1f} {unit}"
    return f"{num_val:.0f} {unit}"
