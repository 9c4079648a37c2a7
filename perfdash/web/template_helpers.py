#!/usr/bin/env python3
"""
Template Helpers for perfdash Dashboard
"""

import json
import time
from datetime import datetime

# Support running as script or as package
try:
    from ..dashboard.config import format_metric_value
except ImportError:
    from dashboard.config import format_metric_value


def format_datetime(value):
    """Format a datetime or unix timestamp as a full datetime string."""
    if not value:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    try:
        return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(value))
    except (TypeError, ValueError, OverflowError):
        return str(value)


def format_datetime_local(value):
    """Format a datetime for an <input type="datetime-local"> value."""
    if not isinstance(value, datetime):
        return ""
    return value.strftime("%Y-%m-%dT%H:%M")


def format_time_ago(timestamp):
    """Format timestamp as relative time (e.g., '5m ago')."""
    if not timestamp:
        return "Never"
    diff = int(time.time()) - int(timestamp)
    if diff < 60:
        return f"{diff}s ago"
    elif diff < 3600:
        return f"{diff // 60}m ago"
    elif diff < 86400:
        return f"{diff // 3600}h ago"
    else:
        return f"{diff // 86400}d ago"


def chart_payload(chart):
    """
    Serialize a projected chart for uPlot: x values as unix seconds, one
    y array per series.
    """
    return json.dumps({
        "id": chart["id"],
        "title": chart["title"],
        "ylabel": chart["ylabel"],
        "x": [label.timestamp() for label in chart["labels"]],
        "series": [
            {"label": s["title"], "stroke": s["color"], "values": s["values"]}
            for s in chart["series"]
        ],
    })


def setup_template_filters(templates):
    """Setup all template filters in Jinja2 environment."""
    templates.env.filters['format_datetime'] = format_datetime
    templates.env.filters['format_datetime_local'] = format_datetime_local
    templates.env.filters['format_time_ago'] = format_time_ago
    templates.env.filters['format_metric'] = format_metric_value
    templates.env.filters['chart_payload'] = chart_payload
