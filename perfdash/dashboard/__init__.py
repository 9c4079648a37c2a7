"""
perfdash Dashboard Module

Date-range driven fetching of performance-test data and its projection
into chart series. Rendering lives in the templates under ui/.
"""

from .controller import DashboardController

__all__ = ["DashboardController"]
