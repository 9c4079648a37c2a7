"""perfdash - performance-test metrics dashboard."""

__version__ = "0.1.0"
