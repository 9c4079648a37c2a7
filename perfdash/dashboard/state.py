"""
Dashboard state types: date range, theme and load state.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict

from .config import THEMES


class InvalidDateRangeError(ValueError):
    """Raised when a date range has its lower bound after its upper bound."""


class LoadState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class DateRange:
    date_from: datetime
    date_to: datetime

    def __post_init__(self):
        if self.date_from > self.date_to:
            raise InvalidDateRangeError(
                f"date_from ({self.date_from.isoformat()}) is after date_to ({self.date_to.isoformat()})"
            )


@dataclass(frozen=True)
class ThemeState:
    """Light/dark flag; the color token is derived, never stored."""
    light: bool = False

    @property
    def name(self) -> str:
        return "light" if self.light else "dark"

    @property
    def token(self) -> Dict[str, str]:
        return THEMES[self.name]

    def toggled(self) -> "ThemeState":
        return ThemeState(light=not self.light)
