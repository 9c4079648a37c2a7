#!/usr/bin/env python3
"""
perfdash API Schemas - Pydantic Models for Data Service payloads and UI requests
"""

from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GraphPoint(BaseModel):
    """One performance-test run as returned by the Data Service."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    test_start_time: datetime = Field(..., alias="testStartTime")
    # Request timings
    req_time: float = Field(..., alias="reqTime")
    backend_time: float = Field(..., alias="backendTime")
    # Database operation timings
    db_selects_time: float = Field(..., alias="dbSelectsTime")
    db_updates_time: float = Field(..., alias="dbUpdatesTime")
    db_inserts_time: float = Field(..., alias="dbInsertsTime")
    db_deletes_time: float = Field(..., alias="dbDeletesTime")
    # Database operation counts
    db_selects_quantity: int = Field(..., alias="dbSelectsQuantity")
    db_updates_quantity: int = Field(..., alias="dbUpdatesQuantity")
    db_inserts_quantity: int = Field(..., alias="dbInsertsQuantity")
    db_deletes_quantity: int = Field(..., alias="dbDeletesQuantity")


class Dataset(BaseModel):
    """Full collection of points returned by one getChartData call."""
    model_config = ConfigDict(frozen=True)

    graphs: Tuple[GraphPoint, ...]


class DateRangeUpdate(BaseModel):
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        # A cleared datetime-local picker posts ""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class DeleteRequest(BaseModel):
    confirmed: bool = False
