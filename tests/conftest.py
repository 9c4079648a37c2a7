"""Pytest configuration and shared fixtures"""
import asyncio
import os
import sys
from datetime import datetime, timedelta

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'perfdash'))

from api.schemas import Dataset, GraphPoint


def make_point(start: datetime, **fields) -> GraphPoint:
    """Build a GraphPoint from wire-style field names."""
    payload = {
        "testStartTime": start,
        "reqTime": 0, "backendTime": 0,
        "dbSelectsTime": 0, "dbUpdatesTime": 0, "dbInsertsTime": 0, "dbDeletesTime": 0,
        "dbSelectsQuantity": 0, "dbUpdatesQuantity": 0, "dbInsertsQuantity": 0, "dbDeletesQuantity": 0,
    }
    payload.update(fields)
    return GraphPoint.model_validate(payload)


def make_dataset(count: int, start: datetime = datetime(2024, 1, 1, 12, 0)) -> Dataset:
    return Dataset(graphs=tuple(
        make_point(
            start + timedelta(hours=i),
            reqTime=10.0 + i, backendTime=5.0 + i,
            dbSelectsTime=1.0 * i, dbUpdatesTime=2.0 * i, dbInsertsTime=3.0 * i, dbDeletesTime=4.0 * i,
            dbSelectsQuantity=i, dbUpdatesQuantity=2 * i, dbInsertsQuantity=3 * i, dbDeletesQuantity=4 * i,
        )
        for i in range(count)
    ))


class FakeDataService:
    """
    In-memory stand-in for DataServiceClient.

    ``handler(date_from, date_to)`` may return a Dataset, raise, or return a
    (delay, Dataset) tuple to simulate slow responses.
    """

    def __init__(self, dataset=None, handler=None):
        self.dataset = dataset if dataset is not None else make_dataset(3)
        self.handler = handler
        self.fetch_calls = []
        self.delete_calls = 0
        self.delete_error = None

    async def get_chart_data(self, date_from, date_to):
        self.fetch_calls.append((date_from, date_to))
        if self.handler is None:
            return self.dataset
        result = self.handler(date_from, date_to)
        if isinstance(result, tuple):
            delay, result = result
            await asyncio.sleep(delay)
        return result

    async def delete_data(self):
        self.delete_calls += 1
        if self.delete_error is not None:
            raise self.delete_error


@pytest.fixture
def sample_dataset():
    """Three hourly points starting 2024-01-01 12:00"""
    return make_dataset(3)


@pytest.fixture
def empty_dataset():
    return Dataset(graphs=())


@pytest.fixture
def fake_service(sample_dataset):
    return FakeDataService(dataset=sample_dataset)
