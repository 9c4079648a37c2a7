"""
Dashboard Controller

Owns the dashboard state (date range, dataset, theme, raw-data visibility)
and keeps it in sync with the Data Service. Date-range edits trigger a
debounced fetch; every fetch is tagged with a generation number so a late
response for an older range never overwrites a newer one.

All methods must be called on the event loop thread.
"""

import json
import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

# Support running as script or as package
try:
    from ..api.data_service import DataServiceError
    from ..api.schemas import Dataset
except ImportError:
    from api.data_service import DataServiceError
    from api.schemas import Dataset

from .debounce import Debouncer
from .export import dataset_to_csv
from .projection import project_charts
from .state import DateRange, LoadState, ThemeState

logger = logging.getLogger("perfdash.dashboard")

DEFAULT_DATE_FROM = datetime(2020, 1, 1)


class DeleteNotConfirmedError(Exception):
    """Raised when delete_data is called without explicit confirmation."""


def _local_naive(value: datetime) -> datetime:
    """Pickers work in local wall-clock time; drop any offset after converting."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class DashboardController:
    """
    Dashboard state machine: loading -> ready, with failed(reason) reachable
    from both on a rejected fetch and retry leading back to loading.
    """

    def __init__(
        self,
        data_service,
        debounce_seconds: float = 1.0,
        default_date_from: datetime = DEFAULT_DATE_FROM,
        refetch_after_delete: bool = False,
        light_theme: bool = False,
    ):
        self.data_service = data_service
        self.refetch_after_delete = refetch_after_delete

        self.date_range = DateRange(default_date_from, max(datetime.now(), default_date_from))
        self.dataset: Optional[Dataset] = None
        self.state = LoadState.LOADING
        self.error: Optional[str] = None
        self.delete_error: Optional[str] = None
        self.theme = ThemeState(light=light_theme)
        self.raw_data_visible = False
        self.last_updated: Optional[int] = None

        self._generation = 0
        self._fetch_debouncer = Debouncer(self._fetch, debounce_seconds)

    # ---------------- Fetching ----------------

    def start(self) -> None:
        """Enter loading and issue the initial fetch for the default range."""
        logger.info(
            "dashboard starting; initial range %s .. %s",
            self.date_range.date_from.isoformat(), self.date_range.date_to.isoformat()
        )
        self.state = LoadState.LOADING
        self.request_fetch()

    def request_fetch(self) -> int:
        """Schedule a debounced fetch for the current range; returns its generation."""
        self._generation += 1
        self._fetch_debouncer(self._generation, self.date_range)
        return self._generation

    async def _fetch(self, generation: int, date_range: DateRange) -> None:
        try:
            dataset = await self.data_service.get_chart_data(date_range.date_from, date_range.date_to)
        except DataServiceError as e:
            if generation != self._generation:
                logger.debug("ignoring failure of stale fetch #%d: %s", generation, e)
                return
            logger.error("fetch #%d for %s .. %s failed: %s", generation,
                         date_range.date_from, date_range.date_to, e)
            self.state = LoadState.FAILED
            self.error = f"{type(e).__name__}: {e}"
            return

        if generation != self._generation:
            logger.debug("discarding stale response #%d (latest is #%d)", generation, self._generation)
            return

        self.dataset = dataset
        self.state = LoadState.READY
        self.error = None
        self.last_updated = int(time.time())
        logger.debug("fetch #%d applied: %d points", generation, len(dataset.graphs))

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def fetch_pending(self) -> bool:
        return self._fetch_debouncer.pending

    @property
    def refreshing(self) -> bool:
        """A fetch is waiting for its quiet period or still in flight."""
        return self._fetch_debouncer.pending or self._fetch_debouncer.running > 0

    # ---------------- Date range ----------------

    def set_date_range(self, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None) -> DateRange:
        """
        Update either or both range boundaries and re-fetch.

        Raises:
            InvalidDateRangeError: If the resulting range has from > to; the
                current range is kept
        """
        new_range = DateRange(
            _local_naive(date_from) if date_from is not None else self.date_range.date_from,
            _local_naive(date_to) if date_to is not None else self.date_range.date_to,
        )
        if new_range == self.date_range:
            return self.date_range

        self.date_range = new_range
        if self.state == LoadState.FAILED:
            self.state = LoadState.READY if self.dataset is not None else LoadState.LOADING
            self.error = None
        logger.debug("date range changed to %s .. %s", new_range.date_from, new_range.date_to)
        self.request_fetch()
        return new_range

    def set_date_from(self, date_from: datetime) -> DateRange:
        return self.set_date_range(date_from=date_from)

    def set_date_to(self, date_to: datetime) -> DateRange:
        return self.set_date_range(date_to=date_to)

    def retry(self) -> None:
        """Leave the failed state and fetch the current range again."""
        logger.info("retrying fetch for %s .. %s", self.date_range.date_from, self.date_range.date_to)
        self.state = LoadState.LOADING
        self.error = None
        self.request_fetch()

    # ---------------- Delete ----------------

    async def delete_data(self, confirmed: bool = False) -> None:
        """
        Delete all data on the Data Service.

        The local dataset is left as it is; it only changes when a later
        fetch completes (issued here when refetch_after_delete is set).

        Raises:
            DeleteNotConfirmedError: If confirmed is not True
            DataServiceError: If the remote delete fails
        """
        if confirmed is not True:
            raise DeleteNotConfirmedError("deleting all data requires explicit confirmation")

        try:
            await self.data_service.delete_data()
        except DataServiceError as e:
            logger.error("delete failed: %s", e)
            self.delete_error = f"{type(e).__name__}: {e}"
            raise

        self.delete_error = None
        logger.warning("all data deleted on the data service")
        if self.refetch_after_delete:
            self.request_fetch()

    # ---------------- UI flags ----------------

    def toggle_theme(self) -> ThemeState:
        self.theme = self.theme.toggled()
        return self.theme

    def toggle_raw_data(self) -> bool:
        self.raw_data_visible = not self.raw_data_visible
        return self.raw_data_visible

    # ---------------- Views ----------------

    def get_dashboard_data(self) -> Dict[str, Any]:
        """
        Get complete dashboard data structure for the templates.

        Charts are projected from the current dataset on every call.
        """
        dataset = self.dataset
        data = {
            "page_title": "perfdash",
            "timestamp": int(time.time()),
            "state": self.state.value,
            "refreshing": self.refreshing,
            "date_from": self.date_range.date_from,
            "date_to": self.date_range.date_to,
            "theme": self.theme.name,
            "theme_token": self.theme.token,
            "raw_data_visible": self.raw_data_visible,
            "error": self.error,
            "delete_error": self.delete_error,
            "last_updated": self.last_updated,
            "has_data": dataset is not None,
            "charts": project_charts(dataset) if dataset is not None else [],
            "total_points": len(dataset.graphs) if dataset is not None else 0,
            "raw_data": None,
        }
        if dataset is not None and self.raw_data_visible:
            data["raw_data"] = self.get_raw_data()
        return data

    def get_raw_data(self) -> Optional[str]:
        """Serialize the held dataset as it came over the wire."""
        if self.dataset is None:
            return None
        return json.dumps(self.dataset.model_dump(mode="json", by_alias=True))

    def export_csv(self) -> Optional[str]:
        if self.dataset is None:
            return None
        return dataset_to_csv(self.dataset)

    # ---------------- Lifecycle ----------------

    async def shutdown(self) -> None:
        """Drop any pending fetch and wait for in-flight ones."""
        self._fetch_debouncer.cancel()
        await self._fetch_debouncer.drain()
