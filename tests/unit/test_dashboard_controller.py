"""Unit tests for DashboardController

Drives the controller on a real event loop against FakeDataService with a
short debounce delay.
"""
import asyncio
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from api.data_service import DataServiceClient, NetworkError, ServerError
from dashboard.controller import DashboardController, DeleteNotConfirmedError
from dashboard.state import DateRange, InvalidDateRangeError, LoadState
from conftest import FakeDataService, make_dataset

DELAY = 0.02
SETTLE = DELAY * 5


def make_controller(service, **kwargs):
    return DashboardController(service, debounce_seconds=DELAY, **kwargs)


class TestInitialFetch:

    def test_start_fetches_default_range_once(self, fake_service):
        controller = make_controller(fake_service)
        before = datetime.now()

        async def scenario():
            controller.start()
            assert controller.state == LoadState.LOADING
            await asyncio.sleep(SETTLE)

        asyncio.run(scenario())

        assert len(fake_service.fetch_calls) == 1
        date_from, date_to = fake_service.fetch_calls[0]
        assert date_from == datetime(2020, 1, 1)
        assert before - timedelta(seconds=5) <= date_to <= datetime.now()

    def test_resolution_moves_to_ready(self, fake_service, sample_dataset):
        controller = make_controller(fake_service)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)

        asyncio.run(scenario())

        assert controller.state == LoadState.READY
        assert controller.dataset == sample_dataset
        assert controller.error is None
        assert controller.last_updated is not None

    def test_custom_default_date_from(self, fake_service):
        controller = make_controller(fake_service, default_date_from=datetime(2023, 6, 1))

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)

        asyncio.run(scenario())

        assert fake_service.fetch_calls[0][0] == datetime(2023, 6, 1)


class TestDateRange:

    def test_editing_both_bounds_quickly_fetches_once_with_new_pair(self, fake_service):
        controller = make_controller(fake_service)
        new_from = datetime(2024, 1, 1)
        new_to = datetime(2024, 2, 1)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)
            controller.set_date_from(new_from)
            controller.set_date_to(new_to)
            await asyncio.sleep(SETTLE)

        asyncio.run(scenario())

        assert len(fake_service.fetch_calls) == 2
        assert fake_service.fetch_calls[1] == (new_from, new_to)
        assert controller.date_range == DateRange(new_from, new_to)

    def test_single_bound_change_fetches_with_updated_pair(self, fake_service):
        controller = make_controller(fake_service)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)
            old_to = controller.date_range.date_to
            controller.set_date_from(datetime(2022, 5, 5, 10, 30))
            await asyncio.sleep(SETTLE)
            return old_to

        old_to = asyncio.run(scenario())

        assert fake_service.fetch_calls[-1] == (datetime(2022, 5, 5, 10, 30), old_to)

    def test_unchanged_range_does_not_fetch(self, fake_service):
        controller = make_controller(fake_service)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)
            controller.set_date_from(controller.date_range.date_from)
            await asyncio.sleep(SETTLE)

        asyncio.run(scenario())

        assert len(fake_service.fetch_calls) == 1

    def test_inverted_range_is_rejected_and_state_kept(self, fake_service):
        controller = make_controller(fake_service)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)
            original = controller.date_range
            with pytest.raises(InvalidDateRangeError):
                controller.set_date_range(datetime(2024, 5, 1), datetime(2024, 4, 1))
            await asyncio.sleep(SETTLE)
            return original

        original = asyncio.run(scenario())

        assert controller.date_range == original
        assert len(fake_service.fetch_calls) == 1

    def test_timezone_aware_input_is_normalized(self, fake_service):
        controller = make_controller(fake_service)
        aware = datetime(2024, 1, 1, 12, 0).astimezone()

        async def scenario():
            controller.set_date_from(aware)
            controller._fetch_debouncer.cancel()

        asyncio.run(scenario())

        assert controller.date_range.date_from.tzinfo is None
        assert controller.date_range.date_from == datetime(2024, 1, 1, 12, 0)


class TestStaleResponses:

    def test_late_response_for_old_range_is_discarded(self):
        old_dataset = make_dataset(1)
        new_dataset = make_dataset(5)
        new_from = datetime(2024, 1, 1)

        def handler(date_from, date_to):
            if date_from == new_from:
                return (0, new_dataset)
            return (SETTLE * 2, old_dataset)

        service = FakeDataService(handler=handler)
        controller = make_controller(service)

        async def scenario():
            controller.start()
            # First fetch is in flight (slow) when the range changes
            await asyncio.sleep(DELAY * 2)
            controller.set_date_from(new_from)
            await asyncio.sleep(SETTLE * 4)

        asyncio.run(scenario())

        assert len(service.fetch_calls) == 2
        assert controller.dataset == new_dataset
        assert controller.state == LoadState.READY

    def test_generation_increments_per_request(self, fake_service):
        controller = make_controller(fake_service)

        async def scenario():
            controller.start()
            first = controller.generation
            controller.set_date_from(datetime(2024, 1, 1))
            second = controller.generation
            await asyncio.sleep(SETTLE)
            return first, second

        first, second = asyncio.run(scenario())

        assert second == first + 1
        assert len(fake_service.fetch_calls) == 1


class TestFailures:

    def test_rejected_fetch_enters_failed(self):
        def handler(date_from, date_to):
            raise NetworkError("connection refused")

        service = FakeDataService(handler=handler)
        controller = make_controller(service)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)

        asyncio.run(scenario())

        assert controller.state == LoadState.FAILED
        assert "NetworkError" in controller.error
        assert controller.dataset is None

    def test_undecodable_body_enters_failed(self):
        response = MagicMock()
        response.read.return_value = b'{"graphs": [\xff]}'
        response.__enter__.return_value = response
        controller = make_controller(DataServiceClient("http://data.local:8080"))

        async def scenario():
            with patch('api.data_service.urlopen', return_value=response):
                controller.start()
                for _ in range(100):
                    await asyncio.sleep(DELAY)
                    if controller.state != LoadState.LOADING:
                        break

        asyncio.run(scenario())

        assert controller.state == LoadState.FAILED
        assert "SerializationError" in controller.error

    def test_retry_returns_to_loading_then_ready(self, sample_dataset):
        outcomes = [ServerError(503, "unavailable"), sample_dataset]

        def handler(date_from, date_to):
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        service = FakeDataService(handler=handler)
        controller = make_controller(service)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)
            assert controller.state == LoadState.FAILED
            controller.retry()
            assert controller.state == LoadState.LOADING
            assert controller.error is None
            await asyncio.sleep(SETTLE)

        asyncio.run(scenario())

        assert controller.state == LoadState.READY
        assert controller.dataset == sample_dataset

    def test_failure_after_ready_keeps_last_dataset(self, sample_dataset):
        outcomes = [sample_dataset, NetworkError("timed out")]

        def handler(date_from, date_to):
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        service = FakeDataService(handler=handler)
        controller = make_controller(service)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)
            controller.set_date_from(datetime(2024, 1, 1))
            await asyncio.sleep(SETTLE)

        asyncio.run(scenario())

        assert controller.state == LoadState.FAILED
        assert controller.dataset == sample_dataset

    def test_range_change_leaves_failed_state(self):
        def handler(date_from, date_to):
            raise NetworkError("down")

        service = FakeDataService(handler=handler)
        controller = make_controller(service)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)
            assert controller.state == LoadState.FAILED
            controller.set_date_from(datetime(2024, 1, 1))
            state = controller.state
            controller._fetch_debouncer.cancel()
            return state

        assert asyncio.run(scenario()) == LoadState.LOADING


class TestDelete:

    def test_unconfirmed_delete_is_refused(self, fake_service):
        controller = make_controller(fake_service)

        with pytest.raises(DeleteNotConfirmedError):
            asyncio.run(controller.delete_data())

        assert fake_service.delete_calls == 0

    def test_confirmed_delete_keeps_local_dataset(self, fake_service, sample_dataset):
        controller = make_controller(fake_service)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)
            await controller.delete_data(confirmed=True)
            await asyncio.sleep(SETTLE)

        asyncio.run(scenario())

        assert fake_service.delete_calls == 1
        assert controller.dataset == sample_dataset
        assert len(fake_service.fetch_calls) == 1

    def test_refetch_after_delete_when_configured(self, fake_service):
        controller = make_controller(fake_service, refetch_after_delete=True)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)
            await controller.delete_data(confirmed=True)
            await asyncio.sleep(SETTLE)

        asyncio.run(scenario())

        assert len(fake_service.fetch_calls) == 2
        assert fake_service.fetch_calls[0] == fake_service.fetch_calls[1]

    def test_delete_failure_is_recorded_and_raised(self, fake_service):
        fake_service.delete_error = ServerError(500, "db locked")
        controller = make_controller(fake_service)

        with pytest.raises(ServerError):
            asyncio.run(controller.delete_data(confirmed=True))

        assert "db locked" in controller.delete_error


class TestUiFlags:

    def test_theme_toggle_flips_token_only(self, fake_service, sample_dataset):
        controller = make_controller(fake_service)

        async def scenario():
            controller.start()
            await asyncio.sleep(SETTLE)
            range_before = controller.date_range
            dark = controller.theme.token
            controller.toggle_theme()
            return range_before, dark

        range_before, dark = asyncio.run(scenario())

        assert dark == {"background": "#282c34", "text": "white", "grid": "#44495a"}
        assert controller.theme.token["background"] == "#ffffff"
        assert controller.theme.token["text"] == "black"
        assert controller.date_range == range_before
        assert controller.dataset == sample_dataset
        assert len(fake_service.fetch_calls) == 1

        controller.toggle_theme()
        assert controller.theme.token == dark

    def test_raw_data_toggle(self, fake_service):
        controller = make_controller(fake_service)

        assert controller.toggle_raw_data() is True
        assert controller.toggle_raw_data() is False


class TestDashboardData:

    def test_loading_view_has_no_charts(self, fake_service):
        controller = make_controller(fake_service)

        data = controller.get_dashboard_data()

        assert data["state"] == "loading"
        assert data["has_data"] is False
        assert data["charts"] == []
        assert data["total_points"] == 0

    def test_ready_view_projects_charts_and_raw_data(self, fake_service, sample_dataset):
        controller = make_controller(fake_service)
        controller.dataset = sample_dataset
        controller.state = LoadState.READY
        controller.toggle_raw_data()

        data = controller.get_dashboard_data()

        assert data["state"] == "ready"
        assert data["total_points"] == 3
        assert len(data["charts"]) == 3
        assert '"testStartTime": "2024-01-01T12:00:00"' in data["raw_data"]
        assert data["theme_token"]["text"] == "white"

    def test_refreshing_while_range_fetch_outstanding(self, fake_service, sample_dataset):
        controller = make_controller(fake_service)
        controller.dataset = sample_dataset
        controller.state = LoadState.READY
        seen = []

        async def scenario():
            seen.append(controller.get_dashboard_data()["refreshing"])
            controller.set_date_from(datetime(2024, 1, 1, 8, 30))
            seen.append(controller.get_dashboard_data()["refreshing"])
            await asyncio.sleep(SETTLE)
            seen.append(controller.get_dashboard_data()["refreshing"])

        asyncio.run(scenario())

        assert seen == [False, True, False]
        assert controller.state == LoadState.READY

    def test_export_csv_without_data(self, fake_service):
        assert make_controller(fake_service).export_csv() is None


class TestShutdown:

    def test_shutdown_cancels_pending_fetch(self, fake_service):
        controller = make_controller(fake_service)

        async def scenario():
            controller.start()
            await controller.shutdown()
            await asyncio.sleep(SETTLE)

        asyncio.run(scenario())

        assert fake_service.fetch_calls == []
        assert not controller.fetch_pending
