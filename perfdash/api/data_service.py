"""
Data Service client for perfdash.

Wraps the two remote operations the dashboard needs (fetch chart data for a
date range, delete all stored data). Requests are plain urllib calls run in
the default executor so the event loop is never blocked.
"""

import asyncio
import http.client
import json
import logging
import socket
import ssl
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from pydantic import ValidationError

# Support running as script or as package
try:
    from .schemas import Dataset
except ImportError:
    from api.schemas import Dataset

logger = logging.getLogger("perfdash.api")

CHART_DATA_ENDPOINT = "/api/graphs"
DELETE_DATA_ENDPOINT = "/api/data"


class DataServiceError(Exception):
    """Base class for Data Service failures."""


class NetworkError(DataServiceError):
    """The request could not reach the Data Service."""


class ServerError(DataServiceError):
    """The Data Service answered with a non-success status."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        self.message = message
        super().__init__(f"HTTP {status}: {message}" if message else f"HTTP {status}")


class SerializationError(DataServiceError):
    """The Data Service payload could not be decoded."""


class DataServiceClient:
    """HTTP client for the performance-test Data Service."""

    def __init__(self, base_url: str, timeout: float = 10, verify_tls: bool = True):
        """
        Initialize Data Service client.

        Args:
            base_url: Base URL of the Data Service (e.g., http://localhost:8080)
            timeout: Request timeout in seconds
            verify_tls: Verify server certificates for HTTPS URLs
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._ssl_context = self._create_ssl_context(verify_tls)

    def _create_ssl_context(self, verify_tls: bool) -> ssl.SSLContext:
        ssl_context = ssl.create_default_context()
        if not verify_tls:
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
        return ssl_context

    def _request(self, method: str, endpoint: str, params: Optional[Dict[str, str]] = None) -> Any:
        """
        Perform a blocking request and decode the JSON body.

        Returns:
            Decoded JSON, or None for an empty body

        Raises:
            NetworkError: On connection errors and timeouts
            ServerError: On HTTP error statuses
            SerializationError: On a body that is not valid UTF-8 JSON
        """
        url = f"{self.base_url}{endpoint}"
        if params:
            url = f"{url}?{urlencode(params)}"
        req = Request(url, headers={"Accept": "application/json"}, method=method)

        # Use SSL context for HTTPS URLs
        ssl_context = self._ssl_context if url.startswith("https://") else None

        logger.debug("%s %s", method, url)
        try:
            with urlopen(req, timeout=self.timeout, context=ssl_context) as resp:
                body = resp.read()
        except HTTPError as e:
            try:
                msg = e.read().decode("utf-8")
            except Exception:
                msg = str(e.reason)
            raise ServerError(e.code, msg) from e
        except (URLError, http.client.HTTPException, socket.timeout, TimeoutError, ConnectionError) as e:
            raise NetworkError(f"failed to reach {self.base_url}: {e}") from e

        if not body:
            return None
        try:
            return json.loads(body.decode("utf-8"))
        except ValueError as e:
            raise SerializationError(f"invalid JSON from {endpoint}: {e}") from e

    def fetch_chart_data(self, date_from: datetime, date_to: datetime) -> Dataset:
        """Blocking variant of get_chart_data."""
        params = {"from": date_from.isoformat(), "to": date_to.isoformat()}
        payload = self._request("GET", CHART_DATA_ENDPOINT, params)
        if not isinstance(payload, dict):
            raise SerializationError(f"expected JSON object from {CHART_DATA_ENDPOINT}, got {type(payload).__name__}")
        try:
            dataset = Dataset.model_validate(payload)
        except ValidationError as e:
            raise SerializationError(f"malformed dataset: {e}") from e
        logger.debug("received %d points for %s..%s", len(dataset.graphs), date_from, date_to)
        return dataset

    def remove_data(self) -> None:
        """Blocking variant of delete_data."""
        self._request("DELETE", DELETE_DATA_ENDPOINT)
        logger.info("all data deleted on %s", self.base_url)

    async def get_chart_data(self, date_from: datetime, date_to: datetime) -> Dataset:
        """Fetch the dataset for [date_from, date_to]. No retry is performed."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.fetch_chart_data, date_from, date_to)

    async def delete_data(self) -> None:
        """Delete all stored data. Irreversible; callers must confirm first."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.remove_data)
