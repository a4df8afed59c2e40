"""
Async client for the Marketing Pulse backend source endpoints.
"""

import logging
import os
from typing import Optional, Type

import httpx
from dotenv import load_dotenv
from pydantic import ValidationError

from marketing_pulse.dashboard.dates import DateRange
from marketing_pulse.schemas import PulseModel

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 30.0


class SourceUnavailable(Exception):
    """A source could not be fetched or its payload did not validate."""

    def __init__(self, endpoint: str, reason: str):
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"{endpoint}: {reason}")


class BackendClient:
    """
    Calls `POST /api/sources/<endpoint>` and validates the `data` field.

    Use as an async context manager so the underlying connection pool is
    closed when the load finishes.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or os.getenv("MARKETING_API_URL", DEFAULT_API_URL)).rstrip("/")
        if timeout is None:
            timeout = float(os.getenv("MARKETING_API_TIMEOUT", DEFAULT_TIMEOUT))
        self._http = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    async def invoke(self, endpoint: str, date_range: DateRange, schema: Type[PulseModel]) -> PulseModel:
        """
        Fetch one source for `date_range`.

        Raises:
            SourceUnavailable: transport error, non-2xx answer or invalid payload
        """
        try:
            response = await self._http.post(f"/api/sources/{endpoint}", json=date_range.to_body())
        except httpx.HTTPError as e:
            raise SourceUnavailable(endpoint, f"request failed: {e}") from e

        if response.status_code != 200:
            detail = response.text
            try:
                error_body = response.json()
            except ValueError:
                error_body = None
            if isinstance(error_body, dict):
                detail = error_body.get("detail", detail)
            raise SourceUnavailable(endpoint, f"HTTP {response.status_code}: {detail}")

        try:
            body = response.json()
        except ValueError as e:
            raise SourceUnavailable(endpoint, "response is not JSON") from e

        if not isinstance(body, dict) or "data" not in body:
            raise SourceUnavailable(endpoint, "response has no data field")

        try:
            return schema.model_validate(body["data"])
        except ValidationError as e:
            raise SourceUnavailable(endpoint, f"invalid payload: {e.error_count()} errors") from e

    async def insights(self, path: str, body: dict) -> dict:
        """
        Request an AI analysis from `POST /api/insights/<path>`.

        Raises:
            SourceUnavailable: transport error, non-2xx answer or a body
                that is not a JSON object
        """
        try:
            response = await self._http.post(f"/api/insights/{path}", json=body)
        except httpx.HTTPError as e:
            raise SourceUnavailable(path, f"request failed: {e}") from e

        if response.status_code != 200:
            detail = response.text
            try:
                error_body = response.json()
            except ValueError:
                error_body = None
            if isinstance(error_body, dict):
                detail = error_body.get("detail", detail)
            raise SourceUnavailable(path, str(detail))

        try:
            body = response.json()
        except ValueError as e:
            raise SourceUnavailable(path, "response is not JSON") from e

        if not isinstance(body, dict):
            raise SourceUnavailable(path, "response is not an object")
        return body
