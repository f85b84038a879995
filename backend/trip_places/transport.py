"""
transport.py
~~~~~~~~~~~~
HTTP client for the trip API's ``?action=`` endpoints.

The API is a single script addressed as ``<base>?action=<name>&…``; the
configured base URL therefore ends in ``action=`` and every call appends
the action name before merging its query parameters.

Contract
--------
``search()`` and friends **never raise**: timeouts, connection errors,
5xx / 4xx statuses and unparsable JSON are logged and returned as
``{"ok": False, "records": []}``. The resolver relies on that to degrade
through its strategies.

Payload shapes tolerated (in order): ``{"data": [...]}``, a bare list,
``{"results": [...]}``.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from . import config
from .api_logging import logged_request_async
from .constants import USER_AGENT
from .models import SearchResult

LOG = logging.getLogger("transport")

SEARCH_ACTION = "searchPlaces"
LOCATIONS_ACTION = "locations"
SUBLOCATIONS_ALL_ACTION = "sublocationsAll"
SEARCH_TRIPS_ACTION = "searchTrips"


class SearchTransport(Protocol):
    """Anything the resolver can query for raw place records."""

    async def search(self, params: dict[str, str]) -> SearchResult:
        ...


def extract_records(data: Any) -> list[Any]:
    """Pull the record list out of whichever envelope the server used."""
    if isinstance(data, dict):
        for key in ("data", "results"):
            if isinstance(data.get(key), list):
                return data[key]
        return []
    if isinstance(data, list):
        return data
    return []


def _failed() -> SearchResult:
    return {"ok": False, "records": []}


class HttpSearchTransport:
    """
    ``SearchTransport`` over an ``httpx.AsyncClient``.

    Args:
        client:   Shared ``httpx.AsyncClient``; created (and owned) here when
                  omitted.
        base_url: URL ending in ``action=``; defaults to
                  ``config.TRIP_API_BASE_URL``.
        token:    Bearer token; defaults to ``config.TRIP_API_TOKEN``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        token: str | None = None,
    ) -> None:
        self.base_url = base_url or config.TRIP_API_BASE_URL
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.TRIP_API_TIMEOUT)
        self._headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
            **config.auth_header(token),
        }

    def url_for(self, action: str) -> str:
        """``<base_url><action>`` with stray leading slashes removed."""
        return f"{self.base_url}{action.lstrip('/')}"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, action: str, params: dict[str, str]) -> tuple[bool, Any]:
        url = self.url_for(action)
        try:
            resp = await logged_request_async(
                self._client,
                "get",
                url,
                params=params,
                headers=self._headers,
                raise_for_status=False,
            )
        except httpx.HTTPError as exc:
            LOG.warning("[%s] transport error: %s", action, exc)
            return False, None

        if not resp.is_success:
            LOG.warning("[%s] HTTP %s", action, resp.status_code)
            return False, None

        try:
            return True, resp.json()
        except ValueError as exc:
            LOG.warning("[%s] bad JSON: %s", action, exc)
            return False, None

    async def _records(self, action: str, params: dict[str, str]) -> SearchResult:
        ok, data = await self._get_json(action, params)
        if not ok:
            return _failed()
        return {"ok": True, "records": extract_records(data)}

    async def search(self, params: dict[str, str]) -> SearchResult:
        """``searchPlaces`` with *params* (``q``, ``limit``, ``include_sublocations`` …)."""
        return await self._records(SEARCH_ACTION, params)

    async def fetch_locations(self, page: int = 1, per: int = 30) -> SearchResult:
        """One page of top-level locations."""
        return await self._records(LOCATIONS_ACTION, {"page": str(page), "per": str(per)})

    async def fetch_all_sublocations(self) -> SearchResult:
        """Every sub-location the server knows about."""
        return await self._records(SUBLOCATIONS_ALL_ACTION, {})

    async def search_trips(self, payload: dict[str, Any]) -> tuple[bool, Any]:
        """POST a trip-search payload; returns ``(ok, decoded body or None)``."""
        url = self.url_for(SEARCH_TRIPS_ACTION)
        try:
            resp = await logged_request_async(
                self._client,
                "post",
                url,
                json=payload,
                headers=self._headers,
                raise_for_status=False,
            )
        except httpx.HTTPError as exc:
            LOG.warning("[%s] transport error: %s", SEARCH_TRIPS_ACTION, exc)
            return False, None

        if not resp.is_success:
            LOG.warning("[%s] HTTP %s", SEARCH_TRIPS_ACTION, resp.status_code)
            return False, None
        try:
            return True, resp.json()
        except ValueError as exc:
            LOG.warning("[%s] bad JSON: %s", SEARCH_TRIPS_ACTION, exc)
            return False, None


__all__ = [
    "HttpSearchTransport",
    "SearchTransport",
    "extract_records",
]
