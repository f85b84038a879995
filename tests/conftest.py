"""
tests/conftest.py
~~~~~~~~~~~~~~~~~
Global pytest fixtures.

``FakeTransport`` stands in for the trip API: it pops pre-canned
``SearchResult`` dicts (or raises pre-canned exceptions) and records every
call so tests can assert how many requests a resolution issued.
"""

from __future__ import annotations

from typing import Any

import pytest


pytest_plugins = ["pytest_asyncio"]

FAILED = {"ok": False, "records": []}


def ok(*records: Any) -> dict[str, Any]:
    """Successful search answer carrying *records*."""
    return {"ok": True, "records": list(records)}


class FakeTransport:
    """In-memory replacement for ``HttpSearchTransport``."""

    def __init__(
        self,
        searches: list[Any] | None = None,
        *,
        locations: Any = None,
        sublocations: Any = None,
        trips: tuple[bool, Any] = (False, None),
    ) -> None:
        self._searches = list(searches or [])
        self._locations = locations if locations is not None else FAILED
        self._sublocations = sublocations if sublocations is not None else FAILED
        self._trips = trips
        self.calls: list[dict[str, str]] = []
        self.trip_payloads: list[dict[str, Any]] = []

    @staticmethod
    def _answer(value: Any) -> Any:
        if isinstance(value, Exception):
            raise value
        return value

    async def search(self, params: dict[str, str]) -> dict[str, Any]:
        self.calls.append(dict(params))
        if not self._searches:
            return FAILED
        return self._answer(self._searches.pop(0))

    async def fetch_locations(self, page: int = 1, per: int = 30) -> dict[str, Any]:
        return self._answer(self._locations)

    async def fetch_all_sublocations(self) -> dict[str, Any]:
        return self._answer(self._sublocations)

    async def search_trips(self, payload: dict[str, Any]) -> tuple[bool, Any]:
        self.trip_payloads.append(payload)
        return self._trips


@pytest.fixture
def fake_transport():
    """Factory: ``fake_transport([...answers...], sublocations=…)``."""
    return FakeTransport
