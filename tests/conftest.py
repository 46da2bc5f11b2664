"""Shared fixtures and helpers for service tests."""

from unittest.mock import AsyncMock

import pytest

from wpg_transit_mcp.data.config import TransitConfig
from wpg_transit_mcp.models.transit import Geographic, Stop


class FakeTransitClient:
    """Stand-in for TransitClient whose fetch methods are AsyncMocks."""

    def __init__(self, **methods: AsyncMock):
        self.fetch_stops = AsyncMock(return_value=[])
        self.fetch_stop = AsyncMock(return_value=None)
        self.fetch_stop_schedule = AsyncMock(return_value=None)
        self.fetch_trips = AsyncMock(return_value=[])
        for name, mock in methods.items():
            setattr(self, name, mock)

    async def __aenter__(self) -> "FakeTransitClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None


def make_stop(key: int, name: str, number: int | None = None) -> Stop:
    return Stop(
        key=key,
        name=name,
        number=number if number is not None else key,
        geographic=Geographic(latitude=49.89, longitude=-97.14),
    )


def raw_stop(key: int, name: str, number: int | None = None, **extra) -> dict:
    record = {
        "key": key,
        "name": name,
        "number": number if number is not None else key,
        "direction": "Northbound",
        "side": "Nearside",
        "centre": {"geographic": {"latitude": "49.8951", "longitude": "-97.1384"}},
    }
    record.update(extra)
    return record


@pytest.fixture
def config() -> TransitConfig:
    """Config with a test API key.

    Note: Must use alias name (WPG_TRANSIT_API_KEY) to override .env file values.
    """
    return TransitConfig(WPG_TRANSIT_API_KEY="test_key")


@pytest.fixture
def config_without_api_key() -> TransitConfig:
    return TransitConfig(WPG_TRANSIT_API_KEY=None)
