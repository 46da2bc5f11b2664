"""Tests for the MCP server and health tool."""

import pytest

from wpg_transit_mcp import __version__
from wpg_transit_mcp.data.config import get_transit_config
from wpg_transit_mcp.server import health


@pytest.fixture
def fresh_config():
    """Re-read configuration from the environment for one test."""
    get_transit_config.cache_clear()
    yield
    get_transit_config.cache_clear()


def test_health_returns_ok_status_and_version():
    response = health()

    assert response.status == "ok"
    assert response.version == __version__


def test_health_returns_iso_timestamp():
    response = health()
    assert "T" in response.timestamp


def test_health_reports_configured_api_key(monkeypatch, fresh_config):
    monkeypatch.setenv("WPG_TRANSIT_API_KEY", "test_key")

    assert health().api_key_configured is True
