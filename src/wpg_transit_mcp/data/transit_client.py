from datetime import datetime
from typing import Any

import httpx

from wpg_transit_mcp.data.config import TransitConfig


class TransitClient:
    """Async HTTP client for the Winnipeg Transit JSON API.

    Returns raw upstream payloads; normalization happens in the services.

    Usage:
        async with TransitClient(config) as client:
            stops = await client.fetch_stops(lat, lon, distance=500)
    """

    def __init__(self, config: TransitConfig):
        """Initialize the client.

        Args:
            config: Configuration with API key, base URL and timeout.
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "TransitClient":
        """Enter async context - create HTTP client."""
        params = {}
        if self._config.api_key:
            params["api-key"] = self._config.api_key
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            params=params,
            timeout=self._config.request_timeout_seconds,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET a JSON document and return its top-level object.

        Raises:
            RuntimeError: If client not initialized.
            httpx.HTTPError: If the HTTP request fails.
            ValueError: If the body is not a JSON object.
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")

        response = await self._client.get(path, params=params)
        response.raise_for_status()

        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object from {path}, got {type(data).__name__}")
        return data

    async def fetch_stops(
        self,
        lat: float,
        lon: float,
        distance: int,
        name: str | None = None,
        route: str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch raw stop records within `distance` meters of a point.

        Args:
            lat: Latitude in degrees.
            lon: Longitude in degrees.
            distance: Search radius in meters.
            name: Optional stop name/number query.
            route: Optional route number constraint.

        Returns:
            The upstream `stops` list (empty when absent).
        """
        params: dict[str, Any] = {"lat": lat, "lon": lon, "distance": distance}
        if name is not None:
            params["name"] = name
        if route:
            params["route"] = route

        data = await self._get_json("/stops.json", params)
        stops = data.get("stops") or []
        return stops if isinstance(stops, list) else []

    async def fetch_stop(self, stop_key: int) -> dict[str, Any] | None:
        """Fetch a single raw stop record by key."""
        data = await self._get_json(f"/stops/{stop_key}.json")
        return data.get("stop") or None

    async def fetch_stop_schedule(
        self,
        stop_key: int,
        max_results_per_route: int,
        start: datetime,
    ) -> dict[str, Any] | None:
        """Fetch the raw `stop-schedule` object for a stop.

        Args:
            stop_key: Stop identity.
            max_results_per_route: Upstream cap on times per route.
            start: Earliest time of interest.

        Returns:
            The `stop-schedule` object, or None if the upstream omitted it.
        """
        params = {
            "max-results-per-route": max_results_per_route,
            "start": start.isoformat(timespec="seconds"),
        }
        data = await self._get_json(f"/stops/{stop_key}/schedule.json", params)
        return data.get("stop-schedule") or None

    async def fetch_trips(self, origin_key: int, destination_key: int) -> list[dict[str, Any]]:
        """Fetch raw trip plans (itineraries) between two stops."""
        params = {"origin": origin_key, "destination": destination_key}
        data = await self._get_json("/trips.json", params)
        trips = data.get("trips") or []
        return trips if isinstance(trips, list) else []
