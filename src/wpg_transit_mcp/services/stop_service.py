"""Stop search service backed by the Winnipeg Transit API.

All errors are caught and logged - functions return an empty list (or None)
on failure so callers can show an empty state.
"""

import logging

from wpg_transit_mcp.data.config import TransitConfig, get_transit_config
from wpg_transit_mcp.data.transit_client import TransitClient
from wpg_transit_mcp.models.transit import Stop
from wpg_transit_mcp.services.normalizers import normalize_stop, normalize_stops

logger = logging.getLogger(__name__)

# Queries shorter than this never reach the network
MIN_QUERY_LENGTH = 2

_config: TransitConfig | None = None


def _get_config() -> TransitConfig:
    """Get or create the config singleton."""
    global _config
    if _config is None:
        _config = get_transit_config()
    return _config


def _stop_number_text(stop: Stop) -> str:
    return str(stop.number) if isinstance(stop.number, int) else ""


def filter_stops_by_text(stops: list[Stop], query: str, limit: int) -> list[Stop]:
    """Keep stops whose name contains the query (case-insensitive) or whose
    number contains it, in their original order, up to `limit`.
    """
    needle = query.lower()
    matches = [
        stop
        for stop in stops
        if needle in stop.name.lower() or query in _stop_number_text(stop)
    ]
    return matches[:limit]


async def search_stops(
    query: str,
    lat: float | None = None,
    lon: float | None = None,
    radius_meters: int | None = None,
    route: str | None = None,
) -> list[Stop]:
    """Search stops by name or number near a location.

    When the scoped query finds nothing, one wide-radius scan around the city
    centre is made and filtered client-side by name/number. The route filter
    is passed through to that scan but not re-applied by the text filter.

    Args:
        query: Stop name or number fragment.
        lat: Latitude of the location hint (default: city centre).
        lon: Longitude of the location hint (default: city centre).
        radius_meters: Search radius around the hint.
        route: Optional route number constraint.

    Returns:
        Matching stops in upstream order, or an empty list on any failure.
    """
    query = query.strip()
    if len(query) < MIN_QUERY_LENGTH:
        logger.debug(f"Query {query!r} too short, skipping search")
        return []

    config = _get_config()
    if config.api_key is None:
        logger.debug("No API key configured, cannot search stops")
        return []

    if lat is None or lon is None:
        lat, lon = config.default_latitude, config.default_longitude
    if radius_meters is None:
        radius_meters = config.search_radius_meters

    try:
        async with TransitClient(config) as client:
            records = await client.fetch_stops(
                lat, lon, radius_meters, name=query, route=route
            )
            stops = normalize_stops(records)
            if stops:
                return stops

            logger.debug(f"No stops matched {query!r}, widening search")
            wide_records = await client.fetch_stops(
                config.default_latitude,
                config.default_longitude,
                config.fallback_radius_meters,
                route=route,
            )
            return filter_stops_by_text(
                normalize_stops(wide_records), query, config.fallback_result_limit
            )
    except Exception as e:
        logger.warning(f"Failed to search stops for {query!r}: {e}")
        return []


async def get_stops_near(
    lat: float,
    lon: float,
    radius_meters: int | None = None,
) -> list[Stop]:
    """Fetch stops within a radius of a coordinate.

    No widening is done; an empty list is a valid "no stops near you" result.
    """
    config = _get_config()
    if config.api_key is None:
        logger.debug("No API key configured, cannot fetch nearby stops")
        return []

    if radius_meters is None:
        radius_meters = config.nearby_radius_meters

    try:
        async with TransitClient(config) as client:
            records = await client.fetch_stops(lat, lon, radius_meters)
        stops = normalize_stops(records)
    except Exception as e:
        logger.warning(f"Failed to fetch stops near ({lat}, {lon}): {e}")
        return []

    logger.debug(f"Fetched {len(stops)} stops within {radius_meters}m of ({lat}, {lon})")
    return stops


async def get_stop(stop_key: int) -> Stop | None:
    """Get a single stop by its key.

    Returns:
        Stop if found, None if missing or on error.
    """
    config = _get_config()
    if config.api_key is None:
        logger.debug("No API key configured, cannot fetch stop")
        return None

    try:
        async with TransitClient(config) as client:
            record = await client.fetch_stop(stop_key)
        if not isinstance(record, dict):
            return None
        return normalize_stop(record)
    except Exception as e:
        logger.warning(f"Failed to fetch stop {stop_key}: {e}")
        return None


def reset_service() -> None:
    """Reset the service config. Useful for testing."""
    global _config
    _config = None
    if hasattr(get_transit_config, "cache_clear"):
        get_transit_config.cache_clear()
