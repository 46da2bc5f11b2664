"""MCP tools for finding stops."""

import logging
from collections import OrderedDict

from wpg_transit_mcp.app import mcp
from wpg_transit_mcp.data.config import get_transit_config
from wpg_transit_mcp.models.responses import (
    GetStopResponse,
    LocateResponse,
    NearbyStopsResponse,
    SearchStopsResponse,
)
from wpg_transit_mcp.models.transit import Stop
from wpg_transit_mcp.services import stop_service
from wpg_transit_mcp.services.location_service import (
    PositionSource,
    acquire_position,
    resolve_location_hint,
)
from wpg_transit_mcp.services.normalizers import displayable_stops
from wpg_transit_mcp.services.search_session import SearchSession

logger = logging.getLogger(__name__)

# One latest-only search stream per client session, least recently used first
_sessions: OrderedDict[str, SearchSession] = OrderedDict()


async def _search_displayable(query: str, **options) -> list[Stop]:
    return displayable_stops(await stop_service.search_stops(query, **options))


def _get_session(session_id: str) -> SearchSession:
    config = get_transit_config()
    session = _sessions.get(session_id)
    if session is not None:
        _sessions.move_to_end(session_id)
        return session

    session = SearchSession(
        resolver=_search_displayable,
        debounce_seconds=config.search_debounce_seconds,
        display_limit=config.display_limit,
    )
    _sessions[session_id] = session
    while len(_sessions) > config.max_search_sessions:
        evicted, _ = _sessions.popitem(last=False)
        logger.debug(f"Evicted search session {evicted!r}")
    return session


def _clamp_radius(radius_meters: int) -> int:
    if radius_meters < 1:
        return 1
    if radius_meters > 15000:
        return 15000
    return radius_meters


@mcp.tool()
async def search_stops(
    query: str,
    lat: float | None = None,
    lon: float | None = None,
    radius_meters: int = 5000,
    route: str | None = None,
    session_id: str | None = None,
) -> SearchStopsResponse:
    """Search Winnipeg Transit stops by name or stop number.

    Examples:
        search_stops(query="Osborne")  # Stops with "Osborne" in the name
        search_stops(query="10064")  # Stop by number
        search_stops(query="Portage", route="11")  # Only stops served by route 11

    Args:
        query: Stop name or number fragment (at least 2 characters).
        lat: Latitude to search around (default: your location or downtown).
        lon: Longitude to search around (default: your location or downtown).
        radius_meters: Search radius around the location (default 5000m).
        route: Optional route number to restrict results to.
        session_id: Optional id of a type-ahead stream. Within one session only
            the most recent query returns results; older ones report superseded.

    Returns:
        SearchStopsResponse with up to 12 matching stops.
    """
    # Claim the session's generation before any await so arrival order decides
    session = None
    generation = None
    if session_id is not None:
        session = _get_session(session_id)
        generation = session.begin()

    location = await resolve_location_hint(lat, lon)
    options = {
        "lat": location.latitude,
        "lon": location.longitude,
        "radius_meters": _clamp_radius(radius_meters),
        "route": route,
    }

    stops: list[Stop] | None
    if session is not None:
        stops = await session.submit(query, generation=generation, **options)
    else:
        found = await _search_displayable(query, **options)
        stops = found[: get_transit_config().display_limit]

    if stops is None:
        return SearchStopsResponse(stops=[], count=0, query=query, superseded=True)
    return SearchStopsResponse(stops=stops, count=len(stops), query=query)


@mcp.tool()
async def end_search_session(session_id: str) -> bool:
    """Forget a type-ahead search session.

    Args:
        session_id: Id previously passed to search_stops.

    Returns:
        True if the session existed.
    """
    return _sessions.pop(session_id, None) is not None


@mcp.tool()
async def find_nearby_stops(
    lat: float | None = None,
    lon: float | None = None,
    radius_meters: int = 500,
) -> NearbyStopsResponse:
    """Find stops near a location.

    Args:
        lat: Latitude (default: your location or downtown Winnipeg).
        lon: Longitude (default: your location or downtown Winnipeg).
        radius_meters: Search radius (default 500m, max 15000m).

    Returns:
        NearbyStopsResponse with stops in upstream order (closest first) and
        direct/walking distances where known. An empty list means no stops nearby.
    """
    location = await resolve_location_hint(lat, lon)
    radius_meters = _clamp_radius(radius_meters)

    stops = await stop_service.get_stops_near(location.latitude, location.longitude, radius_meters)
    stops = displayable_stops(stops)
    return NearbyStopsResponse(
        stops=stops,
        count=len(stops),
        location=location,
        radius_meters=radius_meters,
    )


@mcp.tool()
async def get_stop(stop_key: int) -> GetStopResponse:
    """Look up a single stop by its stop number/key (e.g., 10064)."""
    stop = await stop_service.get_stop(stop_key)
    return GetStopResponse(stop=stop, found=stop is not None)


@mcp.tool()
async def locate_user() -> LocateResponse:
    """Get the rider's current position.

    Falls back to downtown Winnipeg when positioning is unavailable, denied,
    or does not answer within a few seconds.
    """
    location = await acquire_position()
    return LocateResponse(location=location, used_default=location.source == PositionSource.DEFAULT)
