import logging
import math
from typing import Any

from wpg_transit_mcp.data.config import TransitConfig, get_transit_config
from wpg_transit_mcp.data.transit_client import TransitClient
from wpg_transit_mcp.models.transit import SegmentKind, SegmentRoute, TripPlan, TripSegment
from wpg_transit_mcp.services.normalizers import pick_field, to_number

logger = logging.getLogger(__name__)

WALK_COLOR = "#6b7280"
DEFAULT_TRANSIT_COLOR = "#0ea5e9"

_config: TransitConfig | None = None


def _get_config() -> TransitConfig:
    """Get or create the config singleton."""
    global _config
    if _config is None:
        _config = get_transit_config()
    return _config


def decode_points(encoded: str | None) -> list[tuple[float, float]]:
    """Decode a whitespace-separated list of "lon,lat" tokens.

    Example: "-97.15,49.90 -97.14,49.91" -> [(49.90, -97.15), (49.91, -97.14)]

    Args:
        encoded: Encoded point string; None or blank yields an empty path.

    Returns:
        Ordered (latitude, longitude) pairs.

    Raises:
        ValueError: If a token is not a pair of finite numbers.
    """
    if not encoded or not encoded.strip():
        return []

    path: list[tuple[float, float]] = []
    for token in encoded.split():
        parts = token.split(",")
        if len(parts) != 2:
            raise ValueError(f"Invalid point token: {token!r}")
        lon, lat = (float(p) for p in parts)
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise ValueError(f"Non-finite point token: {token!r}")
        path.append((lat, lon))
    return path


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def classify_segment(raw: dict[str, Any]) -> SegmentKind:
    """Ride for vehicle legs, walk for walking legs, wait for anything else."""
    segment_type = raw.get("type")
    if segment_type == "ride" or (segment_type is None and raw.get("route")):
        return SegmentKind.RIDE
    if segment_type == "walk":
        return SegmentKind.WALK
    return SegmentKind.WAIT


def _route_badge_color(route: dict[str, Any]) -> str | None:
    style = _as_dict(pick_field(route, "badge_style"))
    return pick_field(style, "background_color")


def resolve_segment_color(route: SegmentRoute | None, kind: SegmentKind) -> str:
    """Route badge color, else the walk color for walk legs, else the default."""
    if route is not None and route.badge_color:
        return route.badge_color
    if kind == SegmentKind.WALK:
        return WALK_COLOR
    return DEFAULT_TRANSIT_COLOR


def _parse_route(raw: Any) -> SegmentRoute | None:
    if not isinstance(raw, dict):
        return None
    key = raw.get("key")
    number = raw.get("number")
    return SegmentRoute(
        key=to_number(key) if key is not None else None,
        number=str(number) if number is not None else "",
        name=raw.get("name"),
        badge_color=_route_badge_color(raw),
    )


def _endpoint_name(raw: Any) -> str | None:
    """Endpoint name from `name`, or from a nested stop/monument/address."""
    endpoint = _as_dict(raw)
    if endpoint.get("name"):
        return str(endpoint["name"])
    for place in ("stop", "monument", "address", "intersection"):
        name = _as_dict(endpoint.get(place)).get("name")
        if name:
            return str(name)
    return None


def build_segment(raw: dict[str, Any]) -> TripSegment:
    """Build a TripSegment from one raw upstream segment.

    A path that fails to decode leaves this segment with an empty path.
    """
    kind = classify_segment(raw)
    route = _parse_route(raw.get("route"))
    times = _as_dict(raw.get("times"))

    try:
        path = decode_points(_as_dict(raw.get("shape")).get("points"))
    except (ValueError, AttributeError) as e:
        logger.warning(f"Could not decode {kind.value} segment path: {e}")
        path = []

    return TripSegment(
        kind=kind,
        upstream_type=raw.get("type"),
        route=route,
        from_name=_endpoint_name(raw.get("from")),
        to_name=_endpoint_name(raw.get("to")),
        start=times.get("start") or times.get("departure"),
        end=times.get("end") or times.get("arrival"),
        path=path,
        color=resolve_segment_color(route, kind),
    )


def _build_segment_safely(raw: Any) -> TripSegment:
    """Build a segment, falling back to a bare wait leg if it is unusable."""
    try:
        return build_segment(_as_dict(raw))
    except Exception as e:
        logger.warning(f"Malformed trip segment, keeping it without details: {e}")
        return TripSegment(kind=SegmentKind.WAIT, color=DEFAULT_TRANSIT_COLOR)


def build_trip_plan(trips: list[Any]) -> TripPlan | None:
    """Build a TripPlan from the first upstream itinerary.

    Returns:
        TripPlan, or None when the upstream returned no itinerary.
    """
    if not trips:
        return None

    trip = _as_dict(trips[0])
    raw_segments = trip.get("segments") or []
    if not isinstance(raw_segments, list):
        raw_segments = []
    return TripPlan(segments=[_build_segment_safely(seg) for seg in raw_segments])


def segment_label(segment: TripSegment) -> str:
    """Short timeline label for a segment."""
    if segment.kind == SegmentKind.RIDE:
        if segment.route is None:
            return "Bus"
        return f"Route {segment.route.number} {segment.route.name or ''}".strip()
    if segment.kind == SegmentKind.WALK:
        return f"Walk to {segment.to_name}" if segment.to_name else "Walk"
    return "Wait"


async def plan_trip(origin_key: int, destination_key: int) -> TripPlan | None:
    """Plan a trip between two stops.

    Only the first itinerary returned by the upstream planner is kept.

    Args:
        origin_key: Origin stop identity.
        destination_key: Destination stop identity.

    Returns:
        TripPlan, or None if no itinerary was found or on error.
    """
    config = _get_config()
    if config.api_key is None:
        logger.debug("No API key configured, cannot plan trip")
        return None

    try:
        async with TransitClient(config) as client:
            trips = await client.fetch_trips(origin_key, destination_key)
        plan = build_trip_plan(trips)
    except Exception as e:
        logger.warning(f"Failed to plan trip {origin_key} -> {destination_key}: {e}")
        return None

    if plan is None:
        logger.debug(f"No itinerary from {origin_key} to {destination_key}")
    return plan


def reset_service() -> None:
    """Reset the service config. Useful for testing."""
    global _config
    _config = None
    if hasattr(get_transit_config, "cache_clear"):
        get_transit_config.cache_clear()
