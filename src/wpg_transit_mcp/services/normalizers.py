"""Normalization of raw Winnipeg Transit payloads into canonical models.

Every upstream field-name variant is listed once in FIELD_VARIANTS and
resolved through pick_field(); code outside this module only ever sees the
canonical models.
"""

import logging
import math
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from wpg_transit_mcp.models.transit import (
    DepartureArrival,
    Distances,
    Geographic,
    RouteBadge,
    RouteSchedule,
    ScheduledTime,
    Stop,
    StopSchedule,
)

logger = logging.getLogger(__name__)

# Walking distance is approximated from the straight-line distance.
# This is a fixed heuristic, not a routed distance.
WALKING_FACTOR = 1.25

DEFAULT_BADGE_BACKGROUND = "#0ea5e9"
DEFAULT_BADGE_TEXT = "#ffffff"

# Canonical field -> accepted upstream spellings, in priority order
FIELD_VARIANTS: dict[str, tuple[str, ...]] = {
    "badge_label": ("badge_label", "badge-label"),
    "badge_style": ("badge_style", "badge-style"),
    "background_color": ("background-color", "background_color"),
    "text_color": ("color",),
    "route_schedules": ("route-schedules", "route_schedules"),
    "scheduled_stops": ("scheduled-stops", "scheduled_stops"),
}


def pick_field(raw: dict[str, Any], canonical: str, default: Any = None) -> Any:
    """Return the first present, non-empty variant of a canonical field."""
    for name in FIELD_VARIANTS.get(canonical, (canonical,)):
        value = raw.get(name)
        if value is not None and value != "":
            return value
    return default


def to_number(value: Any) -> int | float:
    """Coerce an upstream value to a number.

    Integral values become int; anything non-numeric becomes NaN.
    """
    if isinstance(value, bool) or value is None:
        return math.nan
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return math.nan
    if math.isfinite(number) and number.is_integer() and not isinstance(value, float):
        return int(number)
    return number


def walking_estimate(direct_meters: float) -> int:
    """Approximate walking meters from a straight-line distance.

    An approximation only: round(direct * 1.25), not a routing calculation.
    """
    return round(direct_meters * WALKING_FACTOR)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str | None:
    return str(value) if value is not None else None


def _finite_float(value: Any) -> float:
    """Coerce to float; values out of float range or infinite become NaN."""
    try:
        number = float(to_number(value))
    except OverflowError:
        return math.nan
    return number if math.isfinite(number) else math.nan


def normalize_stop(raw: dict[str, Any]) -> Stop:
    """Convert one raw upstream stop record into a canonical Stop.

    Coordinates come from centre.geographic, then geographic, then (0, 0).
    `distances` is only set when the record carries a direct distance.
    """
    geographic = (
        _as_dict(_as_dict(raw.get("centre")).get("geographic"))
        or _as_dict(raw.get("geographic"))
        or {"latitude": 0, "longitude": 0}
    )

    distances = None
    direct = _as_dict(raw.get("distances")).get("direct")
    if direct is not None:
        direct_meters = _finite_float(direct)
        walking = walking_estimate(direct_meters) if math.isfinite(direct_meters) else None
        distances = Distances(direct=direct_meters, walking=walking)

    return Stop(
        key=to_number(raw.get("key")),
        name=str(raw.get("name") or ""),
        number=to_number(raw.get("number")),
        direction=_text(raw.get("direction")),
        side=_text(raw.get("side")),
        geographic=Geographic(
            latitude=_finite_float(geographic.get("latitude")),
            longitude=_finite_float(geographic.get("longitude")),
        ),
        distances=distances,
    )


def normalize_stops(records: Iterable[Any]) -> list[Stop]:
    """Normalize a list of raw stop records, skipping non-object entries."""
    return [normalize_stop(record) for record in records if isinstance(record, dict)]


def displayable_stops(stops: Iterable[Stop]) -> list[Stop]:
    """Drop stops whose coordinates are not finite numbers."""
    return [
        stop
        for stop in stops
        if math.isfinite(stop.geographic.latitude) and math.isfinite(stop.geographic.longitude)
    ]


def parse_time(value: Any) -> datetime | None:
    """Parse an upstream ISO timestamp, returning None when absent or invalid."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Ignoring unparseable time: {value!r}")
        return None


def _normalize_scheduled_time(raw: Any) -> ScheduledTime:
    raw = _as_dict(raw)
    return ScheduledTime(
        scheduled=parse_time(raw.get("scheduled")),
        estimated=parse_time(raw.get("estimated")),
    )


def _normalize_times(raw: Any) -> DepartureArrival:
    raw = _as_dict(raw)
    return DepartureArrival(
        departure=_normalize_scheduled_time(raw.get("departure")),
        arrival=_normalize_scheduled_time(raw.get("arrival")),
    )


def normalize_route_schedule(raw: dict[str, Any]) -> RouteSchedule:
    """Convert one raw route schedule into a RouteSchedule.

    Route identity may sit on the schedule itself or in a nested `route`
    object. Times come from `times` or from `scheduled-stops[].times`.
    """
    route = _as_dict(raw.get("route"))

    number = raw.get("number") or route.get("number")
    number_text = str(number) if number is not None else ""
    key = raw.get("key", route.get("key"))
    name = raw.get("name") or route.get("name") or f"Route {number_text}".strip()

    style = _as_dict(pick_field(raw, "badge_style") or pick_field(route, "badge_style"))
    badge = RouteBadge(
        label=str(
            pick_field(raw, "badge_label")
            or pick_field(route, "badge_label")
            or number_text
            or "Route"
        ),
        background_color=str(pick_field(style, "background_color", DEFAULT_BADGE_BACKGROUND)),
        text_color=str(pick_field(style, "text_color", DEFAULT_BADGE_TEXT)),
    )

    raw_times = raw.get("times")
    if not isinstance(raw_times, list):
        scheduled_stops = pick_field(raw, "scheduled_stops")
        if isinstance(scheduled_stops, list):
            raw_times = [s.get("times") for s in scheduled_stops if isinstance(s, dict)]
        else:
            raw_times = []

    return RouteSchedule(
        key=to_number(key) if key is not None else None,
        number=number_text,
        name=str(name),
        badge=badge,
        times=[_normalize_times(t) for t in raw_times if t],
    )


def normalize_stop_schedule(raw: dict[str, Any]) -> StopSchedule:
    """Convert a raw `stop-schedule` object into a StopSchedule.

    A missing route-schedules field stays None (unavailable); a malformed
    route schedule is skipped without affecting the others.
    """
    route_schedules: list[RouteSchedule] | None = None
    raw_schedules = pick_field(raw, "route_schedules")
    if isinstance(raw_schedules, list):
        route_schedules = []
        for raw_schedule in raw_schedules:
            if not isinstance(raw_schedule, dict):
                continue
            try:
                route_schedules.append(normalize_route_schedule(raw_schedule))
            except Exception as e:
                logger.warning(f"Skipping malformed route schedule: {e}")

    return StopSchedule(
        stop=normalize_stop(_as_dict(raw.get("stop"))),
        route_schedules=route_schedules,
    )
