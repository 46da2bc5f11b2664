"""Schedule service for live stop departures."""

import logging
from dataclasses import dataclass
from datetime import datetime

from wpg_transit_mcp.data.config import TransitConfig, get_transit_config
from wpg_transit_mcp.data.transit_client import TransitClient
from wpg_transit_mcp.models.transit import RouteSchedule, StopSchedule
from wpg_transit_mcp.services.normalizers import normalize_stop_schedule

logger = logging.getLogger(__name__)

# Departures shown per route
UPCOMING_PER_ROUTE = 3

_config: TransitConfig | None = None


def _get_config() -> TransitConfig:
    """Get or create the config singleton."""
    global _config
    if _config is None:
        _config = get_transit_config()
    return _config


def _now_like(reference: datetime) -> datetime:
    """Current time, naive or aware to match `reference`."""
    if reference.tzinfo is None:
        return datetime.now()
    return datetime.now(reference.tzinfo)


def calculate_minutes_until(when: datetime, now: datetime | None = None) -> int:
    """Whole minutes from `now` until `when`, rounded to the nearest minute.

    Negative when `when` is in the past.
    """
    if now is None:
        now = _now_like(when)
    return round((when - now).total_seconds() / 60)


def format_time_until(when: datetime, now: datetime | None = None) -> str:
    """Human-readable countdown: "Departed", "Now", "1 min" or "N mins"."""
    minutes = calculate_minutes_until(when, now)
    if minutes < 0:
        return "Departed"
    if minutes == 0:
        return "Now"
    if minutes == 1:
        return "1 min"
    return f"{minutes} mins"


@dataclass
class UpcomingDeparture:
    """A departure ready for display."""

    time: datetime
    is_live: bool
    minutes_until: int
    time_until: str


def upcoming_departures(
    route_schedule: RouteSchedule,
    limit: int = UPCOMING_PER_ROUTE,
    now: datetime | None = None,
) -> list[UpcomingDeparture]:
    """First departures of a route that have a usable time.

    Estimated times supersede scheduled ones and are flagged live.
    """
    departures: list[UpcomingDeparture] = []
    for times in route_schedule.times:
        effective = times.departure.effective
        if effective is None:
            continue
        departures.append(
            UpcomingDeparture(
                time=effective,
                is_live=times.departure.is_live,
                minutes_until=calculate_minutes_until(effective, now),
                time_until=format_time_until(effective, now),
            )
        )
        if len(departures) >= limit:
            break
    return departures


async def get_stop_schedule(
    stop_key: int,
    start: datetime | None = None,
) -> StopSchedule | None:
    """Fetch the live schedule of a stop.

    Args:
        stop_key: Stop identity.
        start: Earliest departure of interest (default: now).

    Returns:
        StopSchedule, or None if the upstream has no schedule or on error.
    """
    config = _get_config()
    if config.api_key is None:
        logger.debug("No API key configured, cannot fetch stop schedule")
        return None

    if start is None:
        start = datetime.now()

    try:
        async with TransitClient(config) as client:
            raw = await client.fetch_stop_schedule(
                stop_key, config.schedule_max_results_per_route, start
            )
        if raw is None:
            return None
        return normalize_stop_schedule(raw)
    except Exception as e:
        logger.warning(f"Failed to fetch schedule for stop {stop_key}: {e}")
        return None


def reset_service() -> None:
    """Reset the service config. Useful for testing."""
    global _config
    _config = None
    if hasattr(get_transit_config, "cache_clear"):
        get_transit_config.cache_clear()
