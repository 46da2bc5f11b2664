"""MCP tools for live stop schedules."""

from wpg_transit_mcp.app import mcp
from wpg_transit_mcp.models.responses import DepartureInfo, RouteDepartures, StopScheduleResponse
from wpg_transit_mcp.services.schedule_service import (
    get_stop_schedule as _get_stop_schedule,
)
from wpg_transit_mcp.services.schedule_service import upcoming_departures


@mcp.tool()
async def get_stop_schedule(stop_key: int, departures_per_route: int = 3) -> StopScheduleResponse:
    """Get upcoming departures at a stop, per route.

    Live estimates are used when available and flagged with is_live.

    Args:
        stop_key: Stop number/key (e.g., 10064).
        departures_per_route: Departures to list for each route (1-10, default 3).

    Returns:
        StopScheduleResponse. schedule_available=False means schedule data is
        unavailable; an empty routes list with schedule_available=True means
        no buses are scheduled right now.
    """
    # Clamp departures
    if departures_per_route < 1:
        departures_per_route = 1
    elif departures_per_route > 10:
        departures_per_route = 10

    schedule = await _get_stop_schedule(stop_key)
    if schedule is None or not schedule.available:
        return StopScheduleResponse(
            stop_key=stop_key,
            schedule=schedule,
            schedule_available=False,
        )

    routes = [
        RouteDepartures(
            route_number=route.number,
            route_name=route.name,
            badge_label=route.badge.label,
            badge_background_color=route.badge.background_color,
            badge_text_color=route.badge.text_color,
            departures=[
                DepartureInfo(time=d.time, is_live=d.is_live, time_until=d.time_until)
                for d in upcoming_departures(route, limit=departures_per_route)
            ],
        )
        for route in schedule.route_schedules or []
    ]
    return StopScheduleResponse(
        stop_key=stop_key,
        schedule=schedule,
        routes=routes,
        schedule_available=True,
    )
