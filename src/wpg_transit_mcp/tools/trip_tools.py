from wpg_transit_mcp.app import mcp
from wpg_transit_mcp.models.responses import PlanTripResponse, TimelineEntry
from wpg_transit_mcp.services.trip_planner import plan_trip as _plan_trip
from wpg_transit_mcp.services.trip_planner import segment_label


@mcp.tool()
async def plan_trip(origin_key: int, destination_key: int) -> PlanTripResponse:
    """Plan a transit trip between two Winnipeg Transit stops.

    Returns one itinerary as ordered segments (ride, walk, or wait), each with
    its map path as (latitude, longitude) points and a display color.

    Args:
        origin_key: Origin stop number/key (e.g., 10064)
        destination_key: Destination stop number/key (e.g., 10793)

    Returns:
        PlanTripResponse; found=False when no itinerary is available.
    """
    plan = await _plan_trip(origin_key, destination_key)
    if plan is None:
        return PlanTripResponse(
            origin_key=origin_key,
            destination_key=destination_key,
            found=False,
        )

    timeline = [
        TimelineEntry(
            label=segment_label(segment),
            kind=segment.kind.value,
            start=segment.start,
            end=segment.end,
            color=segment.color,
        )
        for segment in plan.segments
    ]
    return PlanTripResponse(
        origin_key=origin_key,
        destination_key=destination_key,
        plan=plan,
        timeline=timeline,
        found=True,
    )
