from datetime import datetime

from pydantic import BaseModel, Field

from wpg_transit_mcp.models.transit import Stop, StopSchedule, TripPlan
from wpg_transit_mcp.services.location_service import Position


class SearchStopsResponse(BaseModel):
    stops: list[Stop]
    count: int = Field(description="Number of stops returned")
    query: str
    superseded: bool = Field(
        default=False,
        description="True if a newer query in the same session replaced this one",
    )


class NearbyStopsResponse(BaseModel):
    stops: list[Stop]
    count: int = Field(description="Number of stops returned")
    location: Position = Field(description="Point the search was centred on")
    radius_meters: int


class GetStopResponse(BaseModel):
    stop: Stop | None = None
    found: bool


class DepartureInfo(BaseModel):
    time: datetime = Field(description="Estimated time if live, otherwise scheduled")
    is_live: bool = Field(description="True when the time is a live estimate")
    time_until: str = Field(description="Countdown, e.g. 'Now', '1 min', '7 mins'")


class RouteDepartures(BaseModel):
    route_number: str
    route_name: str
    badge_label: str
    badge_background_color: str
    badge_text_color: str
    departures: list[DepartureInfo]


class StopScheduleResponse(BaseModel):
    """Response for get_stop_schedule.

    `schedule_available` is False when the upstream had no schedule data;
    an available schedule with no routes means no service right now.
    """

    stop_key: int
    schedule: StopSchedule | None = None
    routes: list[RouteDepartures] = Field(default_factory=list)
    schedule_available: bool


class TimelineEntry(BaseModel):
    label: str = Field(description="E.g. 'Route 11 Portage', 'Walk to Osborne Station'")
    kind: str
    start: str | None = None
    end: str | None = None
    color: str


class PlanTripResponse(BaseModel):
    origin_key: int
    destination_key: int
    plan: TripPlan | None = None
    timeline: list[TimelineEntry] = Field(default_factory=list)
    found: bool


class LocateResponse(BaseModel):
    location: Position
    used_default: bool = Field(description="True when the city-centre fallback was used")
