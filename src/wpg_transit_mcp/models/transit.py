import math
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Geographic(BaseModel):
    """A coordinate pair in degrees. (0, 0) means the location is unknown."""

    model_config = ConfigDict(frozen=True)

    latitude: float = 0.0
    longitude: float = 0.0


class Distances(BaseModel):
    model_config = ConfigDict(frozen=True)

    direct: float | None = Field(default=None, description="Straight-line meters, from upstream")
    walking: int | None = Field(
        default=None, description="Approximate walking meters, derived from direct"
    )


class Stop(BaseModel):
    """Canonical transit stop.

    `key` and `number` are NaN when the upstream value was not numeric.
    """

    model_config = ConfigDict(frozen=True)

    key: int | float
    name: str
    number: int | float
    direction: str | None = None
    side: str | None = None
    geographic: Geographic = Field(default_factory=Geographic)
    distances: Distances | None = None

    @property
    def has_location(self) -> bool:
        """True when the coordinates are finite and not the (0, 0) sentinel."""
        lat = self.geographic.latitude
        lon = self.geographic.longitude
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return False
        return not (lat == 0 and lon == 0)


class RouteBadge(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    background_color: str
    text_color: str


class ScheduledTime(BaseModel):
    """A scheduled time with an optional live estimate."""

    model_config = ConfigDict(frozen=True)

    scheduled: datetime | None = None
    estimated: datetime | None = None

    @property
    def effective(self) -> datetime | None:
        """Estimated time when present, otherwise the scheduled time."""
        return self.estimated or self.scheduled

    @property
    def is_live(self) -> bool:
        return self.estimated is not None


class DepartureArrival(BaseModel):
    model_config = ConfigDict(frozen=True)

    departure: ScheduledTime = Field(default_factory=ScheduledTime)
    arrival: ScheduledTime = Field(default_factory=ScheduledTime)


class RouteSchedule(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: int | float | None = None
    number: str
    name: str
    badge: RouteBadge
    times: list[DepartureArrival] = Field(default_factory=list)


class StopSchedule(BaseModel):
    """A stop and its route schedules.

    `route_schedules` is None when the upstream omitted the field (schedule
    unavailable) and an empty list when no route is serving the stop right now.
    """

    model_config = ConfigDict(frozen=True)

    stop: Stop
    route_schedules: list[RouteSchedule] | None = None

    @property
    def available(self) -> bool:
        return self.route_schedules is not None


class SegmentKind(str, Enum):
    """How a trip leg is travelled."""

    RIDE = "ride"
    WALK = "walk"
    WAIT = "wait"


class SegmentRoute(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: int | float | None = None
    number: str
    name: str | None = None
    badge_color: str | None = None


class TripSegment(BaseModel):
    """One leg of an itinerary with its drawable path."""

    model_config = ConfigDict(frozen=True)

    kind: SegmentKind
    upstream_type: str | None = None
    route: SegmentRoute | None = None
    from_name: str | None = None
    to_name: str | None = None
    start: str | None = None
    end: str | None = None
    path: list[tuple[float, float]] = Field(
        default_factory=list, description="Ordered (latitude, longitude) points"
    )
    color: str


class TripPlan(BaseModel):
    """The first itinerary returned by the upstream planner."""

    model_config = ConfigDict(frozen=True)

    segments: list[TripSegment] = Field(default_factory=list)
