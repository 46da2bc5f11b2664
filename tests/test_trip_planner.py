"""Tests for trip planning and segment path building."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from wpg_transit_mcp.data.config import TransitConfig
from wpg_transit_mcp.models.transit import SegmentKind, SegmentRoute
from wpg_transit_mcp.services import trip_planner
from wpg_transit_mcp.services.trip_planner import (
    DEFAULT_TRANSIT_COLOR,
    WALK_COLOR,
    build_segment,
    build_trip_plan,
    classify_segment,
    decode_points,
    resolve_segment_color,
    segment_label,
)

from conftest import FakeTransitClient


@pytest.fixture(autouse=True)
def reset_service(config: TransitConfig):
    """Reset the service state and install a config with an API key."""
    trip_planner.reset_service()
    trip_planner._config = config
    yield
    trip_planner.reset_service()


def _ride_segment(**overrides) -> dict:
    segment = {
        "type": "ride",
        "times": {"start": "2024-05-01T10:00:00", "end": "2024-05-01T10:20:00"},
        "route": {
            "key": 16,
            "number": 16,
            "name": "Selkirk-Osborne",
            "badge-style": {"background-color": "#ff8800", "color": "#000000"},
        },
        "from": {"stop": {"key": 10064, "name": "Osborne Station"}},
        "to": {"stop": {"key": 10793, "name": "Selkirk at McGregor"}},
        "shape": {"points": "-97.15,49.90 -97.14,49.91"},
    }
    segment.update(overrides)
    return segment


# =============================================================================
# decode_points
# =============================================================================


def test_decode_points_swaps_to_lat_lon():
    assert decode_points("-97.15,49.90 -97.14,49.91") == [(49.90, -97.15), (49.91, -97.14)]


def test_decode_points_tolerates_extra_whitespace():
    assert decode_points("  -97.15,49.90\n\t-97.14,49.91  ") == [(49.90, -97.15), (49.91, -97.14)]


@pytest.mark.parametrize("encoded", [None, "", "   "])
def test_decode_points_empty(encoded):
    assert decode_points(encoded) == []


@pytest.mark.parametrize(
    "encoded", ["-97.15", "-97.15,49.90,1", "a,b", "nan,49.90", "-97.15,inf", "-97.15,49.90 -inf,0"]
)
def test_decode_points_rejects_malformed_tokens(encoded):
    with pytest.raises(ValueError):
        decode_points(encoded)


# =============================================================================
# Classification and color
# =============================================================================


def test_classify_segment():
    assert classify_segment({"type": "ride"}) == SegmentKind.RIDE
    assert classify_segment({"route": {"number": 11}}) == SegmentKind.RIDE
    assert classify_segment({"type": "walk"}) == SegmentKind.WALK
    assert classify_segment({"type": "transfer"}) == SegmentKind.WAIT
    assert classify_segment({}) == SegmentKind.WAIT


def test_resolve_segment_color_priority():
    route = SegmentRoute(number="16", badge_color="#ff8800")
    plain_route = SegmentRoute(number="16")

    assert resolve_segment_color(route, SegmentKind.RIDE) == "#ff8800"
    assert resolve_segment_color(route, SegmentKind.WALK) == "#ff8800"
    assert resolve_segment_color(None, SegmentKind.WALK) == WALK_COLOR
    assert resolve_segment_color(plain_route, SegmentKind.RIDE) == DEFAULT_TRANSIT_COLOR
    assert resolve_segment_color(None, SegmentKind.WAIT) == DEFAULT_TRANSIT_COLOR


# =============================================================================
# Segment building
# =============================================================================


def test_build_ride_segment():
    segment = build_segment(_ride_segment())

    assert segment.kind == SegmentKind.RIDE
    assert segment.route.number == "16"
    assert segment.route.name == "Selkirk-Osborne"
    assert segment.color == "#ff8800"
    assert segment.from_name == "Osborne Station"
    assert segment.to_name == "Selkirk at McGregor"
    assert segment.start == "2024-05-01T10:00:00"
    assert segment.end == "2024-05-01T10:20:00"
    assert segment.path == [(49.90, -97.15), (49.91, -97.14)]


def test_build_segment_falls_back_to_departure_and_arrival():
    segment = build_segment(
        {
            "type": "walk",
            "times": {"departure": "2024-05-01T10:20:00", "arrival": "2024-05-01T10:25:00"},
            "to": {"name": "Home"},
        }
    )

    assert segment.start == "2024-05-01T10:20:00"
    assert segment.end == "2024-05-01T10:25:00"
    assert segment.color == WALK_COLOR
    assert segment.to_name == "Home"
    assert segment.path == []


def test_build_segment_with_bad_points_keeps_empty_path():
    segment = build_segment(_ride_segment(shape={"points": "-97.15,49.90 garbage"}))

    assert segment.kind == SegmentKind.RIDE
    assert segment.path == []
    assert segment.color == "#ff8800"


def test_build_trip_plan_isolates_malformed_segments():
    plan = build_trip_plan(
        [
            {
                "segments": [
                    _ride_segment(),
                    "not a segment",
                    {"type": "walk", "shape": {"points": 42}},
                ]
            }
        ]
    )

    assert len(plan.segments) == 3
    assert plan.segments[0].path == [(49.90, -97.15), (49.91, -97.14)]
    assert plan.segments[1].kind == SegmentKind.WAIT
    assert plan.segments[2].kind == SegmentKind.WALK
    assert plan.segments[2].path == []


def test_build_trip_plan_uses_first_itinerary_only():
    plan = build_trip_plan(
        [
            {"segments": [{"type": "walk"}]},
            {"segments": [_ride_segment(), _ride_segment()]},
        ]
    )

    assert [s.kind for s in plan.segments] == [SegmentKind.WALK]


def test_build_trip_plan_without_itineraries():
    assert build_trip_plan([]) is None


def test_build_trip_plan_itinerary_without_segments():
    plan = build_trip_plan([{}])

    assert plan is not None
    assert plan.segments == []


def test_segment_labels():
    ride = build_segment(_ride_segment())
    bare_ride = build_segment({"type": "ride"})
    walk = build_segment({"type": "walk", "to": {"stop": {"name": "Osborne Station"}}})
    bare_walk = build_segment({"type": "walk"})
    wait = build_segment({"type": "transfer"})

    assert segment_label(ride) == "Route 16 Selkirk-Osborne"
    assert segment_label(bare_ride) == "Bus"
    assert segment_label(walk) == "Walk to Osborne Station"
    assert segment_label(bare_walk) == "Walk"
    assert segment_label(wait) == "Wait"


# =============================================================================
# plan_trip
# =============================================================================


@pytest.mark.asyncio
async def test_plan_trip_ride_then_walk():
    trips = [
        {
            "segments": [
                {
                    "type": "ride",
                    "route": {"number": 16, "name": "Selkirk-Osborne"},
                    "shape": {"points": "-97.15,49.90 -97.14,49.91"},
                },
                {"type": "walk"},
            ]
        }
    ]
    client = FakeTransitClient(fetch_trips=AsyncMock(return_value=trips))

    with patch.object(trip_planner, "TransitClient", return_value=client):
        plan = await trip_planner.plan_trip(10064, 10793)

    assert plan is not None
    assert len(plan.segments) == 2
    assert plan.segments[0].path == [(49.90, -97.15), (49.91, -97.14)]
    assert plan.segments[1].path == []
    client.fetch_trips.assert_awaited_once_with(10064, 10793)


@pytest.mark.asyncio
async def test_plan_trip_without_itineraries_returns_none():
    client = FakeTransitClient(fetch_trips=AsyncMock(return_value=[]))

    with patch.object(trip_planner, "TransitClient", return_value=client):
        assert await trip_planner.plan_trip(10064, 10793) is None


@pytest.mark.asyncio
async def test_plan_trip_transport_failure_returns_none():
    client = FakeTransitClient(fetch_trips=AsyncMock(side_effect=httpx.ConnectError("down")))

    with patch.object(trip_planner, "TransitClient", return_value=client):
        assert await trip_planner.plan_trip(10064, 10793) is None


@pytest.mark.asyncio
async def test_plan_trip_without_api_key(config_without_api_key: TransitConfig):
    trip_planner._config = config_without_api_key

    with patch.object(trip_planner, "TransitClient") as mock_client_class:
        assert await trip_planner.plan_trip(10064, 10793) is None

    mock_client_class.assert_not_called()
