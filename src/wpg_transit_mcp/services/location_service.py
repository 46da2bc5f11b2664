"""One-shot geolocation with a bounded timeout and a city-centre fallback."""

import asyncio
import logging
from enum import Enum
from typing import Protocol

from pydantic import BaseModel

from wpg_transit_mcp.data.config import TransitConfig, get_transit_config

logger = logging.getLogger(__name__)


class GeolocationFailure(str, Enum):
    """Why a position could not be obtained."""

    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"


class PositionSource(str, Enum):
    DEVICE = "device"
    CLIENT = "client"
    DEFAULT = "default"


class GeolocationError(Exception):
    """Raised by a position provider that cannot produce a fix."""

    def __init__(self, reason: GeolocationFailure, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason


class PositionProvider(Protocol):
    """A device positioning capability."""

    async def get_position(self, high_accuracy: bool) -> tuple[float, float]:
        """Return (latitude, longitude) in degrees or raise GeolocationError."""
        ...


class Position(BaseModel):
    latitude: float
    longitude: float
    source: PositionSource
    failure: GeolocationFailure | None = None


_provider: PositionProvider | None = None
_config: TransitConfig | None = None


def _get_config() -> TransitConfig:
    """Get or create the config singleton."""
    global _config
    if _config is None:
        _config = get_transit_config()
    return _config


def set_position_provider(provider: PositionProvider | None) -> None:
    """Install the positioning capability used by acquire_position()."""
    global _provider
    _provider = provider


def default_position(failure: GeolocationFailure | None = None) -> Position:
    """The configured city centre."""
    config = _get_config()
    return Position(
        latitude=config.default_latitude,
        longitude=config.default_longitude,
        source=PositionSource.DEFAULT,
        failure=failure,
    )


async def acquire_position(
    provider: PositionProvider | None = None,
    timeout: float | None = None,
    high_accuracy: bool = True,
) -> Position:
    """Request a single position fix.

    Timeout, permission denial or any other failure resolves to the city
    centre with the failure reason recorded; this never raises.

    Args:
        provider: Positioning capability (default: the installed provider).
        timeout: Seconds to wait for a fix (default: configured timeout).
        high_accuracy: Ask the provider for a high-accuracy fix.

    Returns:
        Position from the device, or the default position.
    """
    if provider is None:
        provider = _provider
    if provider is None:
        logger.debug("No position provider installed, using default position")
        return default_position(GeolocationFailure.UNAVAILABLE)

    if timeout is None:
        timeout = _get_config().geolocation_timeout_seconds

    try:
        latitude, longitude = await asyncio.wait_for(
            provider.get_position(high_accuracy), timeout=timeout
        )
    except TimeoutError:
        logger.warning(f"Position request timed out after {timeout}s")
        return default_position(GeolocationFailure.TIMEOUT)
    except GeolocationError as e:
        logger.warning(f"Position request failed: {e}")
        return default_position(e.reason)
    except Exception as e:
        logger.warning(f"Position request failed: {e}")
        return default_position(GeolocationFailure.UNAVAILABLE)

    return Position(latitude=latitude, longitude=longitude, source=PositionSource.DEVICE)


async def resolve_location_hint(lat: float | None, lon: float | None) -> Position:
    """Use client-supplied coordinates when both are given, else geolocate."""
    if lat is not None and lon is not None:
        return Position(latitude=lat, longitude=lon, source=PositionSource.CLIENT)
    return await acquire_position()


def reset_service() -> None:
    """Reset provider and config. Useful for testing."""
    global _provider, _config
    _provider = None
    _config = None
    if hasattr(get_transit_config, "cache_clear"):
        get_transit_config.cache_clear()
