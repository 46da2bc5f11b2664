import argparse
import logging
from datetime import UTC, datetime

from pydantic import BaseModel

from wpg_transit_mcp.app import mcp

# Importing the tool modules registers their tools on `mcp`
from wpg_transit_mcp.tools import schedule_tools, stop_tools, trip_tools  # noqa: F401


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    api_key_configured: bool


@mcp.tool()
def health() -> HealthResponse:
    """Check if the Winnipeg Transit MCP server is running and healthy.

    Returns the server status, version, current timestamp, and whether an
    API key is configured for the upstream transit service.
    """
    from wpg_transit_mcp import __version__
    from wpg_transit_mcp.data.config import get_transit_config

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        api_key_configured=get_transit_config().api_key is not None,
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="wpg-transit-mcp",
        description="Winnipeg Transit MCP Server",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    mcp.run()


if __name__ == "__main__":
    main()
