"""Winnipeg Transit stop discovery and trip planning MCP server."""

__version__ = "0.1.0"
