"""Latest-only stop search for continuous text input.

A SearchSession tags every submitted query with a generation number. Results
that complete after a newer query was submitted are discarded, so the
session only ever holds the results of the last-issued query.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from wpg_transit_mcp.models.transit import Stop
from wpg_transit_mcp.services.stop_service import MIN_QUERY_LENGTH, search_stops

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.35
DEFAULT_DISPLAY_LIMIT = 12

SearchResolver = Callable[..., Awaitable[list[Stop]]]


class SearchSession:
    """One stream of search input, e.g. a single search box.

    Usage:
        session = SearchSession()
        stops = await session.submit("Osborne", lat=49.88, lon=-97.14)
        if stops is None:
            ...  # superseded by a newer query
    """

    def __init__(
        self,
        resolver: SearchResolver = search_stops,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        display_limit: int = DEFAULT_DISPLAY_LIMIT,
    ):
        """Initialize the session.

        Args:
            resolver: Async search function, called as resolver(query, **options).
            debounce_seconds: Quiet period before a query is sent.
            display_limit: Maximum number of results kept.
        """
        self._resolver = resolver
        self._debounce = debounce_seconds
        self._display_limit = display_limit
        self._generation = 0
        self._results: list[Stop] = []
        self._results_query: str | None = None

    @property
    def generation(self) -> int:
        """Sequence number of the last submitted query."""
        return self._generation

    @property
    def results(self) -> list[Stop]:
        """Results of the last query that completed while still current."""
        return list(self._results)

    @property
    def results_query(self) -> str | None:
        return self._results_query

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def begin(self) -> int:
        """Register a new query and return its generation.

        Call this as soon as input arrives when other awaits (e.g. locating
        the rider) must run before submit(), then pass the generation on.
        """
        self._generation += 1
        return self._generation

    async def submit(
        self, query: str, generation: int | None = None, **options
    ) -> list[Stop] | None:
        """Submit the current input state.

        Args:
            query: Text as typed.
            generation: Generation from begin(); a new one is taken if omitted.
            **options: Passed through to the resolver (lat, lon, radius_meters, route).

        Returns:
            The displayed results, or None if a newer query superseded this one.
        """
        if generation is None:
            generation = self.begin()
        elif not self.is_current(generation):
            logger.debug(f"Query {query!r} superseded before submit")
            return None

        if len(query.strip()) < MIN_QUERY_LENGTH:
            self._results = []
            self._results_query = query
            return []

        if self._debounce > 0:
            await asyncio.sleep(self._debounce)
            if not self.is_current(generation):
                logger.debug(f"Query {query!r} superseded while debouncing")
                return None

        stops = await self._resolver(query, **options)

        if not self.is_current(generation):
            logger.debug(f"Discarding results for superseded query {query!r}")
            return None

        self._results = stops[: self._display_limit]
        self._results_query = query
        return self.results
