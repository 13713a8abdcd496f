"""
Search over bus lines and intercity routes.

Matching is a case-insensitive substring test applied to each candidate
field on its own: a bus line matches on its name or any zone it covers, an
intercity route on its departure or arrival point. There is no tokenizing,
fuzzy matching or scoring. Bus lines always come before intercity routes and
each kind keeps the order it was loaded in.
"""

import asyncio
from logging import getLogger
from typing import List, Optional, Union
from pydantic import BaseModel
from redis import Redis
from redis.exceptions import RedisError

from transit.src.gateway import Gateway
from transit.src.loaders import FlowScope, loadCollections
from transit.src.mapping import formatFare
from transit.src.schemas import BusLine, IntercityRoute, SearchResult
from transit.src.constants import (
    MAX_RECENT_SEARCHES,
    RECENT_SEARCHES_KEY,
    SEARCH_SUGGESTIONS,
)

logger = getLogger(__name__)


## Output Schema
class SearchResponse(BaseModel):
    query: str
    results: List[SearchResult]
    recent_searches: List[str]
    suggestions: List[str]


## Matching
def contains(field: Optional[str], needle: str) -> bool:
    return field is not None and needle in field.lower()


def matchesBusLine(line: BusLine, needle: str) -> bool:
    return contains(line.name, needle) or any(
        contains(zone, needle) for zone in line.zones_covered
    )


def matchesIntercityRoute(route: IntercityRoute, needle: str) -> bool:
    return contains(route.departure_point, needle) or contains(
        route.arrival_point, needle
    )


def busLineResult(line: BusLine) -> SearchResult:
    return SearchResult(
        id=line.id,
        name=line.name,
        kind="bus",
        zones=list(line.zones_covered),
    )


def intercityResult(route: IntercityRoute) -> SearchResult:
    return SearchResult(
        id=route.id,
        name=f"{route.departure_point} → {route.arrival_point}",
        kind="intercity",
        agency=route.agency_name,
        details=formatFare(route.price),
    )


def searchEntities(
    query: str, busLines: List[BusLine], routes: List[IntercityRoute]
) -> List[SearchResult]:
    """
    Match a query against already loaded collections.

    Args:
        query (str): Free text. Surrounding whitespace is ignored.
        busLines (List[BusLine]): Candidate bus lines, in display order.
        routes (List[IntercityRoute]): Candidate intercity routes, in display order.

    Returns:
        List[SearchResult]: Bus line matches followed by intercity route matches.
        Empty for a blank query.

    Example:
        A query "kinindo" against a line covering zones ["Centre-ville", "Kinindo"]
        returns that line with both zones, even though its name does not match.
    """
    needle = query.strip().lower()
    if not needle:
        return []
    results = [busLineResult(line) for line in busLines if matchesBusLine(line, needle)]
    results.extend(
        intercityResult(route)
        for route in routes
        if matchesIntercityRoute(route, needle)
    )
    return results


## Recent searches
def pushRecent(items: List[str], query: str, capacity: int = MAX_RECENT_SEARCHES) -> List[str]:
    """
    Put a query at the front of a recent searches list.

    A query already in the list (ignoring case and surrounding spaces) moves
    to the front instead of appearing twice. The list never exceeds `capacity`.
    """
    query = query.strip()
    key = query.lower()
    kept = [item for item in items if item.strip().lower() != key]
    return [query] + kept[: capacity - 1]


class RecentSearches:
    """Recent searches kept in memory, most recent first."""

    def __init__(self, capacity: int = MAX_RECENT_SEARCHES):
        self.capacity = capacity
        self.items: List[str] = []

    def add(self, query: str) -> None:
        self.items = pushRecent(self.items, query, self.capacity)

    def list(self) -> List[str]:
        return list(self.items)


class RedisRecentSearches:
    """
    Recent searches of one account, stored as a Redis list.

    The list is rewritten as a whole in a transaction so the de-duplication
    rule stays the same as the in-memory store.
    """

    def __init__(
        self, client: Redis, account_id: int, capacity: int = MAX_RECENT_SEARCHES
    ):
        self.client = client
        self.key = f"{RECENT_SEARCHES_KEY}:{account_id}"
        self.capacity = capacity

    def list(self) -> List[str]:
        return self.client.lrange(self.key, 0, self.capacity - 1)

    def add(self, query: str) -> None:
        items = pushRecent(self.list(), query, self.capacity)
        pipeline = self.client.pipeline()
        pipeline.delete(self.key)
        pipeline.rpush(self.key, *items)
        pipeline.execute()


RecentStore = Union[RecentSearches, RedisRecentSearches]


async def readRecent(
    recent: RecentStore, scope: FlowScope, query: Optional[str] = None
) -> List[str]:
    """
    Record `query` (when given) and return the recent searches.

    The store is only a side list of the search screen: if it cannot be
    reached the failure is logged and the screen shows no recent searches.
    """
    try:
        if query is not None:
            await scope.run(recent.add, query)
        return await scope.run(recent.list)
    except (RedisError, TimeoutError, asyncio.TimeoutError) as e:
        logger.warning("Recent searches unavailable, showing none: %r", e)
        return []


async def search(
    query: str, gateway: Gateway, recent: RecentStore, scope: FlowScope
) -> SearchResponse:
    """
    Run a search flow.

    A blank query returns the recent searches and the suggestions without
    touching the gateway. Otherwise both collections are loaded concurrently,
    a collection that fails to load contributes no candidates, and the query
    is recorded in `recent`. A failing recent-search store never fails the
    search.
    """
    query = query.strip()
    if not query:
        return SearchResponse(
            query="",
            results=[],
            recent_searches=await readRecent(recent, scope),
            suggestions=SEARCH_SUGGESTIONS,
        )

    busLines, routes = await loadCollections(
        scope,
        gateway.bus_lines.listActive,
        gateway.intercity_routes.listActive,
    )
    results = searchEntities(query, busLines, routes)
    return SearchResponse(
        query=query,
        results=results,
        recent_searches=await readRecent(recent, scope, query),
        suggestions=SEARCH_SUGGESTIONS,
    )
