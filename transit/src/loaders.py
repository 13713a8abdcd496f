"""
Joined loaders for the read screens.

Gateway calls are blocking SQLAlchemy round trips, so a screen that needs
several collections runs them in the thread pool inside a `FlowScope`. The
scope waits for every call (explicit join), merges the results in a fixed
order whatever the completion order, and abandons everything still in flight
when it is left early.
"""

import asyncio
from functools import partial
from logging import getLogger
from typing import Any, Callable, List, Literal, Optional
from pydantic import BaseModel

from transit.src.gateway import Gateway
from transit.src.mapping import formatDuration, formatFare
from transit.src.schemas import BusLine, IntercityRoute, TransportAgency
from transit.src.constants import (
    FETCH_TIMEOUT,
    POPULAR_BUS_LINES,
    POPULAR_INTERCITY_ROUTES,
)

logger = getLogger(__name__)


class FlowScope:
    """
    Owns the backend calls started by one screen flow.

    Usage:
        async with FlowScope() as scope:
            lines, routes = await loadCollections(scope, loadLines, loadRoutes)

    Leaving the block, normally or through an exception or cancellation,
    cancels every call still pending. Their results are never delivered.
    """

    def __init__(self, timeout: Optional[float] = FETCH_TIMEOUT):
        self.timeout = timeout
        self.tasks = set()
        self.closed = False

    def start(self, function: Callable, *args, **kwargs) -> asyncio.Task:
        if self.closed:
            raise asyncio.CancelledError()
        call = asyncio.to_thread(function, *args, **kwargs)
        task = asyncio.ensure_future(asyncio.wait_for(call, self.timeout))
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task

    async def run(self, function: Callable, *args, **kwargs) -> Any:
        return await self.start(function, *args, **kwargs)

    def cancel(self) -> None:
        self.closed = True
        for task in list(self.tasks):
            task.cancel()

    async def __aenter__(self) -> "FlowScope":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.cancel()


async def loadCollections(scope: FlowScope, *loaders: Callable) -> List[list]:
    """
    Run collection loaders concurrently and join on all of them.

    Args:
        scope (FlowScope): The scope owning the calls.
        *loaders (Callable): Zero-argument blocking callables returning lists.

    Returns:
        List[list]: One result per loader, in argument order. A loader that
        failed or timed out contributes an empty list.

    Raises:
        asyncio.CancelledError: If the scope was cancelled while waiting.
    """
    tasks = [scope.start(loader) for loader in loaders]
    results = await asyncio.gather(*tasks, return_exceptions=True)
    if scope.closed:
        raise asyncio.CancelledError()

    collections = []
    for loader, result in zip(loaders, results):
        if isinstance(result, BaseException):
            logger.warning("Collection load failed, showing it empty: %r", result)
            collections.append([])
        else:
            collections.append(result)
    return collections


## Home screen
class PopularRoute(BaseModel):
    id: int
    kind: Literal["bus", "intercity"]
    name: str
    subtitle: Optional[str] = None
    fare: str
    color: Optional[str] = None


def busLineEntry(line: BusLine) -> PopularRoute:
    return PopularRoute(
        id=line.id,
        kind="bus",
        name=line.name,
        subtitle=" • ".join(line.zones_covered) or None,
        fare=formatFare(line.price),
        color=line.color,
    )


def intercityEntry(route: IntercityRoute) -> PopularRoute:
    return PopularRoute(
        id=route.id,
        kind="intercity",
        name=f"{route.departure_point} → {route.arrival_point}",
        subtitle=route.agency_name,
        fare=formatFare(route.price),
    )


def mergePopular(
    busLines: List[BusLine], routes: List[IntercityRoute]
) -> List[PopularRoute]:
    """Bus lines first, then intercity routes, each in gateway order."""
    return [busLineEntry(line) for line in busLines] + [
        intercityEntry(route) for route in routes
    ]


async def loadHome(gateway: Gateway, scope: FlowScope) -> List[PopularRoute]:
    busLines, routes = await loadCollections(
        scope,
        partial(gateway.bus_lines.listActive, limit=POPULAR_BUS_LINES),
        partial(gateway.intercity_routes.listActive, limit=POPULAR_INTERCITY_ROUTES),
    )
    return mergePopular(busLines, routes)


## Agencies screen
class AgencyRoute(BaseModel):
    id: int
    departure_point: str
    arrival_point: str
    fare: str
    duration: str
    frequency: Optional[str] = None
    schedule: List[str] = []


class AgencyWithRoutes(BaseModel):
    id: int
    name: str
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    logo_url: Optional[str] = None
    routes: List[AgencyRoute]


def agencyRoute(route: IntercityRoute) -> AgencyRoute:
    return AgencyRoute(
        id=route.id,
        departure_point=route.departure_point,
        arrival_point=route.arrival_point,
        fare=formatFare(route.price),
        duration=formatDuration(route.duration_minutes),
        frequency=route.frequency,
        schedule=route.schedule,
    )


async def loadAgencies(gateway: Gateway, scope: FlowScope) -> List[AgencyWithRoutes]:
    """
    Active agencies, each with its active routes.

    The agency list is loaded first; the per-agency route lists are then
    loaded concurrently and joined before anything is returned.
    """
    (agencies,) = await loadCollections(scope, gateway.agencies.listActive)
    routeLists = await loadCollections(
        scope,
        *[partial(gateway.intercity_routes.getRelated, agency.id) for agency in agencies],
    )
    return [
        withRoutes(agency, routes) for agency, routes in zip(agencies, routeLists)
    ]


def withRoutes(
    agency: TransportAgency, routes: List[IntercityRoute]
) -> AgencyWithRoutes:
    return AgencyWithRoutes(
        id=agency.id,
        name=agency.name,
        contact_phone=agency.contact_phone,
        contact_email=agency.contact_email,
        logo_url=agency.logo_url,
        routes=[agencyRoute(route) for route in routes],
    )
