from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from transit.src import exceptions, getters
from transit.src.constants import DEFAULT_ZOOM, MAP_TOKEN
from transit.src.gateway import Gateway
from transit.src.loaders import FlowScope, loadCollections
from transit.src.mapping import (
    LineDetail,
    MapView,
    Viewport,
    ViewportFitter,
    buildMapView,
    defaultViewport,
    selectMarker,
)
from transit.src.functions import fuseExceptionResponses
from transit.src.urls import URL_MAP, URL_MAP_MARKER

route_rider = APIRouter()


## Output Schema
class MapSchema(MapView):
    access_token: str
    initial_region: Viewport
    zoom: int


## Query Parameters
class QueryParams(BaseModel):
    city_id: int | None = Field(Query(default=None))
    fitted: bool = Field(
        Query(default=False, description="True once the client has fitted its viewport")
    )


class MarkerQueryParams(BaseModel):
    key: str = Field(Query(max_length=64, description="Marker key, <line id>-stop-<index>"))


def lineFilters(qParam: QueryParams) -> dict:
    return {} if qParam.city_id is None else {"city_id": qParam.city_id}


## API endpoints [Rider]
@route_rider.get(
    URL_MAP,
    tags=["Map"],
    response_model=MapSchema,
    responses=fuseExceptionResponses([exceptions.InvalidApiKey()]),
    description="""
    Returns everything the map screen draws for the active bus lines: one polyline per line with geometry, one marker per stop, and a legend.
    Positions are {latitude, longitude}; stored geometry is [longitude, latitude].
    `viewport` fits every loaded point with a margin. It is null when no line has a point,
    or when the client reports with `fitted=true` that it already fitted its map, so a re-fetch never moves the map again.
    `initial_region` is the default region centered on Bujumbura.
    `access_token` is the map-provider token for the widget.
    """,
)
async def fetch_map(
    qParam: QueryParams = Depends(), transit: Gateway = Depends(getters.gateway)
):
    try:
        async with FlowScope() as scope:
            (lines,) = await loadCollections(
                scope, lambda: transit.bus_lines.listActive(**lineFilters(qParam))
            )
        view = buildMapView(lines, ViewportFitter(fitted=qParam.fitted))
        return MapSchema(
            **view.model_dump(),
            access_token=MAP_TOKEN,
            initial_region=defaultViewport(),
            zoom=DEFAULT_ZOOM,
        )
    except Exception as e:
        exceptions.handle(e)


@route_rider.get(
    URL_MAP_MARKER,
    tags=["Map"],
    response_model=LineDetail,
    responses=fuseExceptionResponses([exceptions.InvalidIdentifier()]),
    description="""
    Returns the detail panel of the bus line owning a tapped stop marker: name, zones, fare and stops.
    Raises InvalidIdentifier if no active line owns the marker.
    """,
)
async def fetch_marker(
    qParam: MarkerQueryParams = Depends(), transit: Gateway = Depends(getters.gateway)
):
    try:
        async with FlowScope() as scope:
            lines = await scope.run(transit.bus_lines.listActive)
        return selectMarker(qParam.key, lines)
    except Exception as e:
        exceptions.handle(e)
