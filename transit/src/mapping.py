"""
Map presentation adapter.

Turns stored bus line geometry into what a map widget draws: polylines,
stop markers, a legend and a region to fit. Stored pairs are
`[longitude, latitude]`; the widget wants `{latitude, longitude}`. The
conversion is an axis swap only, no reprojection.
"""

from typing import Dict, Iterable, List, Optional
from pydantic import BaseModel
from shapely.geometry import MultiPoint

from transit.src import exceptions
from transit.src.schemas import BusLine
from transit.src.constants import (
    CURRENCY,
    DEFAULT_FARE,
    DEFAULT_LINE_COLOR,
    DEFAULT_MAP_CENTER,
    DEFAULT_MAP_DELTA,
    MAP_EDGE_PADDING,
    MAP_MIN_DELTA,
    MAP_VIEWPORT_PADDING,
)


## Output Schema
class RenderPoint(BaseModel):
    latitude: float
    longitude: float


class Polyline(BaseModel):
    line_id: int
    color: str
    coordinates: List[RenderPoint]


class Marker(BaseModel):
    key: str
    line_id: int
    title: str
    description: str
    color: str
    coordinate: RenderPoint


class LegendEntry(BaseModel):
    line_id: int
    name: str
    color: str
    fare: str


class LineDetail(BaseModel):
    line_id: int
    name: str
    zones: List[str]
    fare: str
    stops: List[str]


class Viewport(BaseModel):
    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float
    edge_padding: Dict[str, int] = MAP_EDGE_PADDING


class MapView(BaseModel):
    polylines: List[Polyline]
    markers: List[Marker]
    legend: List[LegendEntry]
    viewport: Optional[Viewport]


## Fares
def displayFare(price: Optional[int]) -> int:
    """Fare to render: the stored price, or the default fare when none is stored."""
    return DEFAULT_FARE if price is None else price


def formatFare(price: Optional[int]) -> str:
    return f"{displayFare(price)} {CURRENCY}"


def formatDuration(minutes: Optional[int]) -> str:
    """
    Format a travel time for display.

    Example:
        >>> formatDuration(90)
        '1h 30min'
        >>> formatDuration(120)
        '2h'
        >>> formatDuration(45)
        '45min'
    """
    if not minutes:
        return ""
    hours, mins = divmod(minutes, 60)
    if hours > 0 and mins > 0:
        return f"{hours}h {mins}min"
    if hours > 0:
        return f"{hours}h"
    return f"{mins}min"


## Coordinates
def toRenderPoint(pair: List[float]) -> RenderPoint:
    """Stored [longitude, latitude] -> render {latitude, longitude}."""
    longitude, latitude = pair
    return RenderPoint(latitude=latitude, longitude=longitude)


def toStoredPair(point: RenderPoint) -> List[float]:
    """Render {latitude, longitude} -> stored [longitude, latitude]."""
    return [point.longitude, point.latitude]


def lineColor(line: BusLine) -> str:
    return line.color or DEFAULT_LINE_COLOR


def linePolyline(line: BusLine) -> Optional[Polyline]:
    """The path of a line, or None when the line has no geometry."""
    if line.route_coordinates is None:
        return None
    return Polyline(
        line_id=line.id,
        color=lineColor(line),
        coordinates=[toRenderPoint(pair) for pair in line.route_coordinates.coordinates],
    )


def markerKey(line: BusLine, index: int) -> str:
    return f"{line.id}-stop-{index}"


def lineMarkers(line: BusLine) -> List[Marker]:
    """One marker per stop, in stop order. A line without stops has none."""
    return [
        Marker(
            key=markerKey(line, index),
            line_id=line.id,
            title=stop.name,
            description=f"Prix: {formatFare(line.price)}",
            color=lineColor(line),
            coordinate=toRenderPoint(stop.coordinates),
        )
        for index, stop in enumerate(line.stops)
    ]


def lineDetail(line: BusLine) -> LineDetail:
    return LineDetail(
        line_id=line.id,
        name=line.name,
        zones=list(line.zones_covered),
        fare=formatFare(line.price),
        stops=[stop.name for stop in line.stops],
    )


def selectMarker(key: str, lines: Iterable[BusLine]) -> LineDetail:
    """
    Map a tapped marker back to the detail panel of its owning line.

    Raises:
        exceptions.InvalidIdentifier: If no loaded line owns the marker.
    """
    lineId, separator, index = key.rpartition("-stop-")
    if not separator or not lineId.isdigit() or not index.isdigit():
        raise exceptions.InvalidIdentifier()
    for line in lines:
        if line.id == int(lineId) and int(index) < len(line.stops):
            return lineDetail(line)
    raise exceptions.InvalidIdentifier()


## Viewport
def collectPoints(lines: Iterable[BusLine]) -> List[RenderPoint]:
    """Every drawn point: path positions then stops, line by line."""
    points = []
    for line in lines:
        if line.route_coordinates is not None:
            points.extend(toRenderPoint(p) for p in line.route_coordinates.coordinates)
        points.extend(toRenderPoint(stop.coordinates) for stop in line.stops)
    return points


def defaultViewport() -> Viewport:
    latitude, longitude = DEFAULT_MAP_CENTER
    return Viewport(
        latitude=latitude,
        longitude=longitude,
        latitude_delta=DEFAULT_MAP_DELTA,
        longitude_delta=DEFAULT_MAP_DELTA,
    )


def fitViewport(points: List[RenderPoint]) -> Optional[Viewport]:
    """
    Compute a region containing every point with a padding margin.

    The bounding box is widened by MAP_VIEWPORT_PADDING of its span on every
    side and never narrower than MAP_MIN_DELTA, so a single point still gets
    a usable region.

    Returns:
        Optional[Viewport]: None for an empty point set.
    """
    if not points:
        return None
    bounds = MultiPoint([(p.longitude, p.latitude) for p in points]).bounds
    minLongitude, minLatitude, maxLongitude, maxLatitude = bounds
    latitudeDelta = (maxLatitude - minLatitude) * (1 + 2 * MAP_VIEWPORT_PADDING)
    longitudeDelta = (maxLongitude - minLongitude) * (1 + 2 * MAP_VIEWPORT_PADDING)
    return Viewport(
        latitude=(minLatitude + maxLatitude) / 2,
        longitude=(minLongitude + maxLongitude) / 2,
        latitude_delta=max(latitudeDelta, MAP_MIN_DELTA),
        longitude_delta=max(longitudeDelta, MAP_MIN_DELTA),
    )


class ViewportFitter:
    """
    Fits the viewport once, when the line collection first becomes non-empty.

    Later calls return None whatever the content, so re-fetching the same
    lines never moves the map again.
    A client that already fitted its map says so with `fitted=True`.
    """

    def __init__(self, fitted: bool = False):
        self.fitted = fitted

    def apply(self, lines: List[BusLine]) -> Optional[Viewport]:
        if self.fitted:
            return None
        viewport = fitViewport(collectPoints(lines))
        if viewport is not None:
            self.fitted = True
        return viewport


def buildMapView(lines: List[BusLine], fitter: ViewportFitter) -> MapView:
    polylines = [p for p in (linePolyline(line) for line in lines) if p is not None]
    markers = [marker for line in lines for marker in lineMarkers(line)]
    legend = [
        LegendEntry(
            line_id=line.id,
            name=line.name,
            color=lineColor(line),
            fare=formatFare(line.price),
        )
        for line in lines
    ]
    return MapView(
        polylines=polylines,
        markers=markers,
        legend=legend,
        viewport=fitter.apply(lines),
    )
