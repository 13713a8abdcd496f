"""
Shared record shapes for the transit data.

Stored geometry is always `[longitude, latitude]` (GeoJSON / WKT axis order,
SRID 4326). The only places where latitude comes first are the named
`Coordinates` object of a city and the render points built by `mapping.py`.
"""

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from shapely.geometry import LineString as ShapelyLineString, Point

from transit.src.constants import DEFAULT_LINE_COLOR
from transit.src.functions import isSRID4326


class RequestInfo(BaseModel):
    method: str
    path: str


class HealthStatus(BaseModel):
    status: str
    version: str


class ErrorResponse(BaseModel):
    detail: str


## Geometry
def checkPair(pair) -> List[float]:
    """
    Validate a stored `[longitude, latitude]` pair and return it as floats.

    Raises:
        ValueError: If the pair is malformed or outside WGS84 bounds.
    """
    if not isinstance(pair, (list, tuple)) or len(pair) != 2:
        raise ValueError("A position must be a [longitude, latitude] pair")
    longitude, latitude = float(pair[0]), float(pair[1])
    if not isSRID4326(Point(longitude, latitude)):
        raise ValueError("A position must be within SRID 4326 bounds")
    return [longitude, latitude]


class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


def pointToCoordinates(point: Point) -> Coordinates:
    """Convert a stored POINT(longitude latitude) into named city coordinates."""
    return Coordinates(lat=point.y, lng=point.x)


def coordinatesToPoint(coordinates: Coordinates) -> Point:
    """Convert named city coordinates into a POINT(longitude latitude)."""
    return Point(coordinates.lng, coordinates.lat)


class LineString(BaseModel):
    type: Literal["LineString"] = "LineString"
    coordinates: List[List[float]]

    @field_validator("coordinates")
    @classmethod
    def validateCoordinates(cls, coordinates):
        coordinates = [checkPair(pair) for pair in coordinates]
        if len(coordinates) < 2:
            raise ValueError("A line needs at least two positions")
        return coordinates

    def toShape(self) -> ShapelyLineString:
        return ShapelyLineString(self.coordinates)

    @classmethod
    def fromShape(cls, line: ShapelyLineString) -> "LineString":
        return cls(coordinates=[[x, y] for x, y in line.coords])


def emptyLineToNone(value):
    """A LineString without positions means "no geometry"."""
    if isinstance(value, dict) and not value.get("coordinates"):
        return None
    return value


class Stop(BaseModel):
    name: str = Field(min_length=1)
    coordinates: List[float]

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, data):
        # Stops saved by older admin forms carry {name, lat, lng}
        if isinstance(data, dict) and "coordinates" not in data:
            if "lat" in data and "lng" in data:
                data = {
                    "name": data.get("name"),
                    "coordinates": [data["lng"], data["lat"]],
                }
        return data

    @field_validator("name")
    @classmethod
    def stripName(cls, name: str):
        name = name.strip()
        if not name:
            raise ValueError("A stop needs a name")
        return name

    @field_validator("coordinates")
    @classmethod
    def validateCoordinates(cls, coordinates):
        return checkPair(coordinates)


## Entities
class City(BaseModel):
    id: int
    name: str
    coordinates: Coordinates
    created_on: Optional[datetime] = None


class BusLine(BaseModel):
    id: int
    name: str
    city_id: int
    zones_covered: List[str] = []
    route_coordinates: Optional[LineString] = None
    stops: List[Stop] = []
    color: str = DEFAULT_LINE_COLOR
    price: Optional[int] = None
    active: bool = True
    created_on: Optional[datetime] = None

    @field_validator("route_coordinates", mode="before")
    @classmethod
    def emptyLine(cls, value):
        return emptyLineToNone(value)

    @field_validator("zones_covered", "stops", mode="before")
    @classmethod
    def nullToList(cls, value):
        return value or []


class TransportAgency(BaseModel):
    id: int
    name: str
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    logo_url: Optional[str] = None
    active: bool = True
    created_on: Optional[datetime] = None


class IntercityRoute(BaseModel):
    id: int
    agency_id: int
    agency_name: Optional[str] = None
    departure_city_id: Optional[int] = None
    arrival_city_id: Optional[int] = None
    departure_point: str
    arrival_point: str
    route_coordinates: Optional[LineString] = None
    frequency: Optional[str] = None
    duration_minutes: Optional[int] = None
    price: Optional[int] = None
    schedule: List[str] = []
    active: bool = True
    created_on: Optional[datetime] = None

    @field_validator("route_coordinates", mode="before")
    @classmethod
    def emptyLine(cls, value):
        return emptyLineToNone(value)

    @field_validator("schedule", mode="before")
    @classmethod
    def nullToList(cls, value):
        return value or []


class SearchResult(BaseModel):
    id: int
    name: str
    kind: Literal["bus", "intercity"]
    zones: Optional[List[str]] = None
    agency: Optional[str] = None
    details: Optional[str] = None


## Accounts
class User(BaseModel):
    id: int
    email: str
    created_on: Optional[datetime] = None


class Session(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: datetime
    user: User
