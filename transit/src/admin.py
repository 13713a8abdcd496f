"""
Administrator mutation flows.

Each flow checks the caller first, then validates its input, and only then
reaches the gateway. A rejected request therefore never costs a backend
round trip. Form values arrive as plain strings; this module turns them into
gateway records.
"""

import re
from typing import List, Optional
from pydantic import BaseModel, EmailStr, TypeAdapter, ValidationError
from pydantic_extra_types.phone_numbers import PhoneNumber

from transit.src import exceptions, schemas
from transit.src.auth import SessionContext
from transit.src.gateway import Gateway
from transit.src.constants import DEFAULT_FARE, DEFAULT_LINE_COLOR, UNKNOWN_CITY_NAME

stopsAdapter = TypeAdapter(List[schemas.Stop])
lineAdapter = TypeAdapter(schemas.LineString)
phoneAdapter = TypeAdapter(PhoneNumber)
emailAdapter = TypeAdapter(EmailStr)

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
LEADING_INTEGER = re.compile(r"^\s*(-?\d+)")


## Output Schema
class AdminBusLine(schemas.BusLine):
    city_name: str


class AdminDashboard(BaseModel):
    email: str
    cities: int
    bus_lines: int
    agencies: int
    intercity_routes: int


## Gate
def requireAdmin(context: SessionContext) -> None:
    """
    Raises:
        exceptions.InvalidToken: If nobody is signed in.
        exceptions.NoPermission: If the signed-in user is not an administrator.
    """
    if context.user is None:
        raise exceptions.InvalidToken()
    if not context.is_admin:
        raise exceptions.NoPermission()


## Form parsing
def requireText(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise exceptions.MissingParameter(field)
    return text


def optionalText(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None


def splitList(text: Optional[str]) -> List[str]:
    """Split a comma separated form value, dropping blank items."""
    if not text:
        return []
    return [item.strip() for item in text.split(",") if item.strip()]


def parseZones(text: Optional[str]) -> List[str]:
    """
    Example:
        >>> parseZones(" Centre-ville, Kinindo ,, ")
        ['Centre-ville', 'Kinindo']
    """
    return splitList(text)


def parseFare(text) -> int:
    """
    Read the leading integer of a fare field.

    A blank or non numeric value falls back to DEFAULT_FARE, a stored 0 stays 0.

    Example:
        >>> parseFare("750")
        750
        >>> parseFare("")
        500
        >>> parseFare("600 FBU")
        600
    """
    if isinstance(text, int):
        value = text
    else:
        match = LEADING_INTEGER.match(text or "")
        if match is None:
            return DEFAULT_FARE
        value = int(match.group(1))
    if value < 0:
        raise exceptions.InvalidValue("price")
    return value


def parseOptionalInteger(text, field: str) -> Optional[int]:
    if text is None or isinstance(text, int):
        value = text
    else:
        if not text.strip():
            return None
        match = LEADING_INTEGER.match(text)
        if match is None:
            raise exceptions.InvalidValue(field)
        value = int(match.group(1))
    if value is not None and value < 0:
        raise exceptions.InvalidValue(field)
    return value


def parseColor(text: Optional[str]) -> str:
    color = (text or "").strip()
    if not color:
        return DEFAULT_LINE_COLOR
    if not HEX_COLOR.match(color):
        raise exceptions.InvalidValue("color")
    return color.upper()


def parseStops(text: Optional[str]) -> List[dict]:
    """Stops as JSON: a list of {name, coordinates: [lon, lat]} (or {name, lat, lng})."""
    if not text or not text.strip():
        return []
    try:
        stops = stopsAdapter.validate_json(text)
    except ValidationError:
        raise exceptions.InvalidGeometry()
    return [stop.model_dump() for stop in stops]


def parseRoute(text: Optional[str]) -> Optional[dict]:
    """Route path as a GeoJSON LineString. A blank value clears it."""
    if not text or not text.strip():
        return None
    try:
        line = lineAdapter.validate_json(text)
    except ValidationError:
        raise exceptions.InvalidGeometry()
    return line.model_dump()


def parsePhone(text: Optional[str]) -> Optional[str]:
    phone = optionalText(text)
    if phone is None:
        return None
    try:
        return phoneAdapter.validate_python(phone)
    except ValidationError:
        raise exceptions.InvalidValue("contact_phone")


def parseEmail(text: Optional[str]) -> Optional[str]:
    email = optionalText(text)
    if email is None:
        return None
    try:
        return emailAdapter.validate_python(email)
    except ValidationError:
        raise exceptions.InvalidValue("contact_email")


def parseCoordinates(lat, lng) -> schemas.Coordinates:
    if lat is None:
        raise exceptions.MissingParameter("lat")
    if lng is None:
        raise exceptions.MissingParameter("lng")
    try:
        return schemas.Coordinates(lat=lat, lng=lng)
    except ValidationError:
        raise exceptions.InvalidValue("coordinates")


## Records
def busLineRecord(form: dict, creating: bool) -> dict:
    """
    Build a bus line record from form values.

    On create, `name` and `city_id` are required. On update, only the keys
    present in `form` are written, and a present `name` must not be blank.
    """
    record = {}
    if creating or "name" in form:
        record["name"] = requireText(form.get("name"), "name")
    if creating or "city_id" in form:
        if form.get("city_id") is None:
            raise exceptions.MissingParameter("city_id")
        record["city_id"] = form["city_id"]
    if creating or "zones" in form:
        record["zones_covered"] = parseZones(form.get("zones"))
    if creating or "price" in form:
        record["price"] = parseFare(form.get("price"))
    if creating or "color" in form:
        record["color"] = parseColor(form.get("color"))
    if "stops" in form:
        record["stops"] = parseStops(form["stops"])
    if "route_coordinates" in form:
        record["route_coordinates"] = parseRoute(form["route_coordinates"])
    if form.get("active") is not None:
        record["active"] = bool(form["active"])
    return record


def agencyRecord(form: dict, creating: bool) -> dict:
    """Empty phone or email values are stored as null."""
    record = {}
    if creating or "name" in form:
        record["name"] = requireText(form.get("name"), "name")
    if creating or "contact_phone" in form:
        record["contact_phone"] = parsePhone(form.get("contact_phone"))
    if creating or "contact_email" in form:
        record["contact_email"] = parseEmail(form.get("contact_email"))
    if creating:
        record["active"] = True
    if form.get("active") is not None:
        record["active"] = bool(form["active"])
    return record


def intercityRouteRecord(form: dict, creating: bool) -> dict:
    record = {}
    if creating or "agency_id" in form:
        if form.get("agency_id") is None:
            raise exceptions.MissingParameter("agency_id")
        record["agency_id"] = form["agency_id"]
    if creating or "departure_point" in form:
        record["departure_point"] = requireText(
            form.get("departure_point"), "departure_point"
        )
    if creating or "arrival_point" in form:
        record["arrival_point"] = requireText(form.get("arrival_point"), "arrival_point")
    for key in ("departure_city_id", "arrival_city_id"):
        if key in form:
            record[key] = form[key]
    if "frequency" in form:
        record["frequency"] = optionalText(form["frequency"])
    if "duration_minutes" in form:
        record["duration_minutes"] = parseOptionalInteger(
            form["duration_minutes"], "duration_minutes"
        )
    if "price" in form:
        record["price"] = parseOptionalInteger(form["price"], "price")
    if creating or "schedule" in form:
        record["schedule"] = splitList(form.get("schedule"))
    if "route_coordinates" in form:
        record["route_coordinates"] = parseRoute(form["route_coordinates"])
    if form.get("active") is not None:
        record["active"] = bool(form["active"])
    return record


def cityRecord(form: dict, creating: bool) -> dict:
    record = {}
    if creating or "name" in form:
        record["name"] = requireText(form.get("name"), "name")
    if creating or "lat" in form or "lng" in form:
        record["coordinates"] = parseCoordinates(form.get("lat"), form.get("lng"))
    return record


## Flows
def dashboard(context: SessionContext, gateway: Gateway) -> AdminDashboard:
    requireAdmin(context)
    return AdminDashboard(
        email=context.user.email,
        cities=gateway.cities.count(),
        bus_lines=gateway.bus_lines.count(),
        agencies=gateway.agencies.count(),
        intercity_routes=gateway.intercity_routes.count(),
    )


def listBusLines(context: SessionContext, gateway: Gateway) -> List[AdminBusLine]:
    """Every bus line, newest first, with the name of its city."""
    requireAdmin(context)
    lines = gateway.bus_lines.listAll(newestFirst=True)
    cityNames = {city.id: city.name for city in gateway.cities.listAll()}
    return [
        AdminBusLine(
            **line.model_dump(),
            city_name=cityNames.get(line.city_id, UNKNOWN_CITY_NAME),
        )
        for line in lines
    ]


def createBusLine(context: SessionContext, gateway: Gateway, form: dict):
    requireAdmin(context)
    return gateway.bus_lines.insert(busLineRecord(form, creating=True))


def updateBusLine(context: SessionContext, gateway: Gateway, id: int, form: dict):
    requireAdmin(context)
    return gateway.bus_lines.update(id, busLineRecord(form, creating=False))


def deleteBusLine(context: SessionContext, gateway: Gateway, id: int) -> None:
    requireAdmin(context)
    gateway.bus_lines.delete(id)


def toggleBusLine(context: SessionContext, gateway: Gateway, id: int):
    requireAdmin(context)
    return gateway.bus_lines.toggleActive(id)


def listAgencies(context: SessionContext, gateway: Gateway):
    requireAdmin(context)
    return gateway.agencies.listAll(newestFirst=True)


def createAgency(context: SessionContext, gateway: Gateway, form: dict):
    requireAdmin(context)
    return gateway.agencies.insert(agencyRecord(form, creating=True))


def updateAgency(context: SessionContext, gateway: Gateway, id: int, form: dict):
    requireAdmin(context)
    return gateway.agencies.update(id, agencyRecord(form, creating=False))


def deleteAgency(context: SessionContext, gateway: Gateway, id: int) -> None:
    requireAdmin(context)
    gateway.agencies.delete(id)


def toggleAgency(context: SessionContext, gateway: Gateway, id: int):
    requireAdmin(context)
    return gateway.agencies.toggleActive(id)


def setAgencyLogo(
    context: SessionContext, gateway: Gateway, id: int, logo_url: Optional[str]
):
    requireAdmin(context)
    return gateway.agencies.update(id, {"logo_url": logo_url})


def listIntercityRoutes(context: SessionContext, gateway: Gateway):
    requireAdmin(context)
    return gateway.intercity_routes.listAll(newestFirst=True)


def createIntercityRoute(context: SessionContext, gateway: Gateway, form: dict):
    requireAdmin(context)
    return gateway.intercity_routes.insert(intercityRouteRecord(form, creating=True))


def updateIntercityRoute(
    context: SessionContext, gateway: Gateway, id: int, form: dict
):
    requireAdmin(context)
    return gateway.intercity_routes.update(
        id, intercityRouteRecord(form, creating=False)
    )


def deleteIntercityRoute(context: SessionContext, gateway: Gateway, id: int) -> None:
    requireAdmin(context)
    gateway.intercity_routes.delete(id)


def toggleIntercityRoute(context: SessionContext, gateway: Gateway, id: int):
    requireAdmin(context)
    return gateway.intercity_routes.toggleActive(id)


def listCities(context: SessionContext, gateway: Gateway):
    requireAdmin(context)
    return gateway.cities.listAll()


def createCity(context: SessionContext, gateway: Gateway, form: dict):
    requireAdmin(context)
    return gateway.cities.insert(cityRecord(form, creating=True))


def updateCity(context: SessionContext, gateway: Gateway, id: int, form: dict):
    requireAdmin(context)
    return gateway.cities.update(id, cityRecord(form, creating=False))


def deleteCity(context: SessionContext, gateway: Gateway, id: int) -> None:
    requireAdmin(context)
    gateway.cities.delete(id)
