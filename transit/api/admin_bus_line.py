from typing import List, Set
from fastapi import APIRouter, Depends, Response, status, Form
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from transit.src import admin, exceptions, getters, schemas
from transit.src.auth import SessionContext
from transit.src.gateway import Gateway
from transit.src.loggers import logEvent
from transit.src.functions import fuseExceptionResponses, providedFields
from transit.src.urls import URL_ADMIN_BUS_LINE, URL_ADMIN_BUS_LINE_TOGGLE

route_admin = APIRouter()


## Input Forms
class CreateForm(BaseModel):
    name: str = Field(Form(max_length=128))
    city_id: int = Field(Form())
    zones: str | None = Field(
        Form(max_length=2048, default=None, description="Comma separated zone names")
    )
    price: str | None = Field(
        Form(max_length=16, default=None, description="Fare in FBU, defaults to 500")
    )
    color: str | None = Field(
        Form(max_length=7, default=None, description="Hex color, defaults to #2563EB")
    )
    stops: str | None = Field(
        Form(
            default=None,
            description='JSON list of {"name": str, "coordinates": [longitude, latitude]}',
        )
    )
    route_coordinates: str | None = Field(
        Form(
            default=None,
            description="GeoJSON LineString, [longitude, latitude] pairs in SRID 4326",
        )
    )


class UpdateForm(BaseModel):
    id: int = Field(Form())
    name: str | None = Field(Form(max_length=128, default=None))
    city_id: int | None = Field(Form(default=None))
    zones: str | None = Field(Form(max_length=2048, default=None))
    price: str | None = Field(Form(max_length=16, default=None))
    color: str | None = Field(Form(max_length=7, default=None))
    stops: str | None = Field(Form(default=None))
    route_coordinates: str | None = Field(Form(default=None))
    active: bool | None = Field(Form(default=None))


class ToggleForm(BaseModel):
    id: int = Field(Form())


class DeleteForm(BaseModel):
    id: int = Field(Form())


## API endpoints [Admin]
@route_admin.get(
    URL_ADMIN_BUS_LINE,
    tags=["Admin Bus Line"],
    response_model=List[admin.AdminBusLine],
    responses=fuseExceptionResponses(
        [exceptions.InvalidToken(), exceptions.NoPermission()]
    ),
    description="""
    Lists every bus line, active or not, newest first.
    Each line carries the name of its city, "Ville non définie" when the city is unknown.
    """,
)
async def fetch_bus_lines(
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
):
    try:
        return admin.listBusLines(context, transit)
    except Exception as e:
        exceptions.handle(e)


@route_admin.post(
    URL_ADMIN_BUS_LINE,
    tags=["Admin Bus Line"],
    response_model=schemas.BusLine,
    status_code=status.HTTP_201_CREATED,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.MissingParameter("name"),
            exceptions.InvalidValue("color"),
            exceptions.InvalidGeometry(),
            exceptions.ForeignKeyViolation("For city_id value 9 is not present in table city"),
        ]
    ),
    description="""
    Creates a bus line. The name and the city are required.
    Zones are split on commas and trimmed, blank zones are dropped.
    A missing or non numeric price is stored as 500.
    Stops and the route path are optional and validated as [longitude, latitude] pairs in SRID 4326.
    """,
)
async def create_bus_line(
    fParam: CreateForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        form = fParam.model_dump()
        line = admin.createBusLine(context, transit, form)
        logEvent(context, request_info, jsonable_encoder(line))
        return line
    except Exception as e:
        exceptions.handle(e)


@route_admin.patch(
    URL_ADMIN_BUS_LINE,
    tags=["Admin Bus Line"],
    response_model=schemas.BusLine,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.InvalidIdentifier(),
            exceptions.MissingParameter("name"),
            exceptions.InvalidGeometry(),
        ]
    ),
    description="""
    Updates the provided fields of a bus line.
    An empty `stops` or `route_coordinates` value clears it.
    """,
)
async def update_bus_line(
    fParam: UpdateForm = Depends(),
    sent: Set[str] = Depends(getters.formFields),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        line = admin.updateBusLine(
            context, transit, fParam.id, providedFields(fParam, sent)
        )
        logEvent(context, request_info, jsonable_encoder(line))
        return line
    except Exception as e:
        exceptions.handle(e)


@route_admin.patch(
    URL_ADMIN_BUS_LINE_TOGGLE,
    tags=["Admin Bus Line"],
    response_model=schemas.BusLine,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.InvalidIdentifier(),
        ]
    ),
    description="""
    Flips the `active` flag of a bus line. Inactive lines are hidden from riders.
    """,
)
async def toggle_bus_line(
    fParam: ToggleForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        line = admin.toggleBusLine(context, transit, fParam.id)
        logEvent(context, request_info, {"id": line.id, "active": line.active})
        return line
    except Exception as e:
        exceptions.handle(e)


@route_admin.delete(
    URL_ADMIN_BUS_LINE,
    tags=["Admin Bus Line"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=fuseExceptionResponses(
        [exceptions.InvalidToken(), exceptions.NoPermission()]
    ),
    description="""
    Deletes a bus line permanently.
    If the ID is unknown or already deleted, the operation is silently ignored.
    """,
)
async def delete_bus_line(
    fParam: DeleteForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        admin.deleteBusLine(context, transit, fParam.id)
        logEvent(context, request_info, {"id": fParam.id})
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)
