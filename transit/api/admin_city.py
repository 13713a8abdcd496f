from typing import List, Set
from fastapi import APIRouter, Depends, Response, status, Form
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from transit.src import admin, exceptions, getters, schemas
from transit.src.auth import SessionContext
from transit.src.gateway import Gateway
from transit.src.loggers import logEvent
from transit.src.functions import fuseExceptionResponses, providedFields
from transit.src.urls import URL_ADMIN_CITY

route_admin = APIRouter()


## Input Forms
class CreateForm(BaseModel):
    name: str = Field(Form(max_length=64))
    lat: float = Field(Form(ge=-90, le=90, description="Latitude of the city center"))
    lng: float = Field(Form(ge=-180, le=180, description="Longitude of the city center"))


class UpdateForm(BaseModel):
    id: int = Field(Form())
    name: str | None = Field(Form(max_length=64, default=None))
    lat: float | None = Field(Form(ge=-90, le=90, default=None))
    lng: float | None = Field(Form(ge=-180, le=180, default=None))


class DeleteForm(BaseModel):
    id: int = Field(Form())


## API endpoints [Admin]
@route_admin.get(
    URL_ADMIN_CITY,
    tags=["Admin City"],
    response_model=List[schemas.City],
    responses=fuseExceptionResponses(
        [exceptions.InvalidToken(), exceptions.NoPermission()]
    ),
    description="""
    Lists every city with its center as {lat, lng}.
    """,
)
async def fetch_cities(
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
):
    try:
        return admin.listCities(context, transit)
    except Exception as e:
        exceptions.handle(e)


@route_admin.post(
    URL_ADMIN_CITY,
    tags=["Admin City"],
    response_model=schemas.City,
    status_code=status.HTTP_201_CREATED,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.MissingParameter("name"),
            exceptions.UniqueViolation("For name value Gitega already exists"),
        ]
    ),
    description="""
    Creates a city. The name and the center coordinates are required.
    The center is stored as POINT(longitude latitude) in SRID 4326.
    """,
)
async def create_city(
    fParam: CreateForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        city = admin.createCity(context, transit, fParam.model_dump())
        logEvent(context, request_info, jsonable_encoder(city))
        return city
    except Exception as e:
        exceptions.handle(e)


@route_admin.patch(
    URL_ADMIN_CITY,
    tags=["Admin City"],
    response_model=schemas.City,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.InvalidIdentifier(),
            exceptions.MissingParameter("lng"),
        ]
    ),
    description="""
    Updates the name or the center of a city. Moving the center needs both `lat` and `lng`.
    """,
)
async def update_city(
    fParam: UpdateForm = Depends(),
    sent: Set[str] = Depends(getters.formFields),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        city = admin.updateCity(
            context, transit, fParam.id, providedFields(fParam, sent)
        )
        logEvent(context, request_info, jsonable_encoder(city))
        return city
    except Exception as e:
        exceptions.handle(e)


@route_admin.delete(
    URL_ADMIN_CITY,
    tags=["Admin City"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=fuseExceptionResponses(
        [exceptions.InvalidToken(), exceptions.NoPermission()]
    ),
    description="""
    Deletes a city permanently, together with its bus lines.
    Intercity routes referencing the city keep their free-text points.
    If the ID is unknown or already deleted, the operation is silently ignored.
    """,
)
async def delete_city(
    fParam: DeleteForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        admin.deleteCity(context, transit, fParam.id)
        logEvent(context, request_info, {"id": fParam.id})
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)
