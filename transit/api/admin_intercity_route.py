from typing import List, Set
from fastapi import APIRouter, Depends, Response, status, Form
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from transit.src import admin, exceptions, getters, schemas
from transit.src.auth import SessionContext
from transit.src.gateway import Gateway
from transit.src.loggers import logEvent
from transit.src.functions import fuseExceptionResponses, providedFields
from transit.src.urls import URL_ADMIN_INTERCITY_ROUTE, URL_ADMIN_INTERCITY_ROUTE_TOGGLE

route_admin = APIRouter()


## Input Forms
class CreateForm(BaseModel):
    agency_id: int = Field(Form())
    departure_point: str = Field(Form(max_length=128))
    arrival_point: str = Field(Form(max_length=128))
    departure_city_id: int | None = Field(Form(default=None))
    arrival_city_id: int | None = Field(Form(default=None))
    frequency: str | None = Field(Form(max_length=128, default=None))
    duration_minutes: str | None = Field(
        Form(max_length=8, default=None, description="Travel time in minutes")
    )
    price: str | None = Field(Form(max_length=16, default=None, description="Fare in FBU"))
    schedule: str | None = Field(
        Form(max_length=1024, default=None, description="Comma separated departure times")
    )
    route_coordinates: str | None = Field(
        Form(
            default=None,
            description="GeoJSON LineString, [longitude, latitude] pairs in SRID 4326",
        )
    )


class UpdateForm(BaseModel):
    id: int = Field(Form())
    agency_id: int | None = Field(Form(default=None))
    departure_point: str | None = Field(Form(max_length=128, default=None))
    arrival_point: str | None = Field(Form(max_length=128, default=None))
    departure_city_id: int | None = Field(Form(default=None))
    arrival_city_id: int | None = Field(Form(default=None))
    frequency: str | None = Field(Form(max_length=128, default=None))
    duration_minutes: str | None = Field(Form(max_length=8, default=None))
    price: str | None = Field(Form(max_length=16, default=None))
    schedule: str | None = Field(Form(max_length=1024, default=None))
    route_coordinates: str | None = Field(Form(default=None))
    active: bool | None = Field(Form(default=None))


class ToggleForm(BaseModel):
    id: int = Field(Form())


class DeleteForm(BaseModel):
    id: int = Field(Form())


## API endpoints [Admin]
@route_admin.get(
    URL_ADMIN_INTERCITY_ROUTE,
    tags=["Admin Intercity Route"],
    response_model=List[schemas.IntercityRoute],
    responses=fuseExceptionResponses(
        [exceptions.InvalidToken(), exceptions.NoPermission()]
    ),
    description="""
    Lists every intercity route, active or not, newest first, with the name of its agency.
    """,
)
async def fetch_intercity_routes(
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
):
    try:
        return admin.listIntercityRoutes(context, transit)
    except Exception as e:
        exceptions.handle(e)


@route_admin.post(
    URL_ADMIN_INTERCITY_ROUTE,
    tags=["Admin Intercity Route"],
    response_model=schemas.IntercityRoute,
    status_code=status.HTTP_201_CREATED,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.MissingParameter("departure_point"),
            exceptions.InvalidValue("duration_minutes"),
            exceptions.InvalidGeometry(),
        ]
    ),
    description="""
    Creates an intercity route. The agency, departure point and arrival point are required.
    The schedule is split on commas, blank entries are dropped.
    """,
)
async def create_intercity_route(
    fParam: CreateForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        route = admin.createIntercityRoute(context, transit, fParam.model_dump())
        logEvent(context, request_info, jsonable_encoder(route))
        return route
    except Exception as e:
        exceptions.handle(e)


@route_admin.patch(
    URL_ADMIN_INTERCITY_ROUTE,
    tags=["Admin Intercity Route"],
    response_model=schemas.IntercityRoute,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.InvalidIdentifier(),
            exceptions.InvalidGeometry(),
        ]
    ),
    description="""
    Updates the provided fields of an intercity route.
    An empty `price`, `duration_minutes` or `route_coordinates` value clears it.
    """,
)
async def update_intercity_route(
    fParam: UpdateForm = Depends(),
    sent: Set[str] = Depends(getters.formFields),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        route = admin.updateIntercityRoute(
            context, transit, fParam.id, providedFields(fParam, sent)
        )
        logEvent(context, request_info, jsonable_encoder(route))
        return route
    except Exception as e:
        exceptions.handle(e)


@route_admin.patch(
    URL_ADMIN_INTERCITY_ROUTE_TOGGLE,
    tags=["Admin Intercity Route"],
    response_model=schemas.IntercityRoute,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.InvalidIdentifier(),
        ]
    ),
    description="""
    Flips the `active` flag of an intercity route.
    """,
)
async def toggle_intercity_route(
    fParam: ToggleForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        route = admin.toggleIntercityRoute(context, transit, fParam.id)
        logEvent(context, request_info, {"id": route.id, "active": route.active})
        return route
    except Exception as e:
        exceptions.handle(e)


@route_admin.delete(
    URL_ADMIN_INTERCITY_ROUTE,
    tags=["Admin Intercity Route"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=fuseExceptionResponses(
        [exceptions.InvalidToken(), exceptions.NoPermission()]
    ),
    description="""
    Deletes an intercity route permanently.
    If the ID is unknown or already deleted, the operation is silently ignored.
    """,
)
async def delete_intercity_route(
    fParam: DeleteForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        admin.deleteIntercityRoute(context, transit, fParam.id)
        logEvent(context, request_info, {"id": fParam.id})
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)
