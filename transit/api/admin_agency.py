from typing import List, Set
from fastapi import APIRouter, Depends, Response, status, Form, UploadFile, File
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field
from PIL import UnidentifiedImageError
from io import BytesIO

from transit.src import admin, exceptions, getters, schemas, validators
from transit.src.auth import SessionContext
from transit.src.constants import AGENCY_LOGOS, MAX_LOGO_SIZE
from transit.src.gateway import Gateway
from transit.src.loggers import logEvent
from transit.src.minio import deleteFile, uploadFile
from transit.src.functions import fuseExceptionResponses, logoImage, providedFields
from transit.src.urls import (
    URL_ADMIN_AGENCY,
    URL_ADMIN_AGENCY_LOGO,
    URL_ADMIN_AGENCY_TOGGLE,
)

route_admin = APIRouter()


## Input Forms
class CreateForm(BaseModel):
    name: str = Field(Form(max_length=128))
    contact_phone: str | None = Field(
        Form(max_length=32, default=None, description="Phone number, stored in RFC3966 format")
    )
    contact_email: str | None = Field(
        Form(max_length=256, default=None, description="Email in RFC 5322 format")
    )


class UpdateForm(BaseModel):
    id: int = Field(Form())
    name: str | None = Field(Form(max_length=128, default=None))
    contact_phone: str | None = Field(
        Form(max_length=32, default=None, description="An empty value clears the phone")
    )
    contact_email: str | None = Field(
        Form(max_length=256, default=None, description="An empty value clears the email")
    )
    active: bool | None = Field(Form(default=None))


class ToggleForm(BaseModel):
    id: int = Field(Form())


class DeleteForm(BaseModel):
    id: int = Field(Form())


class LogoForm(BaseModel):
    id: int = Field(Form())
    file: UploadFile = Field(File())


def logoObjectID(agency_id: int) -> str:
    return f"{agency_id}.jpeg"


## API endpoints [Admin]
@route_admin.get(
    URL_ADMIN_AGENCY,
    tags=["Admin Agency"],
    response_model=List[schemas.TransportAgency],
    responses=fuseExceptionResponses(
        [exceptions.InvalidToken(), exceptions.NoPermission()]
    ),
    description="""
    Lists every transport agency, active or not, newest first.
    """,
)
async def fetch_agencies(
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
):
    try:
        return admin.listAgencies(context, transit)
    except Exception as e:
        exceptions.handle(e)


@route_admin.post(
    URL_ADMIN_AGENCY,
    tags=["Admin Agency"],
    response_model=schemas.TransportAgency,
    status_code=status.HTTP_201_CREATED,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.MissingParameter("name"),
            exceptions.InvalidValue("contact_phone"),
            exceptions.UniqueViolation("For name value Volcano Express already exists"),
        ]
    ),
    description="""
    Creates an active transport agency. The name is required.
    Empty phone or email values are stored as null.
    """,
)
async def create_agency(
    fParam: CreateForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        agency = admin.createAgency(context, transit, fParam.model_dump())
        logEvent(context, request_info, jsonable_encoder(agency))
        return agency
    except Exception as e:
        exceptions.handle(e)


@route_admin.patch(
    URL_ADMIN_AGENCY,
    tags=["Admin Agency"],
    response_model=schemas.TransportAgency,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.InvalidIdentifier(),
            exceptions.MissingParameter("name"),
        ]
    ),
    description="""
    Updates the provided fields of a transport agency.
    An empty `contact_phone` or `contact_email` value clears it.
    """,
)
async def update_agency(
    fParam: UpdateForm = Depends(),
    sent: Set[str] = Depends(getters.formFields),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        agency = admin.updateAgency(
            context, transit, fParam.id, providedFields(fParam, sent)
        )
        logEvent(context, request_info, jsonable_encoder(agency))
        return agency
    except Exception as e:
        exceptions.handle(e)


@route_admin.patch(
    URL_ADMIN_AGENCY_TOGGLE,
    tags=["Admin Agency"],
    response_model=schemas.TransportAgency,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.InvalidIdentifier(),
        ]
    ),
    description="""
    Flips the `active` flag of an agency. Inactive agencies are hidden from riders.
    """,
)
async def toggle_agency(
    fParam: ToggleForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        agency = admin.toggleAgency(context, transit, fParam.id)
        logEvent(context, request_info, {"id": agency.id, "active": agency.active})
        return agency
    except Exception as e:
        exceptions.handle(e)


@route_admin.delete(
    URL_ADMIN_AGENCY,
    tags=["Admin Agency"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=fuseExceptionResponses(
        [exceptions.InvalidToken(), exceptions.NoPermission()]
    ),
    description="""
    Deletes an agency permanently, together with its intercity routes and its logo.
    If the ID is unknown or already deleted, the operation is silently ignored.
    """,
)
async def delete_agency(
    fParam: DeleteForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        admin.requireAdmin(context)
        agency = transit.agencies.get(fParam.id)
        if agency is None:
            return Response(status_code=status.HTTP_204_NO_CONTENT)

        admin.deleteAgency(context, transit, agency.id)
        if agency.logo_url is not None:
            deleteFile(AGENCY_LOGOS, agency.logo_url)
        logEvent(context, request_info, jsonable_encoder(agency))
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)


@route_admin.post(
    URL_ADMIN_AGENCY_LOGO,
    tags=["Admin Agency"],
    response_model=schemas.TransportAgency,
    responses=fuseExceptionResponses(
        [
            exceptions.InvalidToken(),
            exceptions.NoPermission(),
            exceptions.InvalidIdentifier(),
            exceptions.InvalidImage(),
        ]
    ),
    description="""
    Uploads the logo of an agency, replacing the previous one.
    The image is resized to fit MAX_LOGO_SIZE pixels, converted to JPEG and stored in the `agency-logos` bucket.
    """,
)
async def upload_agency_logo(
    fParam: LogoForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        admin.requireAdmin(context)
        validators.imageFile(fParam.file)
        if transit.agencies.get(fParam.id) is None:
            raise exceptions.InvalidIdentifier()

        fileBytes = await fParam.file.read()
        try:
            logoBytes = logoImage(fileBytes, MAX_LOGO_SIZE)
        except UnidentifiedImageError:
            raise exceptions.InvalidImage()

        objectID = logoObjectID(fParam.id)
        uploadFile(
            AGENCY_LOGOS, objectID, len(logoBytes), BytesIO(logoBytes), "image/jpeg"
        )
        agency = admin.setAgencyLogo(context, transit, fParam.id, objectID)
        logEvent(context, request_info, {"id": agency.id, "logo_url": agency.logo_url})
        return agency
    except Exception as e:
        exceptions.handle(e)


@route_admin.delete(
    URL_ADMIN_AGENCY_LOGO,
    tags=["Admin Agency"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=fuseExceptionResponses(
        [exceptions.InvalidToken(), exceptions.NoPermission()]
    ),
    description="""
    Removes the logo of an agency.
    If the agency is unknown or has no logo, the operation is silently ignored.
    """,
)
async def delete_agency_logo(
    fParam: DeleteForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
    request_info=Depends(getters.requestInfo),
):
    try:
        admin.requireAdmin(context)
        agency = transit.agencies.get(fParam.id)
        if agency is None or agency.logo_url is None:
            return Response(status_code=status.HTTP_204_NO_CONTENT)

        admin.setAgencyLogo(context, transit, agency.id, None)
        deleteFile(AGENCY_LOGOS, agency.logo_url)
        logEvent(context, request_info, {"id": agency.id, "logo_url": None})
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)
