from typing import List
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from io import BytesIO

from transit.src import exceptions, getters
from transit.src.constants import AGENCY_LOGOS
from transit.src.gateway import Gateway
from transit.src.loaders import AgencyWithRoutes, FlowScope, loadAgencies
from transit.src.minio import downloadFile
from transit.src.functions import fuseExceptionResponses
from transit.src.urls import URL_AGENCIES, URL_AGENCY_LOGO

route_rider = APIRouter()


## Query Parameters
class LogoQueryParams(BaseModel):
    id: int = Field(Query())


## API endpoints [Rider]
@route_rider.get(
    URL_AGENCIES,
    tags=["Agencies"],
    response_model=List[AgencyWithRoutes],
    responses=fuseExceptionResponses([exceptions.InvalidApiKey()]),
    description="""
    Returns the active transport agencies, each with its active intercity routes.
    Route lists are loaded concurrently and joined before responding.
    Durations are formatted like "1h 30min", fares fall back to DEFAULT_FARE when unset.
    """,
)
async def fetch_agencies(transit: Gateway = Depends(getters.gateway)):
    try:
        async with FlowScope() as scope:
            return await loadAgencies(transit, scope)
    except Exception as e:
        exceptions.handle(e)


@route_rider.get(
    URL_AGENCY_LOGO,
    tags=["Agencies"],
    response_class=StreamingResponse,
    responses=fuseExceptionResponses([exceptions.InvalidIdentifier()]),
    description="""
    Streams the logo of an active agency from the `agency-logos` bucket.
    Raises InvalidIdentifier if the agency is unknown, inactive or has no logo.
    """,
)
async def fetch_agency_logo(
    qParam: LogoQueryParams = Depends(), transit: Gateway = Depends(getters.gateway)
):
    try:
        agency = transit.agencies.get(qParam.id)
        if agency is None or not agency.active or agency.logo_url is None:
            raise exceptions.InvalidIdentifier()

        logoBytes = downloadFile(AGENCY_LOGOS, agency.logo_url)
        return StreamingResponse(BytesIO(logoBytes), media_type="image/jpeg")
    except Exception as e:
        exceptions.handle(e)
