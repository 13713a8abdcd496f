from typing import List
from fastapi import APIRouter, Depends

from transit.src import exceptions, getters
from transit.src.gateway import Gateway
from transit.src.loaders import FlowScope, PopularRoute, loadHome
from transit.src.functions import fuseExceptionResponses
from transit.src.urls import URL_HOME

route_rider = APIRouter()


## API endpoints [Rider]
@route_rider.get(
    URL_HOME,
    tags=["Home"],
    response_model=List[PopularRoute],
    responses=fuseExceptionResponses([exceptions.InvalidApiKey()]),
    description="""
    Returns the popular routes of the home screen.
    The first POPULAR_BUS_LINES active bus lines come first, then the first POPULAR_INTERCITY_ROUTES active intercity routes.
    Both collections are loaded concurrently; the order does not depend on which finishes first.
    A collection that fails to load is left out instead of failing the screen.
    """,
)
async def fetch_home(transit: Gateway = Depends(getters.gateway)):
    try:
        async with FlowScope() as scope:
            return await loadHome(transit, scope)
    except Exception as e:
        exceptions.handle(e)
