from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from transit.src import exceptions, getters
from transit.src.gateway import Gateway
from transit.src.loaders import FlowScope
from transit.src.search import SearchResponse, search
from transit.src.functions import fuseExceptionResponses
from transit.src.urls import URL_SEARCH

route_rider = APIRouter()


## Query Parameters
class QueryParams(BaseModel):
    query: str = Field(Query(default="", max_length=128))


## API endpoints [Rider]
@route_rider.get(
    URL_SEARCH,
    tags=["Search"],
    response_model=SearchResponse,
    responses=fuseExceptionResponses([exceptions.InvalidApiKey()]),
    description="""
    Searches active bus lines (by name or covered zone) and active intercity routes (by departure or arrival point).
    Matching is a case-insensitive substring test; bus lines are listed before intercity routes.
    A blank query returns only the recent searches and the suggestions, without reading the backend.
    Signed-in callers get their last MAX_RECENT_SEARCHES queries, most recent first.
    """,
)
async def search_routes(
    qParam: QueryParams = Depends(),
    transit: Gateway = Depends(getters.gateway),
    recent=Depends(getters.recentSearches),
):
    try:
        async with FlowScope() as scope:
            return await search(qParam.query, transit, recent, scope)
    except Exception as e:
        exceptions.handle(e)
