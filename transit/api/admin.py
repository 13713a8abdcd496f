from fastapi import APIRouter, Depends

from transit.src import admin, exceptions, getters
from transit.src.auth import SessionContext
from transit.src.gateway import Gateway
from transit.src.functions import fuseExceptionResponses
from transit.src.urls import URL_ADMIN

route_admin = APIRouter()


## API endpoints [Admin]
@route_admin.get(
    URL_ADMIN,
    tags=["Admin"],
    response_model=admin.AdminDashboard,
    responses=fuseExceptionResponses(
        [exceptions.InvalidToken(), exceptions.NoPermission()]
    ),
    description="""
    Returns the admin dashboard: the signed-in email and the number of cities, bus lines, agencies and intercity routes.
    Signed-out callers get InvalidToken, signed-in non administrators get NoPermission, before any data is read.
    """,
)
async def fetch_dashboard(
    context: SessionContext = Depends(getters.sessionContext),
    transit: Gateway = Depends(getters.gateway),
):
    try:
        return admin.dashboard(context, transit)
    except Exception as e:
        exceptions.handle(e)
