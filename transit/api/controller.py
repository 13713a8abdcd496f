from fastapi import APIRouter, Depends
from transit.api import (
    account,
    home,
    maps,
    agencies,
    search,
    admin,
    admin_agency,
    admin_bus_line,
    admin_intercity_route,
    admin_city,
)
from transit.src import validators


# ------------------------------------------------------
# Every screen requires the anonymous API key
# ------------------------------------------------------
route_rider = APIRouter(dependencies=[Depends(validators.apiKey)])
route_admin = APIRouter(dependencies=[Depends(validators.apiKey)])


# ------------------------------------------------------
# Rider routers
# ------------------------------------------------------
route_rider.include_router(account.route_rider)
route_rider.include_router(home.route_rider)
route_rider.include_router(maps.route_rider)
route_rider.include_router(agencies.route_rider)
route_rider.include_router(search.route_rider)


# ------------------------------------------------------
# Admin routers
# ------------------------------------------------------
route_admin.include_router(admin.route_admin)
route_admin.include_router(admin_agency.route_admin)
route_admin.include_router(admin_bus_line.route_admin)
route_admin.include_router(admin_intercity_route.route_admin)
route_admin.include_router(admin_city.route_admin)
