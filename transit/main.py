from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from transit.src import schemas
from transit.src.constants import API_TITLE, API_VERSION
from transit.api.controller import route_rider, route_admin


app = FastAPI(title=API_TITLE, version=API_VERSION)

origins = ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(route_rider)
app.include_router(route_admin)


# Health check endpoint, the only one reachable without the API key
@app.get("/health", tags=["Health Check"], response_model=schemas.HealthStatus)
async def health_check():
    return {"status": "OK", "version": API_VERSION}
