"""
Application configuration and constants for the Transport Burundi API Server.

This module centralizes environment-based configuration, resource limits,
map defaults, fare defaults and other constants.

The backend endpoint, the anonymous API key and the map-provider token are
required: a missing value raises `MissingConfiguration` at import time so the
server refuses to start instead of silently disabling features.
Every other value can be overridden via environment variables.
"""

from os import environ

from transit.src.exceptions import MissingConfiguration


def requireEnv(name: str) -> str:
    """
    Read a mandatory environment variable.

    Args:
        name (str): Name of the environment variable.

    Returns:
        str: The non-empty value.

    Raises:
        MissingConfiguration: If the variable is unset or blank.
    """
    value = environ.get(name, "").strip()
    if not value:
        raise MissingConfiguration(name)
    return value


# ---------------------------------------------------------------------------
# Application metadata
# ---------------------------------------------------------------------------
API_TITLE = "Transport Burundi API Server"
API_VERSION = "1.0.0"


# ---------------------------------------------------------------------------
# Backend configuration (required)
# ---------------------------------------------------------------------------
BACKEND_URL = requireEnv("TRANSIT_BACKEND_URL")  # SQLAlchemy database URL
BACKEND_KEY = requireEnv("TRANSIT_BACKEND_KEY")  # Anonymous API key
MAP_TOKEN = requireEnv("TRANSIT_MAP_TOKEN")  # Map-provider access token


# ---------------------------------------------------------------------------
# OpenObserve configuration
# ---------------------------------------------------------------------------
OPENOBSERVE_PROTOCOL = environ.get("OPENOBSERVE_PROTOCOL", "http")
OPENOBSERVE_HOST = environ.get("OPENOBSERVE_HOST", "localhost")
OPENOBSERVE_PORT = environ.get("OPENOBSERVE_PORT", "5080")
OPENOBSERVE_USERNAME = environ.get("OPENOBSERVE_USERNAME", "admin@transport.bi")
OPENOBSERVE_PASSWORD = environ.get("OPENOBSERVE_PASSWORD", "password")
OPENOBSERVE_ORG = environ.get("OPENOBSERVE_ORG", "transport-burundi")
OPENOBSERVE_STREAM = environ.get("OPENOBSERVE_STREAM", "transit-api-server")
OPENOBSERVE_TIMEOUT = float(environ.get("OPENOBSERVE_TIMEOUT", "5"))  # seconds


# ---------------------------------------------------------------------------
# Redis configuration
# ---------------------------------------------------------------------------
REDIS_HOST = environ.get("REDIS_HOST", "localhost")
REDIS_PORT = environ.get("REDIS_PORT", "6379")
REDIS_PASSWORD = environ.get("REDIS_PASSWORD", "password")


# ---------------------------------------------------------------------------
# MinIO configuration
# ---------------------------------------------------------------------------
MINIO_HOST = environ.get("MINIO_HOST", "localhost")
MINIO_PORT = environ.get("MINIO_PORT", "9000")
MINIO_USERNAME = environ.get("MINIO_USERNAME", "minio")
MINIO_PASSWORD = environ.get("MINIO_PASSWORD", "password")

# MinIO buckets
AGENCY_LOGOS = "agency-logos"


# ---------------------------------------------------------------------------
# Account and token limits
# ---------------------------------------------------------------------------
MAX_ACCOUNT_TOKENS = 5  # Maximum tokens per account
MAX_TOKEN_VALIDITY = 7 * 24 * 60 * 60  # Token validity (in seconds, 7 days)
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 72


# ---------------------------------------------------------------------------
# Search constants
# ---------------------------------------------------------------------------
MAX_RECENT_SEARCHES = 5  # Capacity of the recent searches list
RECENT_SEARCHES_KEY = "recent_searches"  # Redis key prefix
SEARCH_SUGGESTIONS = ["Centre-ville", "Gasenyi", "Ngozi", "Gitega", "Bujumbura"]


# ---------------------------------------------------------------------------
# Home screen constants
# ---------------------------------------------------------------------------
POPULAR_BUS_LINES = 5  # Bus lines shown on the home screen
POPULAR_INTERCITY_ROUTES = 3  # Intercity routes shown on the home screen


# ---------------------------------------------------------------------------
# Fare constants
# ---------------------------------------------------------------------------
DEFAULT_FARE = 500  # Rendered when no price is stored
CURRENCY = "FBU"


# ---------------------------------------------------------------------------
# Map constants
# ---------------------------------------------------------------------------
DEFAULT_LINE_COLOR = "#2563EB"
DEFAULT_MAP_CENTER = (-3.3731, 29.36)  # Bujumbura (latitude, longitude)
DEFAULT_MAP_DELTA = 0.1
DEFAULT_ZOOM = 12
MAP_VIEWPORT_PADDING = 0.1  # Fraction of the span added on every side
MAP_MIN_DELTA = 0.01  # Smallest region span (in degrees)
MAP_EDGE_PADDING = {"top": 80, "right": 80, "bottom": 200, "left": 80}  # pixels
UNKNOWN_CITY_NAME = "Ville non définie"


# ---------------------------------------------------------------------------
# Geometry type constants
# ---------------------------------------------------------------------------
EPSG_4326 = 4326  # WGS 84


# ---------------------------------------------------------------------------
# Backend call constants
# ---------------------------------------------------------------------------
FETCH_TIMEOUT = float(environ.get("TRANSIT_FETCH_TIMEOUT", "15"))  # seconds


# ---------------------------------------------------------------------------
# Image constants
# ---------------------------------------------------------------------------
MAX_LOGO_SIZE = 512  # Logo resize bound (in pixels)
