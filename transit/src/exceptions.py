"""
Centralized exception handling for the Transport Burundi API.

This module provides:
- Base APIException class extending FastAPI's HTTPException.
- Custom domain-specific exceptions with appropriate status codes and headers.
- Utility functions for formatting DB errors, logging, and routing exceptions.

Usage:
    - Raise specific exceptions in route handlers, flows or the gateway.
    - Use `handle()` to normalize raw exceptions (DB, Redis, Pydantic) into API-friendly responses.
    - Use `backendError()` to translate a SQLAlchemy failure into the error a caller sees.
"""

import asyncio
from traceback import format_exception
from logging import getLogger
from fastapi import status, HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from psycopg2.errorcodes import UNIQUE_VIOLATION, FOREIGN_KEY_VIOLATION
from pydantic import ValidationError
from redis.exceptions import RedisError
from minio.error import S3Error


# ---------------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------------
def formatIntegrityError(e: IntegrityError) -> str:
    """
    Format a database integrity error into a user-friendly message.
    """
    errorMessage: str = e.orig.diag.message_detail
    errorMessage = errorMessage.translate({ord(i): None for i in '\\"\\.\\(\\)'})
    errorMessage = errorMessage.replace("Key ", "For ")
    errorMessage = errorMessage.replace("=", " value ")
    return errorMessage


def logException(e: Exception) -> None:
    """Log an exception with traceback using Uvicorn's error logger."""
    detail = str(format_exception(type(e), e, e.__traceback__))
    logger = getLogger("uvicorn.error")
    logger.error(detail)


def backendError(e: SQLAlchemyError) -> "APIException":
    """
    Translate a backend failure into the exception raised to the caller.

    Constraint violations keep their meaning, every other failure becomes a
    generic `GatewayError`. The underlying error is logged with its traceback.
    """
    if isinstance(e, IntegrityError) and hasattr(e.orig, "diag"):
        if e.orig.diag.sqlstate == UNIQUE_VIOLATION:
            return UniqueViolation(formatIntegrityError(e))
        if e.orig.diag.sqlstate == FOREIGN_KEY_VIOLATION:
            return ForeignKeyViolation(formatIntegrityError(e))
    logException(e)
    return GatewayError()


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------
class MissingConfiguration(RuntimeError):
    """Raised at startup when a required environment variable is absent."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Required environment variable {name} is not set")


# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------
class APIException(HTTPException):
    """
    Base class for all application-specific exceptions.

    Provides default handling of status_code, detail, and headers.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    detail = None
    headers = None

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("status_code", self.status_code)
        kwargs.setdefault("detail", self.detail)
        kwargs.setdefault("headers", self.headers)
        super().__init__(*args, **kwargs)


# ---------------------------------------------------------------------------
# Exception handling entrypoint
# ---------------------------------------------------------------------------
def handle(e: Exception):
    """
    Normalize and re-raise exceptions as API-friendly errors.

    Converts raw exceptions from DB, Pydantic, Redis, MinIO etc. into
    corresponding APIException subclasses.
    """
    if isinstance(e, APIException):
        raise e
    if isinstance(e, SQLAlchemyError):
        raise backendError(e)
    if isinstance(e, ValidationError):
        raise PydanticError(detail=e.errors())
    if isinstance(e, RedisError):
        raise RedisDBError(detail=str(e))
    if isinstance(e, (TimeoutError, asyncio.TimeoutError)):
        logException(e)
        raise GatewayError()
    if isinstance(e, S3Error):
        logException(e)
        raise StorageError()

    logException(e)
    raise e


# ---------------------------------------------------------------------------
# Exception Classes
# ---------------------------------------------------------------------------
class GatewayError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Unable to reach the transit backend, please try again later"
    headers = {"X-Error": "GatewayError"}


class PydanticError(APIException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    headers = {"X-Error": "PydanticError"}

    def __init__(self, detail: str):
        super().__init__(detail=detail)


class UniqueViolation(APIException):
    status_code = status.HTTP_409_CONFLICT
    headers = {"X-Error": "UniqueViolation"}

    def __init__(self, detail: str):
        super().__init__(detail=detail)


class ForeignKeyViolation(APIException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    headers = {"X-Error": "ForeignKeyViolation"}

    def __init__(self, detail: str):
        super().__init__(detail=detail)


class InvalidValue(APIException):
    status_code = status.HTTP_406_NOT_ACCEPTABLE
    headers = {"X-Error": "InvalidValue"}

    def __init__(self, field: str):
        detail = f"Invalid {field} is provided"
        super().__init__(detail=detail)


class MissingParameter(APIException):
    status_code = status.HTTP_406_NOT_ACCEPTABLE
    headers = {"X-Error": "MissingParameter"}

    def __init__(self, field: str):
        detail = f"The {field} is missing"
        super().__init__(detail=detail)


class InvalidGeometry(APIException):
    status_code = status.HTTP_406_NOT_ACCEPTABLE
    detail = "Invalid geometry, expected [longitude, latitude] pairs in SRID 4326"
    headers = {"X-Error": "InvalidGeometry"}


class InvalidApiKey(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid or missing API key"
    headers = {"X-Error": "InvalidApiKey"}


class InvalidCredentials(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid email or password"
    headers = {"X-Error": "InvalidCredentials"}


class InvalidToken(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid token, please sign in"
    headers = {"X-Error": "InvalidToken"}


class NoPermission(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Access reserved to administrators"
    headers = {"X-Error": "NoPermission"}


class InvalidIdentifier(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Invalid ID provided"
    headers = {"X-Error": "InvalidIdentifier"}


class InvalidImage(APIException):
    status_code = status.HTTP_406_NOT_ACCEPTABLE
    headers = {"X-Error": "InvalidImage"}
    detail = "Invalid image provided"


class RedisDBError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    headers = {"X-Error": "RedisAPIError"}

    def __init__(self, detail: str):
        super().__init__(detail=detail)


class StorageError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    headers = {"X-Error": "StorageError"}
    detail = "Unable to reach the file storage, please try again later"
