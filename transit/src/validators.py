"""
Guard checks for the transit API.

All functions raise exceptions from `transit.src.exceptions` when a check
fails, ensuring consistent error handling.
"""

from secrets import compare_digest
from typing import Optional
from fastapi import Header, UploadFile

from transit.src import exceptions
from transit.src.auth import SessionContext
from transit.src.constants import BACKEND_KEY
from transit.src.functions import mediaType


# ---------------------------------------------------------------------------
# Client validation
# ---------------------------------------------------------------------------
def apiKey(apikey: Optional[str] = Header(default=None)) -> str:
    """
    Check the anonymous API key every client sends in the `apikey` header.

    Raises:
        exceptions.InvalidApiKey: If the header is missing or wrong.
    """
    if apikey is None or not compare_digest(apikey, BACKEND_KEY):
        raise exceptions.InvalidApiKey()
    return apikey


def signedIn(context: SessionContext) -> SessionContext:
    """
    Raises:
        exceptions.InvalidToken: If the caller has no valid session.
    """
    if context.user is None:
        raise exceptions.InvalidToken()
    return context


# ---------------------------------------------------------------------------
# Upload validation
# ---------------------------------------------------------------------------
def imageFile(file: UploadFile) -> bool:
    """
    Raises:
        exceptions.InvalidImage: If the upload is not declared as an image.
    """
    if mediaType(file.content_type) != "image":
        raise exceptions.InvalidImage()
    return True
