from typing import Optional, Set
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials

from transit.api.bearer import bearer_account
from transit.src import schemas
from transit.src import redis
from transit.src.auth import AuthClient, SessionContext
from transit.src.gateway import Gateway
from transit.src.search import RecentSearches

# Shared by every request, each gateway call opens its own session
transitGateway = Gateway()


def requestInfo(request: Request) -> schemas.RequestInfo:
    """
    Extract metadata about the incoming request.

    Returns:
        schemas.RequestInfo: HTTP method and URL path of the request.
    """
    return schemas.RequestInfo(method=request.method, path=request.url.path)


def gateway() -> Gateway:
    return transitGateway


def authClient() -> AuthClient:
    """A fresh auth client per request, so its listeners belong to one caller."""
    return AuthClient()


def sessionContext(
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_account),
    auth: AuthClient = Depends(authClient),
    transit: Gateway = Depends(gateway),
):
    """
    Session context of the caller, released when the request ends.

    A missing, unknown or expired bearer token gives a signed-out context.
    """
    context = SessionContext(auth, transit)
    try:
        context.initialize(None if bearer is None else bearer.credentials)
        yield context
    finally:
        context.close()


async def formFields(request: Request) -> Set[str]:
    """Names of the form fields present in the request, empty ones included."""
    form = await request.form()
    return set(form.keys())


def recentSearches(context: SessionContext = Depends(sessionContext)):
    """Per-account list for signed-in callers, a throwaway list otherwise."""
    if context.user is None:
        return RecentSearches()
    return redis.recentSearches(context.user.id)
