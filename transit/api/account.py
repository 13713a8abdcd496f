from typing import Optional
from fastapi import APIRouter, Depends, Response, status, Form
from pydantic import BaseModel, Field, EmailStr

from transit.src import exceptions, getters, schemas, validators
from transit.src.auth import SessionContext
from transit.src.constants import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH
from transit.src.enums import PlatformType
from transit.src.loggers import logEvent
from transit.src.functions import enumStr, fuseExceptionResponses
from transit.src.urls import URL_ACCOUNT, URL_ACCOUNT_SESSION, URL_ACCOUNT_TOKEN

route_rider = APIRouter()


## Output Schema
class AccountSessionSchema(BaseModel):
    user: Optional[schemas.User]
    is_admin: bool


## Input Forms
class SignUpForm(BaseModel):
    email: EmailStr = Field(Form(max_length=256))
    password: str = Field(
        Form(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    )
    platform_type: PlatformType = Field(
        Form(description=enumStr(PlatformType), default=PlatformType.OTHER)
    )


class SignInForm(BaseModel):
    email: str = Field(Form(max_length=256))
    password: str = Field(Form(max_length=MAX_PASSWORD_LENGTH))
    platform_type: PlatformType = Field(
        Form(description=enumStr(PlatformType), default=PlatformType.OTHER)
    )


class UpdateForm(BaseModel):
    password: str = Field(
        Form(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    )


def sessionLogData(session: schemas.Session) -> dict:
    return {
        "email": session.user.email,
        "expires_at": session.expires_at.isoformat(),
    }


## API endpoints [Rider]
@route_rider.post(
    URL_ACCOUNT,
    tags=["Account"],
    response_model=schemas.Session,
    status_code=status.HTTP_201_CREATED,
    responses=fuseExceptionResponses(
        [
            exceptions.UniqueViolation("For email value rider@example.com already exists"),
            exceptions.InvalidValue("password"),
        ]
    ),
    description="""
    Creates an account and signs it in.
    The email is stored lower-cased and must not be registered already.
    Returns a new access token valid for MAX_TOKEN_VALIDITY seconds.
    """,
)
async def sign_up(
    fParam: SignUpForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    request_info=Depends(getters.requestInfo),
):
    try:
        session = context.signUp(
            fParam.email, fParam.password, platform_type=fParam.platform_type
        )
        logEvent(context, request_info, sessionLogData(session))
        return session
    except Exception as e:
        exceptions.handle(e)


@route_rider.patch(
    URL_ACCOUNT,
    tags=["Account"],
    response_model=AccountSessionSchema,
    responses=fuseExceptionResponses(
        [exceptions.InvalidToken(), exceptions.InvalidValue("password")]
    ),
    description="""
    Changes the password of the signed-in account.
    Existing tokens stay valid.
    """,
)
async def update_account(
    fParam: UpdateForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    request_info=Depends(getters.requestInfo),
):
    try:
        validators.signedIn(context)
        context.authClient.updatePassword(context.access_token, fParam.password)
        logEvent(context, request_info, {"email": context.user.email})
        return {"user": context.user, "is_admin": context.is_admin}
    except Exception as e:
        exceptions.handle(e)


@route_rider.post(
    URL_ACCOUNT_TOKEN,
    tags=["Token"],
    response_model=schemas.Session,
    status_code=status.HTTP_201_CREATED,
    responses=fuseExceptionResponses([exceptions.InvalidCredentials()]),
    description="""
    Issues a new access token after validating the email and password.
    Limits active tokens using MAX_ACCOUNT_TOKENS (oldest tokens are revoked).
    Logs the sign-in event for audit tracking, without the token.
    """,
)
async def sign_in(
    fParam: SignInForm = Depends(),
    context: SessionContext = Depends(getters.sessionContext),
    request_info=Depends(getters.requestInfo),
):
    try:
        session = context.signIn(
            fParam.email, fParam.password, platform_type=fParam.platform_type
        )
        logEvent(context, request_info, sessionLogData(session))
        return session
    except Exception as e:
        exceptions.handle(e)


@route_rider.delete(
    URL_ACCOUNT_TOKEN,
    tags=["Token"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses=fuseExceptionResponses([exceptions.InvalidToken()]),
    description="""
    Revokes the access token used in the request.
    The administrator flag of the session is cleared even if the revocation fails.
    """,
)
async def sign_out(
    context: SessionContext = Depends(getters.sessionContext),
    request_info=Depends(getters.requestInfo),
):
    try:
        validators.signedIn(context)
        account = {"account_id": context.user.id, "email": context.user.email}
        context.signOut()
        logEvent(context, request_info, account)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        exceptions.handle(e)


@route_rider.get(
    URL_ACCOUNT_SESSION,
    tags=["Account"],
    response_model=AccountSessionSchema,
    description="""
    Returns the signed-in user and whether it is an administrator.
    Without a valid bearer token the user is null and the flag is false.
    """,
)
async def fetch_session(context: SessionContext = Depends(getters.sessionContext)):
    return {"user": context.user, "is_admin": context.is_admin}
