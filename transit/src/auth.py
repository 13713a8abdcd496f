"""
Authentication and the per-client session context.

`AuthClient` is the account service: it checks passwords, issues and revokes
access tokens, and notifies subscribers of every auth state change.
`SessionContext` is the view one client has of its own session. It is owned
explicitly by whoever creates it (a request scope in the API), never global.
"""

from datetime import datetime, timedelta, timezone
from logging import getLogger
from typing import Callable, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from transit.src import argon2, exceptions, schemas
from transit.src.db import Account, AccountToken, sessionMaker
from transit.src.enums import AuthEvent, PlatformType
from transit.src.gateway import Gateway
from transit.src.constants import (
    MAX_ACCOUNT_TOKENS,
    MAX_PASSWORD_LENGTH,
    MAX_TOKEN_VALIDITY,
    MIN_PASSWORD_LENGTH,
)

logger = getLogger(__name__)

AuthListener = Callable[[AuthEvent, Optional[schemas.Session]], None]


def toSession(token: AccountToken, account: Account) -> schemas.Session:
    return schemas.Session(
        access_token=token.access_token,
        expires_in=token.expires_in,
        expires_at=token.expires_at,
        user=schemas.User(
            id=account.id, email=account.email, created_on=account.created_on
        ),
    )


def checkPasswordLength(password: str) -> None:
    if not MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH:
        raise exceptions.InvalidValue("password")


class Subscription:
    """Handle returned by `AuthClient.onAuthStateChange`."""

    def __init__(self, client: "AuthClient", callback: AuthListener):
        self.client = client
        self.callback = callback

    def unsubscribe(self) -> None:
        if self.callback in self.client.listeners:
            self.client.listeners.remove(self.callback)


class AuthClient:
    """
    Account service backed by the `account` and `account_token` tables.

    Listeners are called synchronously, in registration order, after every
    state change made through this client.
    """

    def __init__(self, sessionFactory: sessionmaker = sessionMaker):
        self.sessionFactory = sessionFactory
        self.listeners: List[AuthListener] = []

    def onAuthStateChange(self, callback: AuthListener) -> Subscription:
        self.listeners.append(callback)
        return Subscription(self, callback)

    def emit(self, event: AuthEvent, session: Optional[schemas.Session]) -> None:
        for callback in list(self.listeners):
            callback(event, session)

    def _execute(self, operation):
        session = self.sessionFactory()
        try:
            result = operation(session)
            session.commit()
            return result
        except SQLAlchemyError as e:
            session.rollback()
            raise exceptions.backendError(e)
        finally:
            session.close()

    def getSession(self, access_token: str) -> Optional[schemas.Session]:
        """
        Resolve an access token into a session.

        Returns:
            Optional[schemas.Session]: None for an unknown or expired token.
        """

        def operation(session):
            row = (
                session.query(AccountToken, Account)
                .join(Account, Account.id == AccountToken.account_id)
                .filter(
                    AccountToken.access_token == access_token,
                    AccountToken.expires_at > datetime.now(timezone.utc),
                )
                .first()
            )
            return None if row is None else toSession(*row)

        return self._execute(operation)

    def signInWithPassword(
        self,
        email: str,
        password: str,
        platform_type: PlatformType = PlatformType.OTHER,
    ) -> schemas.Session:
        """
        Issue a new access token after checking the credentials.

        The number of tokens per account is bounded by MAX_ACCOUNT_TOKENS,
        the oldest ones are revoked first.

        Raises:
            exceptions.InvalidCredentials: If the email or password is wrong.
        """

        def operation(session):
            account = (
                session.query(Account)
                .filter(Account.email == email.strip().lower())
                .first()
            )
            if account is None or not argon2.checkPassword(password, account.password):
                raise exceptions.InvalidCredentials()

            tokens = (
                session.query(AccountToken)
                .filter(AccountToken.account_id == account.id)
                .order_by(AccountToken.created_on.desc())
                .all()
            )
            for token in tokens[MAX_ACCOUNT_TOKENS - 1 :]:
                session.delete(token)
            session.flush()

            expires_at = datetime.now(timezone.utc) + timedelta(
                seconds=MAX_TOKEN_VALIDITY
            )
            token = AccountToken(
                account_id=account.id,
                expires_in=MAX_TOKEN_VALIDITY,
                expires_at=expires_at,
                platform_type=platform_type,
            )
            session.add(token)
            session.flush()
            session.refresh(token)
            return toSession(token, account)

        signedIn = self._execute(operation)
        self.emit(AuthEvent.SIGNED_IN, signedIn)
        return signedIn

    def signUp(
        self,
        email: str,
        password: str,
        platform_type: PlatformType = PlatformType.OTHER,
    ) -> schemas.Session:
        """
        Create an account and sign it in.

        Raises:
            exceptions.InvalidValue: If the password length is out of bounds.
            exceptions.UniqueViolation: If the email is already registered.
        """
        checkPasswordLength(password)

        def operation(session):
            session.add(
                Account(
                    email=email.strip().lower(),
                    password=argon2.makePassword(password),
                )
            )

        self._execute(operation)
        return self.signInWithPassword(email, password, platform_type)

    def updatePassword(self, access_token: str, password: str) -> schemas.Session:
        """
        Change the password of the signed-in account.

        Raises:
            exceptions.InvalidToken: If the token is unknown or expired.
            exceptions.InvalidValue: If the password length is out of bounds.
        """
        checkPasswordLength(password)
        current = self.getSession(access_token)
        if current is None:
            raise exceptions.InvalidToken()

        def operation(session):
            account = session.query(Account).filter(Account.id == current.user.id).first()
            account.password = argon2.makePassword(password)

        self._execute(operation)
        self.emit(AuthEvent.USER_UPDATED, current)
        return current

    def signOut(self, access_token: str) -> None:
        """Revoke an access token. Revoking an unknown token is not an error."""

        def operation(session):
            session.query(AccountToken).filter(
                AccountToken.access_token == access_token
            ).delete()

        self._execute(operation)
        self.emit(AuthEvent.SIGNED_OUT, None)


class SessionContext:
    """
    Current user, session and admin flag of one client.

    Only the context itself writes these fields: through its auth event
    handler and its `signIn`, `signUp` and `signOut` methods. The admin flag
    is looked up again on every event and falls back to False when the
    lookup fails.

    Usage:
        with SessionContext(authClient, gateway).initialize(token) as context:
            if context.is_admin:
                ...
    """

    def __init__(self, authClient: AuthClient, gateway: Gateway):
        self.authClient = authClient
        self.gateway = gateway
        self.user: Optional[schemas.User] = None
        self.session: Optional[schemas.Session] = None
        self.is_admin = False
        self.loading = True
        self.subscription: Optional[Subscription] = None

    def initialize(self, access_token: Optional[str] = None) -> "SessionContext":
        try:
            current = self.authClient.getSession(access_token) if access_token else None
            self.onEvent(AuthEvent.INITIAL_SESSION, current)
        finally:
            self.loading = False
        if self.subscription is None:
            self.subscription = self.authClient.onAuthStateChange(self.onEvent)
        return self

    def onEvent(self, event: AuthEvent, session: Optional[schemas.Session]) -> None:
        self.loading = True
        try:
            self.session = session
            self.user = None if session is None else session.user
            self.is_admin = self.resolveAdmin()
        finally:
            self.loading = False

    def resolveAdmin(self) -> bool:
        if self.user is None:
            return False
        try:
            return self.gateway.admins.exists(self.user.id)
        except Exception as e:
            logger.warning("Admin lookup failed for account %s: %r", self.user.id, e)
            return False

    @property
    def access_token(self) -> Optional[str]:
        return None if self.session is None else self.session.access_token

    def signIn(self, email: str, password: str, **kwargs) -> schemas.Session:
        return self.authClient.signInWithPassword(email, password, **kwargs)

    def signUp(self, email: str, password: str, **kwargs) -> schemas.Session:
        return self.authClient.signUp(email, password, **kwargs)

    def signOut(self) -> None:
        """Sign out. The local state is cleared even if the backend call fails."""
        try:
            if self.session is not None:
                self.authClient.signOut(self.session.access_token)
        finally:
            self.session = None
            self.user = None
            self.is_admin = False

    def close(self) -> None:
        if self.subscription is not None:
            self.subscription.unsubscribe()
            self.subscription = None

    def __enter__(self) -> "SessionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
