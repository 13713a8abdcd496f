import pytest

from transit.src import exceptions
from transit.src.auth import SessionContext
from transit.src.enums import AuthEvent

ADMIN_ID = 1
RIDER_ID = 2


def signedInToken(authClient, email):
    return authClient.signInWithPassword(email, "password").access_token


def test_anonymous_context(authClient, gateway):
    context = SessionContext(authClient, gateway).initialize(None)
    assert context.user is None
    assert context.is_admin is False
    assert context.loading is False
    assert gateway.admins.lookups == []


def test_admin_flag_follows_initial_session(authClient, gateway):
    token = signedInToken(authClient, "admin@transport.bi")
    context = SessionContext(authClient, gateway).initialize(token)
    assert context.user.id == ADMIN_ID
    assert context.is_admin is True

    token = signedInToken(authClient, "rider@transport.bi")
    context = SessionContext(authClient, gateway).initialize(token)
    assert context.user.id == RIDER_ID
    assert context.is_admin is False


def test_unknown_token_is_anonymous(authClient, gateway):
    context = SessionContext(authClient, gateway).initialize("token-unknown")
    assert context.user is None
    assert context.is_admin is False


def test_failed_admin_lookup_denies_access(authClient, gateway):
    gateway.admins.fail = True
    token = signedInToken(authClient, "admin@transport.bi")
    context = SessionContext(authClient, gateway).initialize(token)
    assert context.user.id == ADMIN_ID
    assert context.is_admin is False
    assert context.loading is False


def test_admin_flag_is_recomputed_on_every_event(authClient, gateway):
    context = SessionContext(authClient, gateway).initialize(None)
    context.signIn("rider@transport.bi", "password")
    assert context.user.id == RIDER_ID
    assert context.is_admin is False

    context.signIn("admin@transport.bi", "password")
    assert context.user.id == ADMIN_ID
    assert context.is_admin is True
    assert gateway.admins.lookups == [RIDER_ID, ADMIN_ID]

    authClient.updatePassword(context.access_token, "password")
    assert gateway.admins.lookups == [RIDER_ID, ADMIN_ID, ADMIN_ID]

    context.signOut()
    assert context.user is None
    assert context.is_admin is False


def test_loading_while_admin_is_resolved(authClient, gateway):
    seen = []
    context = SessionContext(authClient, gateway)
    lookup = gateway.admins.exists

    def exists(user_id):
        seen.append(context.loading)
        return lookup(user_id)

    gateway.admins.exists = exists
    context.initialize(signedInToken(authClient, "admin@transport.bi"))
    context.signIn("rider@transport.bi", "password")
    assert seen == [True, True]
    assert context.loading is False


def test_sign_out_clears_state_when_backend_fails(authClient, gateway):
    token = signedInToken(authClient, "admin@transport.bi")
    context = SessionContext(authClient, gateway).initialize(token)
    authClient.failSignOut = True
    with pytest.raises(exceptions.GatewayError):
        context.signOut()
    assert context.user is None
    assert context.session is None
    assert context.is_admin is False


def test_wrong_password(authClient, gateway):
    context = SessionContext(authClient, gateway).initialize(None)
    with pytest.raises(exceptions.InvalidCredentials):
        context.signIn("admin@transport.bi", "wrong-password")
    assert context.user is None


def test_close_unsubscribes(authClient, gateway):
    context = SessionContext(authClient, gateway).initialize(None)
    assert len(authClient.listeners) == 1
    context.close()
    context.close()
    assert authClient.listeners == []

    authClient.signInWithPassword("admin@transport.bi", "password")
    assert context.user is None


def test_context_manager_releases_subscription(authClient, gateway):
    with SessionContext(authClient, gateway).initialize(None) as context:
        assert context.subscription is not None
    assert authClient.listeners == []


def test_listeners_receive_events_in_order(authClient):
    events = []
    first = authClient.onAuthStateChange(lambda event, s: events.append(("first", event)))
    authClient.onAuthStateChange(lambda event, s: events.append(("second", event)))
    authClient.signInWithPassword("rider@transport.bi", "password")
    first.unsubscribe()
    first.unsubscribe()
    authClient.signOut("token-1")
    assert events == [
        ("first", AuthEvent.SIGNED_IN),
        ("second", AuthEvent.SIGNED_IN),
        ("second", AuthEvent.SIGNED_OUT),
    ]
