from datetime import timedelta

import jwt
import pytest

from conftest import TEST_SECRET
from services.auth_service import SIGNED_IN, SIGNED_OUT, AuthClient, AuthError


def test_sign_up_and_sign_in(auth):
    created = auth.sign_up("Homeroom@Example.com ", "password1")
    session = auth.sign_in_with_password("homeroom@example.com", "password1")

    assert created.user.email == "homeroom@example.com"
    assert session.user.id == created.user.id
    assert auth.get_session(session.access_token).user.id == created.user.id


def test_duplicate_sign_up_rejected(auth):
    auth.sign_up("homeroom@example.com", "password1")
    with pytest.raises(AuthError):
        auth.sign_up("homeroom@example.com", "password2")


def test_wrong_password_rejected(auth):
    auth.sign_up("homeroom@example.com", "password1")
    with pytest.raises(AuthError):
        auth.sign_in_with_password("homeroom@example.com", "wrong-password")


def test_sign_out_revokes_token_and_notifies(auth):
    events = []
    subscription = auth.on_auth_state_change(lambda event, session: events.append(event))
    session = auth.sign_up("homeroom@example.com", "password1")

    assert auth.sign_out(session.access_token) is True
    assert auth.get_session(session.access_token) is None
    assert auth.sign_out(session.access_token) is False
    assert events == [SIGNED_IN, SIGNED_OUT]

    subscription.unsubscribe()
    auth.sign_in_with_password("homeroom@example.com", "password1")
    assert events == [SIGNED_IN, SIGNED_OUT]


def test_token_signed_with_other_key_is_rejected(auth, session_factory):
    session = auth.sign_up("homeroom@example.com", "password1")
    other = AuthClient(session_factory, secret_key="another-secret-key-for-gradebook-suite-02")
    assert other.get_session(session.access_token) is None
    assert auth.get_session(jwt.encode({"sub": "x"}, TEST_SECRET, algorithm="HS256")) is None


def test_expired_revocations_are_pruned(auth):
    session = auth.sign_up("homeroom@example.com", "password1")
    auth.sign_out(session.access_token)
    assert auth.revoked_count == 1

    assert auth.prune_revoked(now=session.expires_at - timedelta(seconds=1)) == 0
    assert auth.prune_revoked(now=session.expires_at + timedelta(seconds=1)) == 1
    assert auth.revoked_count == 0
