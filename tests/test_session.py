import base64
import json

import pytest

from auth.errors import ExpiredSession, InvalidSession, MissingSession
from auth.models import SessionArtifact
from auth.session import (
    SESSION_COOKIE_NAME,
    clear_session_cookie_kwargs,
    decode_session,
    derive_key,
    encode_session,
    session_cookie_kwargs,
)

KEY = derive_key("session-secret")
ARTIFACT = SessionArtifact(access_token="tok1", issued_at=1000.0, expires_at=4600.0)


def test_decode_returns_artifact() -> None:
    value = encode_session(ARTIFACT, KEY)

    assert decode_session(value, KEY, now=2000.0) == ARTIFACT


def test_cookie_value_is_cookie_safe() -> None:
    value = encode_session(ARTIFACT, KEY)

    assert set(value) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.")


def test_missing_cookie() -> None:
    with pytest.raises(MissingSession):
        decode_session(None, KEY, now=2000.0)
    with pytest.raises(MissingSession):
        decode_session("", KEY, now=2000.0)


def test_expired_cookie() -> None:
    value = encode_session(ARTIFACT, KEY)

    with pytest.raises(ExpiredSession):
        decode_session(value, KEY, now=4600.0)


def test_wrong_key_rejected() -> None:
    value = encode_session(ARTIFACT, KEY)

    with pytest.raises(InvalidSession, match="signature"):
        decode_session(value, derive_key("other-secret"), now=2000.0)


def test_tampered_payload_rejected() -> None:
    value = encode_session(ARTIFACT, KEY)
    _, sig = value.split(".")
    forged = json.dumps({"at": "tok1", "iat": 1000.0, "exp": 10**12}).encode()
    forged_b64 = base64.urlsafe_b64encode(forged).rstrip(b"=").decode()

    with pytest.raises(InvalidSession):
        decode_session(f"{forged_b64}.{sig}", KEY, now=2000.0)


@pytest.mark.parametrize("value", ["no-dot", ".sig", "data.", "!!!.???"])
def test_garbage_rejected(value: str) -> None:
    with pytest.raises(InvalidSession):
        decode_session(value, KEY, now=2000.0)


def test_derive_key_is_stable() -> None:
    assert derive_key("a") == derive_key("a")
    assert derive_key("a") != derive_key("b")


def test_cookie_attributes() -> None:
    kwargs = session_cookie_kwargs("value", max_age=3600)

    assert kwargs["key"] == SESSION_COOKIE_NAME
    assert kwargs["httponly"] is True
    assert kwargs["secure"] is True
    assert kwargs["samesite"] == "lax"
    assert kwargs["max_age"] == 3600


def test_clear_cookie_attributes_match() -> None:
    kwargs = clear_session_cookie_kwargs(secure=False)

    assert kwargs["key"] == SESSION_COOKIE_NAME
    assert kwargs["path"] == "/"
    assert kwargs["secure"] is False
