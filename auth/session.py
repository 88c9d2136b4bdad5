from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json

from auth.errors import ExpiredSession, InvalidSession, MissingSession
from auth.models import SessionArtifact

SESSION_COOKIE_NAME = "session"


def derive_key(secret: str) -> bytes:
    """Derive the cookie signing key from the configured session secret."""
    return hashlib.sha256(f"codeflow-session:{secret}".encode()).digest()


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _b64decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def encode_session(artifact: SessionArtifact, key: bytes) -> str:
    payload = {
        "at": artifact.access_token,
        "iat": artifact.issued_at,
        "exp": artifact.expires_at,
    }
    data = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode()
    sig = hmac.new(key, data, hashlib.sha256).digest()
    return f"{_b64encode(data)}.{_b64encode(sig)}"


def decode_session(value: str | None, key: bytes, *, now: float) -> SessionArtifact:
    """Verify a session cookie and return the artifact it carries.

    The cookie is untrusted input: signature, shape and expiry are all
    checked before the access token is handed back.
    """
    if not value:
        raise MissingSession()

    data_b64, sep, sig_b64 = value.partition(".")
    if not sep or not data_b64 or not sig_b64:
        raise InvalidSession("Session cookie has an invalid format.")

    try:
        data = _b64decode(data_b64)
        actual_sig = _b64decode(sig_b64)
    except (binascii.Error, ValueError) as error:
        raise InvalidSession("Session cookie is not valid base64.") from error

    expected_sig = hmac.new(key, data, hashlib.sha256).digest()
    if not hmac.compare_digest(expected_sig, actual_sig):
        raise InvalidSession("Session signature verification failed.")

    try:
        payload = json.loads(data)
    except ValueError as error:
        raise InvalidSession("Session payload is not valid JSON.") from error

    if not isinstance(payload, dict):
        raise InvalidSession("Session payload must be an object.")
    access_token = payload.get("at")
    issued_at = payload.get("iat")
    expires_at = payload.get("exp")
    if not isinstance(access_token, str) or not access_token:
        raise InvalidSession("Session payload missing access token.")
    if not isinstance(issued_at, (int, float)) or not isinstance(expires_at, (int, float)):
        raise InvalidSession("Session payload missing timestamps.")

    artifact = SessionArtifact(
        access_token=access_token,
        issued_at=float(issued_at),
        expires_at=float(expires_at),
    )
    if artifact.is_expired(now):
        raise ExpiredSession()
    return artifact


def session_cookie_kwargs(value: str, *, max_age: int, secure: bool = True) -> dict:
    return {
        "key": SESSION_COOKIE_NAME,
        "value": value,
        "max_age": max_age,
        "httponly": True,
        "secure": secure,
        "samesite": "lax",
        "path": "/",
    }


def clear_session_cookie_kwargs(*, secure: bool = True) -> dict:
    return {
        "key": SESSION_COOKIE_NAME,
        "path": "/",
        "httponly": True,
        "secure": secure,
        "samesite": "lax",
    }
