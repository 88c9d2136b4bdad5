from __future__ import annotations

import os
import urllib.parse
from dataclasses import dataclass, field

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from auth.errors import ConfigurationError
from auth.google_oauth2 import DEFAULT_SCOPES
from auth.session import derive_key

from .constants import DASHBOARD_PATH
from .env import env_flag, env_int

LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}
ACCESS_TYPES = {"online", "offline"}

_HTTP_URL = TypeAdapter(AnyHttpUrl)


@dataclass(frozen=True)
class OAuthConfig:
    """Settings loaded once at startup and passed into the auth components."""

    client_id: str
    client_secret: str = field(repr=False)
    redirect_uri: str
    scopes: tuple[str, ...] = tuple(DEFAULT_SCOPES)
    access_type: str = "online"
    allowed_domains: frozenset[str] = frozenset()
    session_secret: str | None = field(default=None, repr=False)
    dashboard_url: str = DASHBOARD_PATH
    state_ttl_seconds: int = 600
    session_default_ttl_seconds: int = 3600
    token_timeout_seconds: float = 10.0
    cookie_secure: bool = True

    @property
    def session_key(self) -> bytes:
        return derive_key(self.session_secret or self.client_secret)


def is_allowed_redirect_uri(uri: str) -> bool:
    try:
        _HTTP_URL.validate_python(uri)
    except ValidationError:
        return False

    parsed = urllib.parse.urlparse(uri)
    if parsed.fragment:
        return False
    return parsed.scheme == "https" or is_local_http_uri(uri)


def is_allowed_dashboard_url(url: str) -> bool:
    if url.startswith("/") and not url.startswith("//"):
        return True
    try:
        _HTTP_URL.validate_python(url)
    except ValidationError:
        return False
    return True


def is_local_http_uri(uri: str) -> bool:
    parsed = urllib.parse.urlparse(uri)
    return parsed.scheme == "http" and parsed.hostname in LOCAL_HOSTS


def _allowed_domains() -> frozenset[str]:
    raw = os.getenv("GOOGLE_ALLOWED_DOMAINS", "")
    return frozenset(item.strip().lower() for item in raw.split(",") if item.strip())


def load_config() -> OAuthConfig:
    required = (
        "GOOGLE_CLIENT_ID",
        "GOOGLE_CLIENT_SECRET",
        "GOOGLE_REDIRECT_URI",
    )
    problems = [
        f"{key} is required" for key in required if not os.getenv(key, "").strip()
    ]

    redirect_uri = os.getenv("GOOGLE_REDIRECT_URI", "").strip()
    if redirect_uri and not is_allowed_redirect_uri(redirect_uri):
        problems.append(
            "GOOGLE_REDIRECT_URI must be an https URL (http is only allowed for localhost)"
        )

    scopes = tuple(os.getenv("GOOGLE_OAUTH_SCOPES", " ".join(DEFAULT_SCOPES)).split())
    if not scopes:
        problems.append("GOOGLE_OAUTH_SCOPES must list at least one scope")

    access_type = os.getenv("GOOGLE_ACCESS_TYPE", "online").strip().lower()
    if access_type not in ACCESS_TYPES:
        problems.append("GOOGLE_ACCESS_TYPE must be 'online' or 'offline'")

    dashboard_url = os.getenv("DASHBOARD_URL", DASHBOARD_PATH).strip()
    if not is_allowed_dashboard_url(dashboard_url):
        problems.append("DASHBOARD_URL must be a local path or an http(s) URL")

    ints: dict[str, int] = {}
    for key, default in (
        ("STATE_TTL_SECONDS", 600),
        ("SESSION_DEFAULT_TTL_SECONDS", 3600),
        ("TOKEN_TIMEOUT_SECONDS", 10),
    ):
        try:
            value = env_int(key, default)
        except ValueError as error:
            problems.append(str(error))
            continue
        if value <= 0:
            problems.append(f"{key} must be positive")
            continue
        ints[key] = value

    try:
        cookie_secure = env_flag("COOKIE_SECURE", True)
    except ValueError as error:
        problems.append(str(error))
        cookie_secure = True
    if not cookie_secure and not is_local_http_uri(redirect_uri):
        problems.append(
            "COOKIE_SECURE may only be disabled for an http://localhost GOOGLE_REDIRECT_URI"
        )

    if problems:
        raise ConfigurationError("Invalid OAuth configuration: " + "; ".join(problems) + ".")

    return OAuthConfig(
        client_id=os.getenv("GOOGLE_CLIENT_ID", "").strip(),
        client_secret=os.getenv("GOOGLE_CLIENT_SECRET", "").strip(),
        redirect_uri=redirect_uri,
        scopes=scopes,
        access_type=access_type,
        allowed_domains=_allowed_domains(),
        session_secret=os.getenv("SESSION_SECRET", "").strip() or None,
        dashboard_url=dashboard_url,
        state_ttl_seconds=ints["STATE_TTL_SECONDS"],
        session_default_ttl_seconds=ints["SESSION_DEFAULT_TTL_SECONDS"],
        token_timeout_seconds=float(ints["TOKEN_TIMEOUT_SECONDS"]),
        cookie_secure=cookie_secure,
    )
