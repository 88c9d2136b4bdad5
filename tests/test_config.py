import pytest

from auth.errors import ConfigurationError
from auth.session import derive_key
from codeflow.config import is_allowed_dashboard_url, is_allowed_redirect_uri, load_config


def _set_required(monkeypatch) -> None:
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "google-client")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "google-secret")
    monkeypatch.setenv("GOOGLE_REDIRECT_URI", "https://app.example.com/auth/google/callback")


def test_load_config_defaults(monkeypatch) -> None:
    _set_required(monkeypatch)

    config = load_config()

    assert config.client_id == "google-client"
    assert config.redirect_uri == "https://app.example.com/auth/google/callback"
    assert config.scopes == ("openid", "email", "profile")
    assert config.access_type == "online"
    assert config.allowed_domains == frozenset()
    assert config.dashboard_url == "/dashboard"
    assert config.state_ttl_seconds == 600
    assert config.session_default_ttl_seconds == 3600
    assert config.token_timeout_seconds == 10.0
    assert config.cookie_secure is True


def test_load_config_overrides(monkeypatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("GOOGLE_OAUTH_SCOPES", "openid email")
    monkeypatch.setenv("GOOGLE_ACCESS_TYPE", "Offline")
    monkeypatch.setenv("GOOGLE_ALLOWED_DOMAINS", "Example.com, corp.example")
    monkeypatch.setenv("STATE_TTL_SECONDS", "120")
    monkeypatch.setenv("DASHBOARD_URL", "/home")

    config = load_config()

    assert config.scopes == ("openid", "email")
    assert config.access_type == "offline"
    assert config.allowed_domains == frozenset({"example.com", "corp.example"})
    assert config.state_ttl_seconds == 120
    assert config.dashboard_url == "/home"


def test_cookie_secure_cannot_be_disabled_for_https(monkeypatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("COOKIE_SECURE", "0")

    with pytest.raises(ConfigurationError, match="COOKIE_SECURE"):
        load_config()


def test_cookie_secure_can_be_disabled_for_localhost(monkeypatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("GOOGLE_REDIRECT_URI", "http://localhost:8000/auth/google/callback")
    monkeypatch.setenv("COOKIE_SECURE", "false")

    config = load_config()

    assert config.cookie_secure is False


def test_cookie_secure_rejects_unknown_value(monkeypatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("COOKIE_SECURE", "maybe")

    with pytest.raises(ConfigurationError, match="COOKIE_SECURE"):
        load_config()


def test_missing_required_vars_listed() -> None:
    with pytest.raises(ConfigurationError) as error:
        load_config()

    message = str(error.value)
    assert "GOOGLE_CLIENT_ID" in message
    assert "GOOGLE_CLIENT_SECRET" in message
    assert "GOOGLE_REDIRECT_URI" in message


def test_invalid_values_rejected(monkeypatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("GOOGLE_REDIRECT_URI", "http://app.example.com/callback")
    monkeypatch.setenv("GOOGLE_ACCESS_TYPE", "forever")
    monkeypatch.setenv("TOKEN_TIMEOUT_SECONDS", "ten")
    monkeypatch.setenv("SESSION_DEFAULT_TTL_SECONDS", "0")

    with pytest.raises(ConfigurationError) as error:
        load_config()

    message = str(error.value)
    assert "GOOGLE_REDIRECT_URI" in message
    assert "GOOGLE_ACCESS_TYPE" in message
    assert "TOKEN_TIMEOUT_SECONDS" in message
    assert "SESSION_DEFAULT_TTL_SECONDS" in message


def test_secret_not_in_repr(monkeypatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("SESSION_SECRET", "cookie-secret")

    config = load_config()

    assert "google-secret" not in repr(config)
    assert "cookie-secret" not in repr(config)


def test_session_key_prefers_session_secret(monkeypatch) -> None:
    _set_required(monkeypatch)

    assert load_config().session_key == derive_key("google-secret")

    monkeypatch.setenv("SESSION_SECRET", "cookie-secret")
    assert load_config().session_key == derive_key("cookie-secret")


@pytest.mark.parametrize(
    ("uri", "allowed"),
    [
        ("https://app.example.com/auth/google/callback", True),
        ("http://localhost:3000/auth/google/callback", True),
        ("http://127.0.0.1:8000/auth/google/callback", True),
        ("http://app.example.com/auth/google/callback", False),
        ("https://app.example.com/callback#frag", False),
        ("not a url", False),
    ],
)
def test_redirect_uri_rules(uri: str, allowed: bool) -> None:
    assert is_allowed_redirect_uri(uri) is allowed


@pytest.mark.parametrize(
    ("url", "allowed"),
    [
        ("/dashboard", True),
        ("https://app.example.com/home", True),
        ("//evil.example/", False),
        ("javascript:alert(1)", False),
    ],
)
def test_dashboard_url_rules(url: str, allowed: bool) -> None:
    assert is_allowed_dashboard_url(url) is allowed
