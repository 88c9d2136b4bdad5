import pytest


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _clear_oauth_env(monkeypatch) -> None:
    for key in (
        "GOOGLE_CLIENT_ID",
        "GOOGLE_CLIENT_SECRET",
        "GOOGLE_REDIRECT_URI",
        "GOOGLE_OAUTH_SCOPES",
        "GOOGLE_ACCESS_TYPE",
        "GOOGLE_ALLOWED_DOMAINS",
        "SESSION_SECRET",
        "DASHBOARD_URL",
        "STATE_TTL_SECONDS",
        "SESSION_DEFAULT_TTL_SECONDS",
        "TOKEN_TIMEOUT_SECONDS",
        "COOKIE_SECURE",
        "APP_HOST",
        "APP_PORT",
        "APP_DEBUG",
    ):
        monkeypatch.delenv(key, raising=False)
