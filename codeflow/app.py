from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from auth.login_server import LoginServer

from .config import OAuthConfig
from .constants import APP_VERSION, HEALTH_PATH, LOGGER, PROVIDER
from .http import build_provider_client


async def health_route(request: Request) -> Response:
    del request
    return JSONResponse(
        {
            "status": "ok",
            "version": APP_VERSION,
            "provider": PROVIDER,
        }
    )


def create_app(
    config: OAuthConfig,
    *,
    debug_enabled: bool = False,
    **login_server_kwargs,
) -> Starlette:
    """Assemble the Starlette app around an already-validated config.

    ``login_server_kwargs`` are forwarded to ``LoginServer`` so tests can
    inject the provider calls, the state store or the clock.
    """
    http_client = build_provider_client(
        timeout=config.token_timeout_seconds,
        debug_enabled=debug_enabled,
    )
    login_server = LoginServer(config, http_client=http_client, **login_server_kwargs)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        del app
        LOGGER.info(
            "Google login ready redirect_uri=%s scopes=%s",
            config.redirect_uri,
            " ".join(config.scopes),
        )
        try:
            yield
        finally:
            await http_client.aclose()

    app = Starlette(
        debug=False,
        routes=[
            *login_server.routes(),
            Route(HEALTH_PATH, health_route, methods=["GET"]),
        ],
        lifespan=lifespan,
    )
    app.state.login_server = login_server
    return app
