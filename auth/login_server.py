from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable

import httpx
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.routing import Route

from auth import google_oauth2
from auth.callback import CallbackExchanger, ExchangeCodeFn, FetchProfileFn
from auth.errors import AuthFlowError, SessionError
from auth.redirect_builder import AuthorizationRedirectBuilder
from auth.session import (
    SESSION_COOKIE_NAME,
    clear_session_cookie_kwargs,
    decode_session,
    encode_session,
    session_cookie_kwargs,
)
from auth.state_tokens import StateTokenIssuer
from codeflow.config import OAuthConfig
from codeflow.constants import (
    CALLBACK_PATH,
    DASHBOARD_PATH,
    GENERIC_ERROR_CODE,
    GENERIC_ERROR_DESCRIPTION,
    INITIATE_PATH,
    LOGOUT_PATH,
)

LOGGER = logging.getLogger("codeflow.auth")

NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


class LoginServer:
    def __init__(
        self,
        config: OAuthConfig,
        *,
        issuer: StateTokenIssuer | None = None,
        http_client: httpx.AsyncClient | None = None,
        exchange_code_fn: ExchangeCodeFn | None = None,
        fetch_profile_fn: FetchProfileFn | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        if issuer is None:
            issuer = StateTokenIssuer(ttl_seconds=config.state_ttl_seconds, clock=clock)
        self.issuer = issuer
        self._session_key = config.session_key
        self._clock = clock
        self._fetch_profile_fn = fetch_profile_fn or functools.partial(
            google_oauth2.fetch_profile, client=http_client
        )

        self.redirect_builder = AuthorizationRedirectBuilder(
            self.issuer,
            access_type=config.access_type,
        )
        self.exchanger = CallbackExchanger(
            issuer=self.issuer,
            client_id=config.client_id,
            client_secret=config.client_secret,
            redirect_uri=config.redirect_uri,
            session_key=self._session_key,
            default_session_ttl_seconds=config.session_default_ttl_seconds,
            allowed_domains=set(config.allowed_domains),
            token_timeout_seconds=config.token_timeout_seconds,
            exchange_code_fn=exchange_code_fn
            or functools.partial(google_oauth2.exchange_code, client=http_client),
            fetch_profile_fn=self._fetch_profile_fn,
            clock=clock,
        )

    # -- routes ----------------------------------------------------------------

    def routes(self) -> list[Route]:
        return [
            Route(INITIATE_PATH, self._handle_initiate, methods=["GET"]),
            Route(CALLBACK_PATH, self._handle_callback, methods=["GET"]),
            Route(DASHBOARD_PATH, self._handle_dashboard, methods=["GET"]),
            Route(LOGOUT_PATH, self._handle_logout, methods=["GET", "POST"]),
        ]

    # -- handlers --------------------------------------------------------------

    async def _handle_initiate(self, request: Request) -> Response:
        del request
        url = self.redirect_builder.build_redirect(
            client_id=self.config.client_id,
            redirect_uri=self.config.redirect_uri,
            scopes=list(self.config.scopes),
        )
        return RedirectResponse(url=url, status_code=302, headers=NO_STORE_HEADERS)

    async def _handle_callback(self, request: Request) -> Response:
        try:
            artifact = await self.exchanger.handle_callback(
                request.query_params,
                request.cookies,
            )
        except AuthFlowError as error:
            return self._error(error)

        response = RedirectResponse(
            url=self.config.dashboard_url,
            status_code=302,
            headers=NO_STORE_HEADERS,
        )
        response.set_cookie(
            **session_cookie_kwargs(
                encode_session(artifact, self._session_key),
                max_age=artifact.max_age,
                secure=self.config.cookie_secure,
            )
        )
        return response

    async def _handle_dashboard(self, request: Request) -> Response:
        try:
            artifact = decode_session(
                request.cookies.get(SESSION_COOKIE_NAME),
                self._session_key,
                now=self._clock(),
            )
            profile = await self._fetch_profile_fn(
                artifact.access_token,
                timeout=self.config.token_timeout_seconds,
            )
        except SessionError as error:
            return self._error(error, description="Sign in required.")
        except AuthFlowError as error:
            return self._error(error)

        return JSONResponse(
            {
                "sub": profile.sub,
                "email": profile.email,
                "name": profile.name,
                "picture": profile.picture,
                "session_expires_at": int(artifact.expires_at),
            },
            headers=NO_STORE_HEADERS,
        )

    async def _handle_logout(self, request: Request) -> Response:
        del request
        response = RedirectResponse(url="/", status_code=302, headers=NO_STORE_HEADERS)
        response.delete_cookie(**clear_session_cookie_kwargs(secure=self.config.cookie_secure))
        return response

    # -- helpers ---------------------------------------------------------------

    def _error(
        self,
        error: AuthFlowError,
        *,
        description: str = GENERIC_ERROR_DESCRIPTION,
    ) -> Response:
        LOGGER.warning(
            "Auth request failed kind=%s stage=%s status=%s detail=%s",
            error.kind,
            error.stage,
            error.status_code,
            error.log_detail(),
        )
        return JSONResponse(
            {"error": GENERIC_ERROR_CODE, "error_description": description},
            status_code=error.status_code,
            headers=NO_STORE_HEADERS,
        )
