from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum

from auth import google_oauth2
from auth.errors import (
    AccessDenied,
    AuthFlowError,
    AuthorizationDenied,
    MissingCode,
    MissingState,
    SessionError,
)
from auth.google_oauth2 import TokenSet
from auth.models import AuthorizationGrant, SessionArtifact, UserProfile
from auth.session import SESSION_COOKIE_NAME, decode_session
from auth.state_tokens import StateTokenIssuer

LOGGER = logging.getLogger("codeflow.auth")

DEFAULT_SESSION_TTL_SECONDS = 3600

ExchangeCodeFn = Callable[..., Awaitable[TokenSet]]
FetchProfileFn = Callable[..., Awaitable[UserProfile]]


class CallbackStage(str, Enum):
    AWAITING_CALLBACK = "awaiting_callback"
    VALIDATING_STATE = "validating_state"
    EXCHANGING_CODE = "exchanging_code"
    FETCHING_PROFILE = "fetching_profile"
    SESSION_ISSUED = "session_issued"
    FAILED = "failed"


class CallbackExchanger:
    """Turns a provider redirect into a session artifact.

    Stages run in order and any error is terminal for the request; the
    error records the stage it was raised from. Authorization codes are
    single-use, so nothing is retried.
    """

    def __init__(
        self,
        *,
        issuer: StateTokenIssuer,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        session_key: bytes,
        default_session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        allowed_domains: set[str] | None = None,
        token_timeout_seconds: float = google_oauth2.DEFAULT_TIMEOUT_SECONDS,
        exchange_code_fn: ExchangeCodeFn = google_oauth2.exchange_code,
        fetch_profile_fn: FetchProfileFn = google_oauth2.fetch_profile,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.issuer = issuer
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.default_session_ttl_seconds = default_session_ttl_seconds
        self.allowed_domains = {domain.lower() for domain in allowed_domains or ()}
        self.token_timeout_seconds = token_timeout_seconds
        self._session_key = session_key
        self._exchange_code_fn = exchange_code_fn
        self._fetch_profile_fn = fetch_profile_fn
        self._clock = clock

    async def handle_callback(
        self,
        query_params: Mapping[str, str],
        cookies: Mapping[str, str] | None = None,
    ) -> SessionArtifact:
        stage = CallbackStage.AWAITING_CALLBACK
        try:
            grant = self._extract_grant(query_params)

            stage = CallbackStage.VALIDATING_STATE
            self.issuer.validate(grant.received_state)

            stage = CallbackStage.EXCHANGING_CODE
            tokens = await self._exchange_code_fn(
                client_id=self.client_id,
                client_secret=self.client_secret,
                code=grant.code,
                redirect_uri=self.redirect_uri,
                timeout=self.token_timeout_seconds,
            )

            if self.allowed_domains:
                stage = CallbackStage.FETCHING_PROFILE
                await self._check_domain(tokens.access_token)
        except AuthFlowError as error:
            error.stage = stage.value
            LOGGER.debug(
                "Callback %s -> %s kind=%s",
                stage.value,
                CallbackStage.FAILED.value,
                error.kind,
            )
            raise

        artifact = self._issue_session(tokens)
        self._note_replaced_session(cookies)
        LOGGER.info(
            "Session issued stage=%s expires_in=%s scope=%s",
            CallbackStage.SESSION_ISSUED.value,
            artifact.max_age,
            tokens.scope,
        )
        return artifact

    def _extract_grant(self, query_params: Mapping[str, str]) -> AuthorizationGrant:
        provider_error = query_params.get("error")
        if provider_error:
            raise AuthorizationDenied(f"Provider returned error={provider_error}.")

        code = query_params.get("code")
        state = query_params.get("state")
        if not code:
            raise MissingCode()
        if not state:
            raise MissingState()
        return AuthorizationGrant(code=code, received_state=state)

    async def _check_domain(self, access_token: str) -> None:
        profile = await self._fetch_profile_fn(
            access_token,
            timeout=self.token_timeout_seconds,
        )
        if profile.email_domain not in self.allowed_domains:
            raise AccessDenied(f"E-mail domain {profile.email_domain!r} is not allowed.")

    def _issue_session(self, tokens: TokenSet) -> SessionArtifact:
        issued_at = self._clock()
        expires_in = tokens.expires_in or self.default_session_ttl_seconds
        return SessionArtifact(
            access_token=tokens.access_token,
            issued_at=issued_at,
            expires_at=issued_at + expires_in,
        )

    def _note_replaced_session(self, cookies: Mapping[str, str] | None) -> None:
        if not cookies or not cookies.get(SESSION_COOKIE_NAME):
            return
        try:
            decode_session(cookies[SESSION_COOKIE_NAME], self._session_key, now=self._clock())
        except SessionError as error:
            LOGGER.info("Discarding previous session cookie (%s)", error.kind)
            return
        LOGGER.info("Replacing an active session with a new login")
