from __future__ import annotations

from auth import google_oauth2
from auth.errors import ConfigurationError
from auth.state_tokens import StateTokenIssuer


class AuthorizationRedirectBuilder:
    """Builds the Google consent URL for a fresh login attempt.

    Each call records exactly one pending ``LoginAttempt``; nothing here
    touches the network.
    """

    def __init__(
        self,
        issuer: StateTokenIssuer,
        *,
        access_type: str = "online",
        prompt: str | None = None,
        include_granted_scopes: bool = False,
    ) -> None:
        self.issuer = issuer
        self.access_type = access_type
        self.prompt = prompt
        self.include_granted_scopes = include_granted_scopes

    def build_redirect(self, client_id: str, redirect_uri: str, scopes: list[str]) -> str:
        missing = [
            name
            for name, value in (("client_id", client_id), ("redirect_uri", redirect_uri))
            if not value or not value.strip()
        ]
        if missing:
            raise ConfigurationError(f"OAuth client is not configured: missing {', '.join(missing)}.")
        if not scopes:
            raise ConfigurationError("At least one OAuth scope is required.")

        attempt = self.issuer.issue()
        return google_oauth2.build_authorization_url(
            client_id=client_id,
            redirect_uri=redirect_uri,
            scopes=scopes,
            state=attempt.state_token,
            access_type=self.access_type,
            prompt=self.prompt,
            include_granted_scopes=self.include_granted_scopes,
        )
