from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised at startup when required OAuth settings are missing or invalid."""


class AuthFlowError(RuntimeError):
    status_code = 400
    default_message = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.stage: str | None = None

    @property
    def kind(self) -> str:
        return type(self).__name__

    def log_detail(self) -> str:
        return str(self)


class AuthorizationDenied(AuthFlowError):
    default_message = "Provider returned an authorization error."


class MissingCode(AuthFlowError):
    default_message = "Callback is missing the authorization code."


class MissingState(AuthFlowError):
    default_message = "Callback is missing the state parameter."


class StateValidationError(AuthFlowError):
    pass


class UnknownState(StateValidationError):
    default_message = "State token was never issued."


class ExpiredState(StateValidationError):
    default_message = "State token has expired."


class ReplayedState(StateValidationError):
    default_message = "State token was already used."


class AccessDenied(AuthFlowError):
    status_code = 403
    default_message = "Account is not allowed to sign in."


class UpstreamError(AuthFlowError):
    status_code = 502


class TokenExchangeFailed(UpstreamError):
    default_message = "Token exchange with the provider failed."

    def __init__(
        self,
        message: str | None = None,
        *,
        provider_status: int | None = None,
        provider_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.provider_status = provider_status
        self.provider_body = provider_body

    def log_detail(self) -> str:
        body = self.provider_body or ""
        if len(body) > 1000:
            body = body[:1000] + "...<truncated>"
        return f"{self} status={self.provider_status} body={body}"


class MalformedTokenResponse(UpstreamError):
    default_message = "Token response did not contain a usable access_token."


class ProfileFetchFailed(UpstreamError):
    default_message = "Could not fetch the user profile."


class SessionError(AuthFlowError):
    status_code = 401


class MissingSession(SessionError):
    default_message = "No session cookie."


class InvalidSession(SessionError):
    default_message = "Session cookie failed verification."


class ExpiredSession(SessionError):
    default_message = "Session has expired."
