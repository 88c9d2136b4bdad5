from __future__ import annotations

import urllib.parse
from dataclasses import dataclass

import httpx

from auth.errors import MalformedTokenResponse, ProfileFetchFailed, TokenExchangeFailed
from auth.models import UserProfile

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

DEFAULT_SCOPES = ["openid", "email", "profile"]
DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass
class TokenSet:
    access_token: str
    token_type: str
    expires_in: int | None
    scope: str

    @classmethod
    def from_payload(cls, payload: object) -> "TokenSet":
        if not isinstance(payload, dict):
            raise MalformedTokenResponse("Token response is not a JSON object.")

        access_token = payload.get("access_token")
        token_type = payload.get("token_type", "Bearer")
        expires_in = payload.get("expires_in")
        scope = payload.get("scope", "")

        if not isinstance(access_token, str) or not access_token:
            raise MalformedTokenResponse("Token response missing access_token.")
        if expires_in is not None and (
            isinstance(expires_in, bool) or not isinstance(expires_in, int) or expires_in <= 0
        ):
            raise MalformedTokenResponse("Token response expires_in must be a positive integer.")
        if not isinstance(token_type, str):
            raise MalformedTokenResponse("Token response token_type must be a string.")
        if not isinstance(scope, str):
            raise MalformedTokenResponse("Token response scope must be a string.")

        return cls(
            access_token=access_token,
            token_type=token_type,
            expires_in=expires_in,
            scope=scope,
        )


def build_authorization_url(
    client_id: str,
    redirect_uri: str,
    scopes: list[str],
    state: str,
    *,
    access_type: str = "online",
    prompt: str | None = None,
    include_granted_scopes: bool = False,
) -> str:
    query = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": " ".join(scopes),
        "access_type": access_type,
        "state": state,
    }
    if prompt:
        query["prompt"] = prompt
    if include_granted_scopes:
        query["include_granted_scopes"] = "true"
    return f"{GOOGLE_AUTHORIZE_URL}?{urllib.parse.urlencode(query)}"


async def exchange_code(
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> TokenSet:
    own_client = client is None
    http_client = client or httpx.AsyncClient(timeout=timeout)
    payload = {
        "grant_type": "authorization_code",
        "client_id": client_id,
        "client_secret": client_secret,
        "code": code,
        "redirect_uri": redirect_uri,
    }

    try:
        response = await http_client.post(GOOGLE_TOKEN_URL, data=payload, timeout=timeout)
        response.raise_for_status()
    except httpx.HTTPStatusError as error:
        raise TokenExchangeFailed(
            f"Token request failed with status {error.response.status_code}.",
            provider_status=error.response.status_code,
            provider_body=error.response.text,
        ) from error
    except httpx.HTTPError as error:
        raise TokenExchangeFailed(
            f"Token request failed: {type(error).__name__}.",
            provider_body=str(error),
        ) from error
    finally:
        if own_client:
            await http_client.aclose()

    try:
        body = response.json()
    except ValueError as error:
        raise MalformedTokenResponse("Token response is not valid JSON.") from error
    return TokenSet.from_payload(body)


async def fetch_profile(
    access_token: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> UserProfile:
    own_client = client is None
    http_client = client or httpx.AsyncClient(timeout=timeout)

    try:
        response = await http_client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
        )
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as error:
        raise ProfileFetchFailed(
            f"Userinfo request failed with status {error.response.status_code}."
        ) from error
    except (httpx.HTTPError, ValueError) as error:
        raise ProfileFetchFailed(f"Userinfo request failed: {type(error).__name__}.") from error
    finally:
        if own_client:
            await http_client.aclose()

    if not isinstance(data, dict) or not isinstance(data.get("sub"), str):
        raise ProfileFetchFailed("Userinfo response missing sub.")

    email = data.get("email")
    name = data.get("name")
    picture = data.get("picture")
    return UserProfile(
        sub=data["sub"],
        email=email if isinstance(email, str) else None,
        name=name if isinstance(name, str) else None,
        picture=picture if isinstance(picture, str) else None,
    )
