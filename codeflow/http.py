from __future__ import annotations

import httpx

from .constants import HTTP_LOGGER

MAX_LOGGED_BODY = 1000


def _redact_url(url: httpx.URL) -> str:
    return str(url).split("?", 1)[0]


async def log_request(request: httpx.Request) -> None:
    HTTP_LOGGER.info("Provider request %s %s", request.method, _redact_url(request.url))


async def log_response(response: httpx.Response) -> None:
    HTTP_LOGGER.info(
        "Provider response %s %s -> %s",
        response.request.method,
        _redact_url(response.request.url),
        response.status_code,
    )
    if response.status_code >= 400:
        body = await response.aread()
        text = body.decode("utf-8", errors="replace")
        if len(text) > MAX_LOGGED_BODY:
            text = text[:MAX_LOGGED_BODY] + "...<truncated>"
        HTTP_LOGGER.warning("Provider error body: %s", text)


def build_provider_client(*, timeout: float, debug_enabled: bool = False) -> httpx.AsyncClient:
    """Shared client for token and userinfo calls.

    Hooks only log method, URL without query and status; request bodies
    carry the client secret and are never logged.
    """
    event_hooks: dict[str, list] = {"request": [], "response": []}
    if debug_enabled:
        event_hooks["request"].append(log_request)
        event_hooks["response"].append(log_response)
    return httpx.AsyncClient(timeout=timeout, event_hooks=event_hooks)
