from __future__ import annotations

import secrets
import threading
import time
from collections.abc import Callable

from auth.errors import ExpiredState, ReplayedState, UnknownState
from auth.models import LoginAttempt

DEFAULT_STATE_TTL_SECONDS = 600


def generate_state_token() -> str:
    return secrets.token_urlsafe(32)


class StateTokenIssuer:
    """In-memory, single-process store of pending login attempts.

    ``validate`` checks and consumes under one lock so two concurrent
    callbacks carrying the same state cannot both succeed.
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = DEFAULT_STATE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        token_factory: Callable[[], str] = generate_state_token,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._token_factory = token_factory
        self._attempts: dict[str, LoginAttempt] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._attempts)

    def issue(self) -> LoginAttempt:
        now = self._clock()
        with self._lock:
            self._purge_locked(now)
            token = self._token_factory()
            if token in self._attempts:
                raise RuntimeError("State token collision; refusing to overwrite a pending attempt.")
            attempt = LoginAttempt(
                state_token=token,
                created_at=now,
                expires_at=now + self.ttl_seconds,
            )
            self._attempts[token] = attempt
        return attempt

    def validate(self, received_state: str) -> LoginAttempt:
        now = self._clock()
        with self._lock:
            attempt = self._attempts.get(received_state)
            if attempt is None:
                raise UnknownState()
            if attempt.is_expired(now):
                del self._attempts[received_state]
                raise ExpiredState()
            if attempt.consumed:
                raise ReplayedState()

            attempt.consumed_at = now
            self._purge_locked(now)
            return attempt

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked(self._clock())

    def _purge_locked(self, now: float) -> int:
        expired = [
            token for token, attempt in self._attempts.items() if attempt.is_expired(now)
        ]
        for token in expired:
            del self._attempts[token]
        return len(expired)
