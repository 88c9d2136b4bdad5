from __future__ import annotations

from dataclasses import dataclass


@dataclass
class LoginAttempt:
    state_token: str
    created_at: float
    expires_at: float
    consumed_at: float | None = None

    @property
    def consumed(self) -> bool:
        return self.consumed_at is not None

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class AuthorizationGrant:
    code: str
    received_state: str


@dataclass(frozen=True)
class SessionArtifact:
    access_token: str
    issued_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    @property
    def max_age(self) -> int:
        return max(0, round(self.expires_at - self.issued_at))


@dataclass(frozen=True)
class UserProfile:
    sub: str
    email: str | None = None
    name: str | None = None
    picture: str | None = None

    @property
    def email_domain(self) -> str | None:
        if not self.email or "@" not in self.email:
            return None
        return self.email.rsplit("@", 1)[1].lower()
