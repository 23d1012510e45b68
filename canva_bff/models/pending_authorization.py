from __future__ import annotations

import time
from dataclasses import dataclass

# •	state: str (echoed back by Canva on the callback)
# •	verifier: str (PKCE secret, sent only on the token exchange)
# •	redirect_uri: str (must be replayed verbatim on the exchange)
# •	created_at / expires_at: epoch seconds


@dataclass(frozen=True, slots=True)
class PendingAuthorization:
    state: str
    verifier: str
    redirect_uri: str
    created_at: int
    expires_at: int

    @staticmethod
    def new(
        *,
        state: str,
        verifier: str,
        redirect_uri: str,
        ttl_seconds: int,
        now: float | None = None,
    ) -> PendingAuthorization:
        created = int(now if now is not None else time.time())
        return PendingAuthorization(
            state=state,
            verifier=verifier,
            redirect_uri=redirect_uri,
            created_at=created,
            expires_at=created + ttl_seconds,
        )

    def is_expired(self, now: float | None = None) -> bool:
        current = now if now is not None else time.time()
        return current >= self.expires_at

    def to_dict(self) -> dict[str, object]:
        return {
            "state": self.state,
            "verifier": self.verifier,
            "redirect_uri": self.redirect_uri,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
        }

    @staticmethod
    def from_dict(data: dict) -> PendingAuthorization:
        return PendingAuthorization(
            state=str(data["state"]),
            verifier=str(data["verifier"]),
            redirect_uri=str(data["redirect_uri"]),
            created_at=int(data["created_at"]),
            expires_at=int(data["expires_at"]),
        )
