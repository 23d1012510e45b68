from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class TokenSet:
    """The one credential set this deployment holds.

    expires_at is epoch milliseconds, always issuance time plus the
    provider's declared expires_in. Frozen: a refresh builds a new set.
    """

    access_token: str
    refresh_token: str | None
    expires_at: int

    @staticmethod
    def from_token_response(
        data: dict[str, Any],
        *,
        issued_at_ms: int | None = None,
        previous_refresh_token: str | None = None,
    ) -> TokenSet:
        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("token response has no usable access_token")
        issued = issued_at_ms if issued_at_ms is not None else now_ms()
        expires_in = int(data.get("expires_in") or 0)
        return TokenSet(
            access_token=access_token,
            # Canva may omit refresh_token on refresh; the old one stays valid.
            refresh_token=data.get("refresh_token") or previous_refresh_token,
            expires_at=issued + expires_in * 1000,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> TokenSet:
        return TokenSet(
            access_token=str(data["access_token"]),
            refresh_token=data.get("refresh_token") or None,
            expires_at=int(data.get("expires_at") or 0),
        )
