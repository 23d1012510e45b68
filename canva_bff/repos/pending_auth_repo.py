"""Keyed store for in-flight authorization attempts.

Each GET /auth mints a fresh ``state`` and stores the PKCE verifier and the
redirect URI under it.  The callback pops the record by the state Canva
echoes back.  Records are single-use and expire after a short TTL, so
several authorize attempts can be in flight at once without one
invalidating another.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Protocol, runtime_checkable

from redis.exceptions import RedisError

from canva_bff.core.errors import StateStoreUnavailable
from canva_bff.models.pending_authorization import PendingAuthorization

logger = logging.getLogger(__name__)


@runtime_checkable
class PendingAuthRepo(Protocol):
    async def put(self, record: PendingAuthorization) -> None:
        """Store a record until it is popped or expires."""
        ...

    async def pop(self, state: str) -> PendingAuthorization | None:
        """Remove and return the record for ``state``; None if unknown or expired."""
        ...


class InMemoryPendingAuthRepo:
    """Per-process store. The autouse fixture in conftest.py clears it."""

    def __init__(self) -> None:
        self._by_state: dict[str, PendingAuthorization] = {}

    async def put(self, record: PendingAuthorization) -> None:
        self._purge_expired()
        self._by_state[record.state] = record

    async def pop(self, state: str) -> PendingAuthorization | None:
        record = self._by_state.pop(state, None)
        if record is None or record.is_expired():
            return None
        return record

    def _purge_expired(self) -> None:
        now = time.time()
        for state in [s for s, r in self._by_state.items() if r.is_expired(now)]:
            del self._by_state[state]


class RedisPendingAuthRepo:
    """Redis-backed store shared by every instance."""

    _PREFIX = "oauth:pending:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def put(self, record: PendingAuthorization) -> None:
        ttl_seconds = record.expires_at - int(time.time())
        if ttl_seconds <= 0:
            return
        try:
            await self._redis.setex(
                f"{self._PREFIX}{record.state}", ttl_seconds, json.dumps(record.to_dict())
            )
        except RedisError as exc:
            logger.error("Could not store pending authorization: %s", type(exc).__name__)
            raise StateStoreUnavailable() from None

    async def pop(self, state: str) -> PendingAuthorization | None:
        # GETDEL makes the read-and-consume atomic: a replayed callback
        # racing the first one finds nothing.
        try:
            raw = await self._redis.getdel(f"{self._PREFIX}{state}")
        except RedisError as exc:
            logger.error("Could not read pending authorization: %s", type(exc).__name__)
            raise StateStoreUnavailable() from None
        if raw is None:
            return None
        record = PendingAuthorization.from_dict(json.loads(raw))
        if record.is_expired():
            return None
        return record
