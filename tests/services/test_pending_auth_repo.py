from __future__ import annotations

import asyncio
import json
import time

import pytest

from canva_bff.core.errors import StateStoreUnavailable
from canva_bff.models.pending_authorization import PendingAuthorization
from canva_bff.repos.pending_auth_repo import InMemoryPendingAuthRepo, RedisPendingAuthRepo
from tests.conftest import UnreachableRedis


def _record(state: str = "s1", ttl: int = 600, now: float | None = None) -> PendingAuthorization:
    return PendingAuthorization.new(
        state=state,
        verifier=f"verifier-{state}",
        redirect_uri="http://127.0.0.1:4000/callback",
        ttl_seconds=ttl,
        now=now,
    )


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the pending-state repo."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.data[key] = value
        self.ttls[key] = ttl

    async def getdel(self, key: str) -> str | None:
        return self.data.pop(key, None)


# ---- in-memory ----


def test_pop_returns_record_once() -> None:
    repo = InMemoryPendingAuthRepo()
    record = _record()
    asyncio.run(repo.put(record))

    assert asyncio.run(repo.pop("s1")) == record
    assert asyncio.run(repo.pop("s1")) is None


def test_records_are_independent() -> None:
    repo = InMemoryPendingAuthRepo()
    asyncio.run(repo.put(_record("a")))
    asyncio.run(repo.put(_record("b")))

    assert asyncio.run(repo.pop("b")).verifier == "verifier-b"  # type: ignore[union-attr]
    assert asyncio.run(repo.pop("a")).verifier == "verifier-a"  # type: ignore[union-attr]


def test_expired_record_is_not_returned() -> None:
    repo = InMemoryPendingAuthRepo()
    asyncio.run(repo.put(_record(ttl=60, now=time.time() - 120)))
    assert asyncio.run(repo.pop("s1")) is None


def test_put_purges_expired_records() -> None:
    repo = InMemoryPendingAuthRepo()
    asyncio.run(repo.put(_record("old", ttl=60, now=time.time() - 120)))
    asyncio.run(repo.put(_record("new")))
    assert set(repo._by_state) == {"new"}


def test_expiry_boundary() -> None:
    record = _record(ttl=600, now=1_000)
    assert record.is_expired(1_599) is False
    assert record.is_expired(1_600) is True


# ---- redis ----


def test_redis_repo_sets_ttl_and_pops_atomically() -> None:
    redis = FakeRedis()
    repo = RedisPendingAuthRepo(redis)
    record = _record(ttl=600)
    asyncio.run(repo.put(record))

    key = "oauth:pending:s1"
    assert 598 <= redis.ttls[key] <= 600
    assert json.loads(redis.data[key])["verifier"] == "verifier-s1"

    assert asyncio.run(repo.pop("s1")) == record
    assert asyncio.run(repo.pop("s1")) is None


def test_redis_repo_skips_already_expired_record() -> None:
    redis = FakeRedis()
    repo = RedisPendingAuthRepo(redis)
    asyncio.run(repo.put(_record(ttl=60, now=time.time() - 120)))
    assert redis.data == {}


def test_redis_outage_raises_state_store_unavailable() -> None:
    repo = RedisPendingAuthRepo(UnreachableRedis())
    with pytest.raises(StateStoreUnavailable):
        asyncio.run(repo.put(_record()))
    with pytest.raises(StateStoreUnavailable):
        asyncio.run(repo.pop("s1"))
