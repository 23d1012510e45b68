"""Liveness endpoint.

Returns 200 even when a dependency is degraded; ``status`` carries the
verdict.  Canva itself is not probed: a slow third party should not get
this instance pulled from the load balancer.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from canva_bff.api.dependencies import FlowDep, get_settings
from canva_bff.core.config import Settings
from canva_bff.db.redis import redis_pool

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(
    flow: FlowDep,
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if redis_pool is not None:
        try:
            await redis_pool.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except Exception:
            checks["redis"] = "degraded"
            overall = "degraded"
    else:
        checks["redis"] = "not_configured"

    checks["oauth_client"] = "ok" if settings.canva_client_id else "not_configured"
    checks["token_store"] = "writable" if settings.tokens_writable else "read_only"

    return {
        "status": overall,
        "checks": checks,
        "auth": flow.state.value,
    }
