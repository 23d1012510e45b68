from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from canva_bff.api.designs import router as designs_router
from canva_bff.api.health import router as health_router
from canva_bff.api.metrics_endpoint import router as metrics_router
from canva_bff.api.oauth import router as oauth_router
from canva_bff.api.workflows import router as workflows_router
from canva_bff.core.config import SETTINGS
from canva_bff.core.errors import BffError
from canva_bff.core.logging import setup_logging
from canva_bff.db.redis import lifespan_redis
from canva_bff.middleware.metrics import MetricsMiddleware
from canva_bff.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_redis():
        yield


app = FastAPI(
    title="canva-bff",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)


@app.exception_handler(BffError)
async def bff_error_handler(_request: Request, exc: BffError) -> JSONResponse:
    # Remote failures land here as structured JSON; none of them crash the process.
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.error)
    else:
        logger.warning("%s: %s", type(exc).__name__, exc.error)
    content: dict[str, object] = {"error": exc.error}
    if exc.details is not None:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# last-added runs first: RequestContext → Metrics → CORS → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(oauth_router)
app.include_router(designs_router)
app.include_router(workflows_router)

logger.info(
    "canva-bff started  env=%s tier=%s tokens=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.deploy_tier,
    "writable" if SETTINGS.tokens_writable else "read-only",
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)


if __name__ == "__main__":
    # Local dev only; serverless hosts import `app` directly.
    import uvicorn

    uvicorn.run("canva_bff.main:app", host="127.0.0.1", port=SETTINGS.port)
