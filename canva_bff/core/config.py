from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]
DeployTier = Literal["local", "production", "auto"]

DEFAULT_PRODUCTION_MARKERS = ("vercel.app", "printssistant")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "").lower()
    if not raw:
        return default
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _getenv_number(name: str, default: str) -> float:
    raw = _getenv(name, default)
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {raw!r})") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {raw!r})")
    return value


def _getenv_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = _getenv(name, "")
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    redis_url: str | None

    # Canva OAuth client
    canva_client_id: str | None = None
    canva_client_secret: str | None = None
    canva_api_base: str = "https://api.canva.com"
    canva_authorize_url: str = "https://www.canva.com/api/oauth/authorize"
    canva_web_base: str = "https://www.canva.com"
    canva_access_token: str | None = None

    # Callback selection
    redirect_uri_local: str = "http://127.0.0.1:4000/callback"
    redirect_uri_prod: str = "https://printssistant-canva-backend.vercel.app/callback"
    deploy_tier: DeployTier = "local"
    production_host_markers: tuple[str, ...] = DEFAULT_PRODUCTION_MARKERS

    # Token persistence
    tokens_path: str = "tokens.json"
    tokens_writable: bool = True

    # Outbound timeouts (seconds) and pending-state lifetime
    design_timeout_sec: float = 15.0
    oauth_timeout_sec: float = 15.0
    oauth_state_ttl_sec: int = 600

    cors_origins: tuple[str, ...] = ("*",)

    # Remote durable-workflow runner
    workflow_api_url: str = "https://api.vercel.com/v1/workflow/runs"
    workflow_auth_token: str | None = None
    workflow_env: str = "production"
    workflow_project: str | None = None
    workflow_team: str | None = None
    workflow_name: str = "canva-template-generator"

    scopes: tuple[str, ...] = field(
        default=(
            "design:content:read",
            "design:content:write",
            "asset:read",
            "asset:write",
            "folder:read",
            "app:read",
            "app:write",
        )
    )

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "4000")
    tier_raw = _getenv("DEPLOY_TIER", "local").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if tier_raw not in ("local", "production", "auto"):
        raise ValueError(
            f"DEPLOY_TIER must be local|production|auto (got {tier_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    # Serverless filesystems are read-only at runtime; an explicit
    # TOKENS_WRITABLE always wins over the VERCEL hint.
    on_vercel = bool(_getenv("VERCEL", ""))
    tokens_writable = _getenv_bool("TOKENS_WRITABLE", not on_vercel)

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON", False),
        port=port,
        redis_url=_getenv("REDIS_URL", "") or None,
        canva_client_id=_getenv("CANVA_CLIENT_ID", "") or None,
        canva_client_secret=_getenv("CANVA_CLIENT_SECRET", "") or None,
        canva_api_base=_getenv("CANVA_API_BASE", "https://api.canva.com"),
        canva_authorize_url=_getenv(
            "CANVA_AUTHORIZE_URL", "https://www.canva.com/api/oauth/authorize"
        ),
        canva_web_base=_getenv("CANVA_WEB_BASE", "https://www.canva.com"),
        canva_access_token=_getenv("CANVA_ACCESS_TOKEN", "") or None,
        redirect_uri_local=_getenv(
            "CANVA_REDIRECT_URI", "http://127.0.0.1:4000/callback"
        ),
        redirect_uri_prod=_getenv(
            "CANVA_REDIRECT_URI_PROD",
            "https://printssistant-canva-backend.vercel.app/callback",
        ),
        deploy_tier=tier_raw,
        production_host_markers=tuple(
            m.lower()
            for m in _getenv_list("PRODUCTION_HOST_MARKERS", DEFAULT_PRODUCTION_MARKERS)
        ),
        tokens_path=_getenv("TOKENS_PATH", "tokens.json"),
        tokens_writable=tokens_writable,
        design_timeout_sec=_getenv_number("DESIGN_TIMEOUT_SEC", "15"),
        oauth_timeout_sec=_getenv_number("OAUTH_TIMEOUT_SEC", "15"),
        oauth_state_ttl_sec=int(_getenv_number("OAUTH_STATE_TTL_SEC", "600")),
        cors_origins=_getenv_list("CORS_ORIGINS", ("*",)),
        workflow_api_url=_getenv(
            "WORKFLOW_API_URL", "https://api.vercel.com/v1/workflow/runs"
        ),
        workflow_auth_token=_getenv("WORKFLOW_AUTH_TOKEN", "") or None,
        workflow_env=_getenv("WORKFLOW_ENV", "production"),
        workflow_project=_getenv("WORKFLOW_PROJECT", "") or None,
        workflow_team=_getenv("WORKFLOW_TEAM", "") or None,
        workflow_name=_getenv("WORKFLOW_NAME", "canva-template-generator"),
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
