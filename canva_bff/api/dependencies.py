"""Dependency providers for the route handlers.

The long-lived collaborators (Canva client, pending-state repo, token
store, flow controller) are module-level singletons built from SETTINGS.
Handlers reach them only through the get_* functions below, so tests swap
any of them via ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from canva_bff.core.config import SETTINGS, Settings
from canva_bff.db.redis import redis_pool
from canva_bff.repos.pending_auth_repo import (
    InMemoryPendingAuthRepo,
    PendingAuthRepo,
    RedisPendingAuthRepo,
)
from canva_bff.repos.token_store import JsonFileTokenStore, TokenStore
from canva_bff.services.canva_client import CanvaClient
from canva_bff.services.design_service import DesignService
from canva_bff.services.oauth_flow import OAuthFlowController
from canva_bff.services.redirect_resolver import RedirectResolver
from canva_bff.services.workflow_service import WorkflowTrigger


def build_flow_controller(
    settings: Settings,
    *,
    canva: CanvaClient,
    pending: PendingAuthRepo,
    store: TokenStore,
) -> OAuthFlowController:
    resolver = RedirectResolver(
        local_uri=settings.redirect_uri_local,
        production_uri=settings.redirect_uri_prod,
        tier=settings.deploy_tier,
        production_markers=settings.production_host_markers,
    )
    return OAuthFlowController(
        client_id=settings.canva_client_id,
        client_secret=settings.canva_client_secret,
        authorize_url=settings.canva_authorize_url,
        scopes=settings.scopes,
        canva=canva,
        resolver=resolver,
        pending=pending,
        store=store,
        state_ttl_seconds=settings.oauth_state_ttl_sec,
    )


# ---------------------------------------------------------------------------
# Module-level singletons
# ---------------------------------------------------------------------------

_canva_client = CanvaClient(SETTINGS.canva_api_base, timeout=SETTINGS.oauth_timeout_sec)

if redis_pool is not None:
    pending_auth_repo: PendingAuthRepo = RedisPendingAuthRepo(redis_pool)
else:
    pending_auth_repo = InMemoryPendingAuthRepo()

token_store = JsonFileTokenStore(SETTINGS.tokens_path, writable=SETTINGS.tokens_writable)

_flow_controller = build_flow_controller(
    SETTINGS, canva=_canva_client, pending=pending_auth_repo, store=token_store
)


def get_settings() -> Settings:
    return SETTINGS


def get_canva_client() -> CanvaClient:
    return _canva_client


def get_flow_controller() -> OAuthFlowController:
    return _flow_controller


def get_design_service(
    settings: Annotated[Settings, Depends(get_settings)],
    canva: Annotated[CanvaClient, Depends(get_canva_client)],
    flow: Annotated[OAuthFlowController, Depends(get_flow_controller)],
) -> DesignService:
    return DesignService(
        canva=canva,
        flow=flow,
        fallback_access_token=settings.canva_access_token,
        web_base=settings.canva_web_base,
        timeout=settings.design_timeout_sec,
    )


def get_workflow_trigger(
    settings: Annotated[Settings, Depends(get_settings)],
) -> WorkflowTrigger:
    return WorkflowTrigger(
        api_url=settings.workflow_api_url,
        auth_token=settings.workflow_auth_token,
        workflow_name=settings.workflow_name,
        environment=settings.workflow_env,
        project_id=settings.workflow_project,
        team_id=settings.workflow_team,
    )


FlowDep = Annotated[OAuthFlowController, Depends(get_flow_controller)]
CanvaDep = Annotated[CanvaClient, Depends(get_canva_client)]
DesignDep = Annotated[DesignService, Depends(get_design_service)]
WorkflowDep = Annotated[WorkflowTrigger, Depends(get_workflow_trigger)]
