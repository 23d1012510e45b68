from __future__ import annotations

import html
import logging
from typing import Any

from fastapi import APIRouter, Query, Request, Response, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from pydantic import BaseModel

from canva_bff.api.dependencies import CanvaDep, FlowDep
from canva_bff.core.errors import BffError, ConfigMissing, ProviderError
from canva_bff.models.token_set import TokenSet, now_ms
from canva_bff.services.redirect_resolver import host_from_headers

# ---------------------------------------------------------------------------
# Canva OAuth client endpoints
#
#   GET  /auth             start Authorization Code + PKCE, 302 to Canva
#   GET  /callback, /      Canva returns here with ?code&state
#   GET  /me               who the stored token belongs to
#   GET  /refresh          trade the refresh token for a new access token
#   POST /logout           forget the stored tokens
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])


class RefreshOut(BaseModel):
    access_token: str
    expires_in: int


def _prefix(token: str | None) -> str:
    return f"{token[:12]}…" if token else "(none)"


def _success_page(tokens: TokenSet) -> str:
    expires_in = max(0, (tokens.expires_at - now_ms()) // 1000)
    body = f"""✅ Tokens acquired!
access_token: {_prefix(tokens.access_token)}
refresh_token: {_prefix(tokens.refresh_token)}
expires_in: {expires_in}s

You can now call:
- GET /me
- GET /refresh
- POST /agent/command  (see body below)

Example POST /agent/command body:
{{
  "action": "generate_template",
  "payload": {{ "name": "My Banner", "width": 1200, "height": 600 }}
}}
"""
    return f"<pre>{html.escape(body)}</pre>"


@router.get("/auth")
async def authorize(request: Request, flow: FlowDep) -> RedirectResponse:
    redirect = await flow.authorize(host_from_headers(request.headers))
    return RedirectResponse(url=redirect.url, status_code=status.HTTP_302_FOUND)


@router.get("/callback", response_model=None)
@router.get("/", response_model=None, include_in_schema=False)
async def callback(
    flow: FlowDep,
    code: str | None = Query(None),
    state: str | None = Query(None),
) -> Response:
    if not code:
        return PlainTextResponse("✅ Canva backend is up. (No ?code present)")

    tokens = await flow.handle_callback(code, state)
    return HTMLResponse(_success_page(tokens))


@router.get("/me")
async def me(flow: FlowDep, canva: CanvaDep) -> dict[str, Any]:
    access_token = flow.get_valid_access_token()
    if not access_token:
        raise ConfigMissing("No access token. Visit /auth first.")

    try:
        return await canva.get_me(access_token)
    except ProviderError as exc:
        logger.warning("/me failed  status=%s", exc.status_code)
        raise BffError("Failed to fetch Canva user info", details=exc.body) from None


@router.get("/refresh", response_model=RefreshOut)
async def refresh(flow: FlowDep) -> RefreshOut:
    tokens = await flow.refresh()
    return RefreshOut(
        access_token=tokens.access_token,
        expires_in=max(0, (tokens.expires_at - now_ms()) // 1000),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(flow: FlowDep) -> Response:
    flow.logout()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
