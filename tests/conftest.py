from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

# Ensure repo root is on sys.path so `import canva_bff` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from canva_bff.api import dependencies  # noqa: E402
from canva_bff.api.dependencies import (  # noqa: E402
    build_flow_controller,
    get_canva_client,
    get_flow_controller,
    get_settings,
)
from canva_bff.core.config import SETTINGS, Settings  # noqa: E402
from canva_bff.main import app  # noqa: E402
from canva_bff.repos.pending_auth_repo import InMemoryPendingAuthRepo  # noqa: E402
from canva_bff.repos.token_store import JsonFileTokenStore  # noqa: E402
from canva_bff.services.canva_client import CanvaClient  # noqa: E402
from canva_bff.services.oauth_flow import OAuthFlowController  # noqa: E402

CANVA_API_BASE = "https://api.canva.test"
LOCAL_REDIRECT = "http://127.0.0.1:4000/callback"
PROD_REDIRECT = "https://bff.example.com/callback"

CLIENT_ID = "test-client-id"
CLIENT_SECRET = "test-client-secret-do-not-log"

ACCESS_TOKEN = "canva-access-AAAAAAAAAAAAAAAAAAAAAAAA"
REFRESH_TOKEN = "canva-refresh-RRRRRRRRRRRRRRRRRRRRRRRR"
ROTATED_ACCESS_TOKEN = "canva-access-BBBBBBBBBBBBBBBBBBBBBBBB"
ROTATED_REFRESH_TOKEN = "canva-refresh-SSSSSSSSSSSSSSSSSSSSSSSS"


class FakeCanva:
    """Scripted stand-in for the Canva REST API, served via httpx.MockTransport.

    Records every request.  Token-endpoint behavior mirrors Canva closely
    enough for the flow: a redirect_uri that differs from ``expected_redirect_uri``
    or the code "bad-code" is rejected with invalid_grant.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.expected_redirect_uri: str | None = None
        self.rotate_refresh_token = True
        self.refresh_error: httpx.Response | None = None
        self.design_response = httpx.Response(200, json={"design": {"id": "DAF123"}})
        self.me_response = httpx.Response(
            200, json={"team_user": {"user_id": "oU123", "team_id": "oBT456"}}
        )

    # -- helpers for assertions -------------------------------------------------

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        parsed = parse_qs(request.read().decode())
        return {k: v[0] for k, v in parsed.items()}

    # -- transport handler ------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/rest/v1/oauth/token":
            return self._token(self.form(request))
        if path == "/rest/v1/users/me":
            return self.me_response
        if path == "/rest/v1/designs":
            return self.design_response
        return httpx.Response(404, json={"code": "not_found"})

    def _token(self, form: dict[str, str]) -> httpx.Response:
        grant = form.get("grant_type")
        if grant == "authorization_code":
            if (
                self.expected_redirect_uri is not None
                and form.get("redirect_uri") != self.expected_redirect_uri
            ):
                return httpx.Response(
                    400,
                    json={
                        "error": "invalid_grant",
                        "error_description": "redirect_uri does not match",
                    },
                )
            if form.get("code") == "bad-code":
                return httpx.Response(
                    400,
                    json={"error": "invalid_grant", "error_description": "code expired"},
                )
            return httpx.Response(
                200,
                json={
                    "access_token": ACCESS_TOKEN,
                    "refresh_token": REFRESH_TOKEN,
                    "expires_in": 14400,
                    "token_type": "Bearer",
                },
            )
        if grant == "refresh_token":
            if self.refresh_error is not None:
                return self.refresh_error
            body: dict[str, object] = {
                "access_token": ROTATED_ACCESS_TOKEN,
                "expires_in": 14400,
                "token_type": "Bearer",
            }
            if self.rotate_refresh_token:
                body["refresh_token"] = ROTATED_REFRESH_TOKEN
            return httpx.Response(200, json=body)
        return httpx.Response(400, json={"error": "unsupported_grant_type"})


class UnreachableRedis:
    """A Redis client whose every call fails as if the server were down."""

    async def setex(self, key: str, ttl: int, value: str) -> None:
        raise RedisConnectionError("Connection refused")

    async def getdel(self, key: str) -> str | None:
        raise RedisConnectionError("Connection refused")


@pytest.fixture(autouse=True)
def reset_module_state() -> Iterator[None]:
    """Clear module-level singletons and overrides between tests."""
    pending = dependencies.pending_auth_repo
    if hasattr(pending, "_by_state"):
        pending._by_state.clear()  # type: ignore[union-attr]
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return replace(
        SETTINGS,
        canva_client_id=CLIENT_ID,
        canva_client_secret=CLIENT_SECRET,
        canva_api_base=CANVA_API_BASE,
        canva_web_base="https://www.canva.com",
        canva_access_token=None,
        redirect_uri_local=LOCAL_REDIRECT,
        redirect_uri_prod=PROD_REDIRECT,
        deploy_tier="local",
        tokens_path=str(tmp_path / "tokens.json"),
        tokens_writable=True,
        workflow_auth_token="wf-secret-token",
        workflow_project="prj_test",
        workflow_team="team_test",
    )


@pytest.fixture
def canva() -> FakeCanva:
    return FakeCanva()


@pytest.fixture
def canva_client(canva: FakeCanva) -> CanvaClient:
    return CanvaClient(CANVA_API_BASE, transport=httpx.MockTransport(canva.handler))


@pytest.fixture
def token_store(settings: Settings) -> JsonFileTokenStore:
    return JsonFileTokenStore(settings.tokens_path, writable=settings.tokens_writable)


@pytest.fixture
def flow(
    settings: Settings, canva_client: CanvaClient, token_store: JsonFileTokenStore
) -> OAuthFlowController:
    return build_flow_controller(
        settings,
        canva=canva_client,
        pending=InMemoryPendingAuthRepo(),
        store=token_store,
    )


@pytest.fixture
def client(
    settings: Settings, canva_client: CanvaClient, flow: OAuthFlowController
) -> TestClient:
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_canva_client] = lambda: canva_client
    app.dependency_overrides[get_flow_controller] = lambda: flow
    return TestClient(app, follow_redirects=False)


def seed_tokens(
    store: JsonFileTokenStore,
    *,
    access_token: str = ACCESS_TOKEN,
    refresh_token: str | None = REFRESH_TOKEN,
    expires_at: int = 0,
) -> None:
    """Write a token file directly, bypassing the flow."""
    store.path.write_text(
        json.dumps(
            {
                "access_token": access_token,
                "refresh_token": refresh_token,
                "expires_at": expires_at,
            }
        )
    )
