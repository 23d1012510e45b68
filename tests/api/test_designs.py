from __future__ import annotations

import json
from dataclasses import replace

import httpx
import pytest
from fastapi.testclient import TestClient

from canva_bff.api.dependencies import get_settings
from canva_bff.core.config import Settings
from canva_bff.main import app
from canva_bff.repos.token_store import JsonFileTokenStore
from tests.conftest import ACCESS_TOKEN, FakeCanva, seed_tokens

BANNER = {"name": "Banner", "width": 1200, "height": 600}


@pytest.fixture
def authed(token_store: JsonFileTokenStore) -> None:
    seed_tokens(token_store)


# ---- POST /api/create_design ----


@pytest.mark.usefixtures("authed")
def test_create_design_returns_id_and_fallback_url(
    client: TestClient, canva: FakeCanva
) -> None:
    resp = client.post("/api/create_design", json=BANNER)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["status"] == "ok"
    assert data["design_id"] == "DAF123"
    assert data["url"] == "https://www.canva.com/design/DAF123/view"
    assert data["message"] == "Design created in Canva"

    [call] = canva.calls_to("/rest/v1/designs")
    assert call.headers["authorization"] == f"Bearer {ACCESS_TOKEN}"
    assert json.loads(call.content) == {
        "design": {
            "design_type": {"type": "custom", "width": 1200, "height": 600},
            "title": "Banner",
        }
    }


@pytest.mark.usefixtures("authed")
def test_create_design_converts_inches_at_300_ppi(
    client: TestClient, canva: FakeCanva
) -> None:
    resp = client.post(
        "/api/create_design",
        json={"title": "Flyer", "width": 8.5, "height": 11, "unit": "in"},
    )
    assert resp.status_code == 200, resp.text

    sent = json.loads(canva.calls_to("/rest/v1/designs")[0].content)
    assert sent["design"]["design_type"] == {"type": "custom", "width": 2550, "height": 3300}
    assert sent["design"]["title"] == "Flyer"


@pytest.mark.usefixtures("authed")
def test_create_design_prefers_canva_view_url(client: TestClient, canva: FakeCanva) -> None:
    canva.design_response = httpx.Response(
        200,
        json={
            "design": {
                "id": "DAF999",
                "urls": {
                    "edit_url": "https://www.canva.com/design/DAF999/edit?token=x",
                    "view_url": "https://www.canva.com/design/DAF999/view?token=y",
                },
            }
        },
    )
    data = client.post("/api/create_design", json=BANNER).json()
    assert data["url"] == "https://www.canva.com/design/DAF999/view?token=y"
    assert data["edit_url"] == "https://www.canva.com/design/DAF999/edit?token=x"


@pytest.mark.usefixtures("authed")
def test_create_design_returns_description_from_optional_fields(
    client: TestClient, canva: FakeCanva
) -> None:
    body = {
        **BANNER,
        "sides": 2,
        "color_palette": ["#112233", "white"],
        "style": "minimal",
        "notes": "logo top left",
    }
    data = client.post("/api/create_design", json=body).json()
    assert data["description"] == (
        "Style: minimal | Sides: 2 | Colors: #112233, white | Notes: logo top left"
    )
    # descriptive fields stay local; Canva only gets size and title
    sent = json.loads(canva.calls_to("/rest/v1/designs")[0].content)
    assert set(sent["design"]) == {"design_type", "title"}


def test_create_design_without_token_is_401(client: TestClient, canva: FakeCanva) -> None:
    resp = client.post("/api/create_design", json=BANNER)
    assert resp.status_code == 401
    assert resp.json()["error"] == "Missing access token. Visit /auth first."
    assert canva.requests == []


def test_create_design_uses_static_token_when_nothing_stored(
    client: TestClient, canva: FakeCanva, settings: Settings
) -> None:
    app.dependency_overrides[get_settings] = lambda: replace(
        settings, canva_access_token="static-env-token"
    )
    resp = client.post("/api/create_design", json=BANNER)
    assert resp.status_code == 200, resp.text
    [call] = canva.calls_to("/rest/v1/designs")
    assert call.headers["authorization"] == "Bearer static-env-token"


@pytest.mark.usefixtures("authed")
def test_create_design_surfaces_canva_error_body(client: TestClient, canva: FakeCanva) -> None:
    canva.design_response = httpx.Response(
        400, json={"code": "invalid_field", "message": "width too large"}
    )
    resp = client.post("/api/create_design", json=BANNER)
    assert resp.status_code == 500
    assert resp.json() == {
        "error": "Failed to create design",
        "details": {"code": "invalid_field", "message": "width too large"},
    }


@pytest.mark.usefixtures("authed")
def test_create_design_without_id_in_reply_is_500(
    client: TestClient, canva: FakeCanva
) -> None:
    canva.design_response = httpx.Response(200, json={"design": {}})
    resp = client.post("/api/create_design", json=BANNER)
    assert resp.status_code == 500
    assert resp.json()["error"] == "Design ID missing from Canva response"


@pytest.mark.parametrize(
    "body",
    [
        {"width": 100, "height": 100},
        {"name": "", "width": 100, "height": 100},
        {"name": "x", "width": 0, "height": 100},
        {"name": "x", "width": 100, "height": -1},
        {"name": "x", "width": 100, "height": 100, "units": "cm"},
    ],
)
def test_create_design_rejects_bad_payload(
    client: TestClient, canva: FakeCanva, body: dict
) -> None:
    resp = client.post("/api/create_design", json=body)
    assert resp.status_code == 422
    assert canva.requests == []


# ---- POST /agent/command ----


@pytest.mark.usefixtures("authed")
def test_agent_generate_template_creates_design(client: TestClient) -> None:
    resp = client.post(
        "/agent/command",
        json={"action": "generate_template", "payload": BANNER},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["design_id"] == "DAF123"


def test_agent_unsupported_action_is_400(client: TestClient, canva: FakeCanva) -> None:
    resp = client.post("/agent/command", json={"action": "delete_everything", "payload": {}})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Unsupported action"
    assert canva.requests == []


def test_agent_payload_missing_size_is_400(client: TestClient, canva: FakeCanva) -> None:
    resp = client.post(
        "/agent/command",
        json={"action": "generate_template", "payload": {"name": "Banner"}},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Missing name, width or height"
    assert {err["loc"][0] for err in body["details"]} == {"width", "height"}
    assert canva.requests == []


@pytest.mark.parametrize("payload", [None, "Banner 1200x600", [1200, 600]])
def test_agent_non_object_payload_is_400(
    client: TestClient, canva: FakeCanva, payload: object
) -> None:
    resp = client.post(
        "/agent/command", json={"action": "generate_template", "payload": payload}
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing name, width or height"
    assert canva.requests == []


def test_agent_missing_action_is_400(client: TestClient, canva: FakeCanva) -> None:
    resp = client.post("/agent/command", json={"payload": BANNER})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Unsupported action"
    assert canva.requests == []


@pytest.mark.usefixtures("authed")
def test_create_design_ignores_malformed_urls(client: TestClient, canva: FakeCanva) -> None:
    canva.design_response = httpx.Response(200, json={"design": {"id": "DAF777", "urls": "x"}})
    resp = client.post("/api/create_design", json=BANNER)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["url"] == "https://www.canva.com/design/DAF777/view"
    assert data["view_url"] is None
