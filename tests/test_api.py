"""Integration tests for the HTTP surface (app.delivery.api.card_studio, app.main)."""

from __future__ import annotations

import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.config.settings import settings
from app.main import app

BASE = f"{settings.API_V1_STR}/card-studio"


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    with TestClient(app) as test_client:
        test_client.auth = (settings.BASIC_AUTH_USERNAME, settings.BASIC_AUTH_PASSWORD)
        yield test_client


@pytest.fixture
def template_id(client) -> str:
    response = client.post(f"{BASE}/templates", json={"name": "API"})
    assert response.status_code == 201
    return response.json()["id"]


class TestService:
    @pytest.mark.integration
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["storage"] is True

    @pytest.mark.integration
    def test_requires_auth(self, client):
        client.auth = None
        assert client.get(f"{BASE}/templates").status_code == 401

    @pytest.mark.integration
    def test_presets_seeded_on_empty_storage(self, client):
        ids = [t["id"] for t in client.get(f"{BASE}/templates").json()]
        assert ids == ["tpl_official_green", "tpl_modern"]


class TestTemplateRoutes:
    @pytest.mark.integration
    def test_create_selects_template(self, client, template_id):
        session = client.get(f"{BASE}/session").json()
        assert session["templateId"] == template_id
        assert session["state"] == "idle"
        assert session["saved"] is False

    @pytest.mark.integration
    def test_get_and_patch(self, client, template_id):
        template = client.get(f"{BASE}/templates/{template_id}").json()
        assert template["widthPx"] == 340
        assert template["elements"][0]["label"] == "Nome"
        patched = client.patch(f"{BASE}/templates/{template_id}", json={"orientation": "portrait"}).json()
        assert patched["orientation"] == "portrait"
        assert patched["name"] == "API"

    @pytest.mark.integration
    def test_patch_dropping_selected_element_deselects(self, client, template_id):
        el = client.post(f"{BASE}/templates/{template_id}/elements", json={"type": "shape"}).json()["element"]
        template = client.get(f"{BASE}/templates/{template_id}").json()
        kept = [e for e in template["elements"] if e["id"] != el["id"]]
        assert client.patch(f"{BASE}/templates/{template_id}", json={"elements": kept}).status_code == 200
        assert client.get(f"{BASE}/session").json()["state"] == "idle"
        view = client.post(f"{BASE}/session/view", json={}).json()
        assert "selectedElementId" not in view

    @pytest.mark.integration
    def test_deleted_template_does_not_come_back_on_load(self, client, template_id):
        client.post(f"{BASE}/templates/save")
        client.delete(f"{BASE}/templates/{template_id}")
        client.post(f"{BASE}/templates/save")
        loaded = client.post(f"{BASE}/templates/load").json()
        assert template_id not in [t["id"] for t in loaded]

    @pytest.mark.integration
    def test_invalid_patch(self, client, template_id):
        assert client.patch(f"{BASE}/templates/{template_id}", json={"widthPx": -1}).status_code == 422

    @pytest.mark.integration
    def test_unknown_template_is_404(self, client):
        assert client.get(f"{BASE}/templates/ghost").status_code == 404

    @pytest.mark.integration
    def test_delete(self, client, template_id):
        assert client.delete(f"{BASE}/templates/{template_id}").status_code == 204
        assert client.get(f"{BASE}/templates/{template_id}").status_code == 404
        assert client.get(f"{BASE}/session").json()["templateId"] is None

    @pytest.mark.integration
    def test_save_and_load(self, client, template_id):
        saved = client.post(f"{BASE}/templates/save").json()
        assert saved == {"success": True, "saved": 3}
        assert client.get(f"{BASE}/session").json()["saved"] is True
        loaded = client.post(f"{BASE}/templates/load").json()
        assert [t["id"] for t in loaded][-1] == template_id


class TestElementRoutes:
    @pytest.mark.integration
    def test_add_element(self, client, template_id):
        body = client.post(f"{BASE}/templates/{template_id}/elements", json={"type": "shape"}).json()
        assert body["element"]["type"] == "shape"
        assert body["element"]["width"] == 100
        assert body["session"]["selectedElementId"] == body["element"]["id"]
        assert body["session"]["state"] == "selected"

    @pytest.mark.integration
    def test_unknown_type_rejected(self, client, template_id):
        response = client.post(f"{BASE}/templates/{template_id}/elements", json={"type": "video"})
        assert response.status_code == 422

    @pytest.mark.integration
    def test_patch_style_and_layer(self, client, template_id):
        el = client.post(f"{BASE}/templates/{template_id}/elements", json={"type": "text-static"}).json()["element"]
        body = client.patch(
            f"{BASE}/templates/{template_id}/elements/{el['id']}",
            json={"content": "Olá", "style": {"color": "#ff0000"}, "layer": "back"},
        ).json()
        assert body["element"]["content"] == "Olá"
        assert body["element"]["style"]["color"] == "#ff0000"
        assert body["element"]["style"]["fontSize"] == "12px"
        assert body["element"]["layer"] == "back"
        assert body["session"]["state"] == "idle"

    @pytest.mark.integration
    def test_move_and_delete(self, client, template_id):
        el = client.post(f"{BASE}/templates/{template_id}/elements", json={"type": "qrcode"}).json()["element"]
        moved = client.post(f"{BASE}/templates/{template_id}/elements/{el['id']}/move", json={"direction": "down"})
        assert [e["id"] for e in moved.json()["elements"]][0] == el["id"]
        session = client.delete(f"{BASE}/templates/{template_id}/elements/{el['id']}").json()["session"]
        assert session["state"] == "idle"
        assert client.delete(f"{BASE}/templates/{template_id}/elements/{el['id']}").status_code == 404


class TestSessionRoutes:
    @pytest.mark.integration
    def test_drag_flow(self, client, template_id):
        el = client.post(f"{BASE}/templates/{template_id}/elements", json={"type": "shape"}).json()["element"]
        down = client.post(f"{BASE}/session/pointer-down", json={"x": 0, "y": 0, "elementId": el["id"]}).json()
        assert down["state"] == "dragging"
        client.post(f"{BASE}/session/pointer-move", json={"x": 34, "y": 21.5})
        up = client.post(f"{BASE}/session/pointer-up", json={}).json()
        assert up["state"] == "selected"
        moved = next(e for e in client.get(f"{BASE}/templates/{template_id}").json()["elements"] if e["id"] == el["id"])
        assert (moved["x"], moved["y"]) == (30.0, 30.0)

    @pytest.mark.integration
    def test_pointer_down_on_empty_canvas_deselects(self, client, template_id):
        client.post(f"{BASE}/templates/{template_id}/elements", json={"type": "shape"})
        assert client.post(f"{BASE}/session/pointer-down", json={"x": 1, "y": 1}).json()["state"] == "idle"

    @pytest.mark.integration
    def test_layer_and_overlays(self, client, template_id):
        assert client.post(f"{BASE}/session/layer", json={"side": "back"}).json()["activeLayer"] == "back"
        session = client.post(f"{BASE}/session/overlays", json={"grid": True}).json()
        assert session["showGrid"] is True
        assert session["showMargins"] is False

    @pytest.mark.integration
    def test_editor_view(self, client, template_id):
        client.post(f"{BASE}/session/overlays", json={"grid": True, "margins": True})
        view = client.post(f"{BASE}/session/view", json={"user": {"name": "Maria Pereira"}}).json()
        assert view["tree"]["nodes"][0]["content"] == "Maria Pereira"
        assert view["grid"]["spacing"] == 20
        assert "margins" in view

    @pytest.mark.integration
    def test_select_unknown_template(self, client):
        assert client.post(f"{BASE}/session/template", json={"templateId": "ghost"}).status_code == 404


class TestRenderAndExport:
    @pytest.mark.integration
    def test_render(self, client):
        body = {"side": "front", "user": {"name": "Maria Pereira"}, "system": {"name": "Vila Verde"}}
        tree = client.post(f"{BASE}/templates/tpl_official_green/render", json=body).json()
        contents = {n["elementId"]: n.get("content") for n in tree["nodes"]}
        assert contents["e4"] == "Maria Pereira"
        assert contents["e2"] == "Vila Verde"

    @pytest.mark.integration
    def test_export_png(self, client):
        response = client.post(f"{BASE}/templates/tpl_official_green/export/front",
                               json={"user": {"name": "Maria Pereira"}})
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert 'filename="carteirinha-maria-pereira-front.png"' in response.headers["content-disposition"]
        with Image.open(io.BytesIO(response.content)) as img:
            assert img.size == (1011, 638)

    @pytest.mark.integration
    def test_export_jpeg(self, client):
        response = client.post(f"{BASE}/templates/tpl_modern/export/back?fmt=jpg", json={})
        assert response.headers["content-type"] == "image/jpeg"
        with Image.open(io.BytesIO(response.content)) as img:
            assert img.size == (638, 1011)

    @pytest.mark.integration
    def test_export_pdf(self, client):
        response = client.post(f"{BASE}/templates/tpl_official_green/export/pdf", json={})
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")
        assert 'filename="carteirinha-membro-completa.pdf"' in response.headers["content-disposition"]

    @pytest.mark.integration
    def test_export_unknown_side(self, client):
        assert client.post(f"{BASE}/templates/tpl_modern/export/inside", json={}).status_code == 404

    @pytest.mark.integration
    def test_export_unknown_template(self, client):
        response = client.post(f"{BASE}/templates/ghost/export/front", json={})
        assert response.status_code == 500
        assert response.json()["retryable"] is True
