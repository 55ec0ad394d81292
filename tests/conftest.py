"""Shared pytest fixtures for the Card Studio test suite.

Provides reusable fixtures for:
- A sample 340x215 template with elements on both faces
- An in-memory TemplateStore with deterministic ids
- User and branding records
- A CPU executor for export tests
"""

from __future__ import annotations

import itertools
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.delivery.schemas.card import BrandingRecord, CardTemplate, UserRecord
from app.domain.interaction import CanvasInteractionEngine, DesignerSession
from app.domain.template_store import TemplateStore


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@pytest.fixture
def user() -> UserRecord:
    return UserRecord.model_validate({
        "id": "u1",
        "name": "Maria Pereira",
        "role": "Moradora",
        "unit": "Bloco B - 204",
        "cpfCnpj": "123.456.789-00",
        "admissionDate": "1990-05-02",
        "qrCodeData": "u1",
    })


@pytest.fixture
def system() -> BrandingRecord:
    return BrandingRecord.model_validate({
        "name": "Associação Vila Verde",
        "cnpj": "12.345.678/0001-90",
        "address": "Rua das Flores, 100",
    })


# ---------------------------------------------------------------------------
# Templates & store
# ---------------------------------------------------------------------------

def sample_template_data(template_id: str = "tpl_sample", orientation: str = "landscape") -> dict:
    return {
        "id": template_id,
        "name": "Sample",
        "widthPx": 340,
        "heightPx": 215,
        "orientation": orientation,
        "frontBackground": "#ffffff",
        "backBackground": "#f3f4f6",
        "elements": [
            {"id": "name", "type": "text-dynamic", "label": "Nome", "field": "name", "x": 25, "y": 40,
             "style": {"fontSize": "14px", "color": "#111111"}, "layer": "front"},
            {"id": "photo", "type": "image", "label": "Foto", "field": "avatarUrl", "x": 5, "y": 20,
             "width": 60, "height": 70, "style": {"borderRadius": "6px"}, "layer": "front"},
            {"id": "logo", "type": "image", "label": "Logo", "field": "system.logo", "x": 80, "y": 5,
             "width": 40, "height": 40, "style": {}, "layer": "front"},
            {"id": "caption", "type": "text-static", "label": "Legenda", "content": "SÓCIO", "x": 25, "y": 60,
             "style": {}, "layer": "front"},
            {"id": "qr", "type": "qrcode", "label": "QR", "x": 40, "y": 25, "width": 70, "height": 70,
             "style": {}, "layer": "back"},
            {"id": "bar", "type": "shape", "label": "Barra", "x": 0, "y": 90, "width": 340, "height": 20,
             "style": {"backgroundColor": "#15803d"}, "layer": "back"},
        ],
    }


@pytest.fixture
def template() -> CardTemplate:
    return CardTemplate.model_validate(sample_template_data())


@pytest.fixture
def portrait_template() -> CardTemplate:
    return CardTemplate.model_validate(sample_template_data("tpl_portrait", "portrait"))


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda prefix: f"{prefix}_{next(counter)}"


@pytest.fixture
def store(template, portrait_template, id_factory) -> TemplateStore:
    return TemplateStore([template, portrait_template], id_factory=id_factory)


@pytest.fixture
def engine(store) -> CanvasInteractionEngine:
    return CanvasInteractionEngine(store)


@pytest.fixture
def session(engine) -> DesignerSession:
    return engine.select_template(DesignerSession(), "tpl_sample")


# ---------------------------------------------------------------------------
# Executors
# ---------------------------------------------------------------------------

@pytest.fixture
def cpu_executor():
    executor = ThreadPoolExecutor(max_workers=2)
    yield executor
    executor.shutdown(wait=True)
