# app/domain/catalog.py
"""What a freshly added element looks like, per type.

This is the only place defaults live; the renderer draws exactly what a
template stores and never fills gaps on its own.
"""
import uuid
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

from app.delivery.schemas.card import CardElement, ELEMENT_TYPES, ElementStyle

if TYPE_CHECKING:
    from app.domain.template_store import TemplateStore

DEFAULT_POSITION: Tuple[float, float] = (20.0, 20.0)

# Boxed types only; text sizes to its content
DEFAULT_SIZES: Dict[str, Tuple[float, float]] = {
    "image": (50.0, 50.0),
    "qrcode": (50.0, 50.0),
    "shape": (100.0, 20.0),
}

DEFAULT_LABELS: Dict[str, str] = {
    "text-static": "Texto",
    "text-dynamic": "Texto",
    "image": "Imagem",
    "qrcode": "QR Code",
    "shape": "Forma",
}

DEFAULT_BINDINGS: Dict[str, Dict[str, str]] = {
    "text-dynamic": {"field": "name"},
    "text-static": {"content": "Texto Fixo"},
    "image": {"field": "avatarUrl"},
}


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def default_style(element_type: str) -> ElementStyle:
    return ElementStyle(
        font_size="12px",
        color="#000000",
        background_color="#cccccc" if element_type == "shape" else "transparent",
        text_align="left",
    )


def new_element(element_type: str, layer: str, element_id: Optional[str] = None, **overrides: Any) -> CardElement:
    if element_type not in ELEMENT_TYPES:
        raise ValueError(f"Unknown element type: {element_type!r}")
    width, height = DEFAULT_SIZES.get(element_type, (None, None))
    data: Dict[str, Any] = {
        "id": element_id or new_id("el"),
        "type": element_type,
        "label": DEFAULT_LABELS[element_type],
        "x": DEFAULT_POSITION[0],
        "y": DEFAULT_POSITION[1],
        "width": width,
        "height": height,
        "style": default_style(element_type),
        "layer": layer,
        **DEFAULT_BINDINGS.get(element_type, {}),
    }
    data.update(overrides)
    return CardElement.model_validate(data)


def add_element(store: "TemplateStore", template_id: str, element_type: str, active_layer: str) -> CardElement:
    """Append a catalog-default element to the active layer of a template."""
    element = new_element(element_type, active_layer, element_id=store.next_id("el"))
    store.add_element(template_id, element)
    return element
