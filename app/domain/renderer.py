# app/domain/renderer.py
import hashlib
from typing import List, Tuple

from app.delivery.schemas.card import (
    BrandingRecord, CardElement, CardTemplate, RenderNode, UserRecord, VisualTree,
)
from app.domain import field_binding
from app.domain.geometry import canvas_box, to_pixels

QR_GRID = 4  # placeholder glyph is QR_GRID x QR_GRID cells


def qr_placeholder_cells(seed: str) -> Tuple[bool, ...]:
    # Seeded by element id so preview and export draw the same glyph
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return tuple(bool(digest[i] & 1) for i in range(QR_GRID * QR_GRID))


def _round_px(value: float) -> float:
    return round(value, 2)


def render_node(element: CardElement, box: Tuple[float, float], user: UserRecord, system: BrandingRecord) -> RenderNode:
    px, py = to_pixels(element.x, element.y, *box)
    node = {
        "element_id": element.id,
        "type": element.type,
        "label": element.label,
        "x_percent": element.x,
        "y_percent": element.y,
        "x": _round_px(px),
        "y": _round_px(py),
        "width": element.width,
        "height": element.height,
        "style": element.style,
    }
    if element.type == "text-dynamic":
        node["content"] = field_binding.resolve(element.field, user, system)
    elif element.type == "text-static":
        node["content"] = element.content or ""
    elif element.type == "image":
        binding = field_binding.resolve_image(element.field, user, system)
        if binding.has_image:
            node["image_src"] = binding.src
        else:
            node["placeholder"] = binding.placeholder
    elif element.type == "qrcode":
        node["qr_cells"] = qr_placeholder_cells(element.id)
    return RenderNode.model_validate(node)


def render(template: CardTemplate, side: str, user: UserRecord, system: BrandingRecord) -> VisualTree:
    """Lay out one face of a card.

    Pure: the same template, side and records always produce an equal tree.
    Node order is the template's element order, which is also paint order.
    """
    if side not in ("front", "back"):
        raise ValueError(f"Unknown side: {side!r}")
    box = canvas_box(template)
    nodes: List[RenderNode] = [
        render_node(el, box, user, system) for el in template.elements if el.layer == side
    ]
    return VisualTree(
        template_id=template.id,
        side=side,
        width=box[0],
        height=box[1],
        background=template.background_for(side),
        nodes=tuple(nodes),
    )
