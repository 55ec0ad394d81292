"""Card template data shapes.

Positions and sizes deliberately use two units:

* ``x`` / ``y`` are percentages of the canvas (0-100 nominally). They make a
  template resolution independent: the same element lands on the same spot of
  the on-screen preview and of a 300 dpi export.
* ``width`` / ``height`` are pixels of the design canvas and only matter for
  boxed elements (image, shape, qrcode). Text sizes itself to its content.

Every model serializes with camelCase aliases, which is the exact shape the
external template CRUD service stores.
"""
from typing import Any, Dict, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

ElementType = Literal["text-static", "text-dynamic", "image", "qrcode", "shape"]
Side = Literal["front", "back"]
Orientation = Literal["landscape", "portrait"]
TextAlign = Literal["left", "center", "right"]

ELEMENT_TYPES: Tuple[str, ...] = ("text-static", "text-dynamic", "image", "qrcode", "shape")
SIDES: Tuple[str, ...] = ("front", "back")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ElementStyle(CamelModel):
    # Unknown CSS keys (fontWeight, borderRadius, opacity...) are kept verbatim
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="allow")

    font_size: Optional[str] = None
    color: Optional[str] = None
    background_color: Optional[str] = None
    text_align: Optional[TextAlign] = None

    @field_validator("font_size", mode="before")
    @classmethod
    def _px_suffix(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return f"{v:g}px"
        return v

    def css(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def get(self, key: str, default: Any = None) -> Any:
        return self.css().get(key, default)

    def merged(self, changes: Dict[str, Any]) -> "ElementStyle":
        return ElementStyle.model_validate({**self.css(), **changes})


class CardElement(CamelModel):
    id: str
    type: ElementType
    label: str = ""
    field: Optional[str] = None
    content: Optional[str] = None
    x: float
    y: float
    width: Optional[float] = None   # px, boxed types only
    height: Optional[float] = None  # px, boxed types only
    style: ElementStyle = Field(default_factory=ElementStyle)
    layer: Side

    @model_validator(mode="after")
    def _check_binding(self):
        if self.type == "text-dynamic" and not (self.field or "").strip():
            raise ValueError("text-dynamic elements require a non-empty field")
        if self.type == "text-static" and self.content is None:
            raise ValueError("text-static elements require content")
        return self


class CardTemplate(CamelModel):
    id: str
    name: str
    width_px: float = Field(gt=0)   # long edge
    height_px: float = Field(gt=0)  # short edge
    orientation: Orientation = "landscape"
    front_background: str = "#ffffff"
    back_background: str = "#f3f4f6"
    elements: Tuple[CardElement, ...] = ()

    def background_for(self, side: str) -> str:
        return self.front_background if side == "front" else self.back_background

    def find_element(self, element_id: str) -> Optional[CardElement]:
        return next((el for el in self.elements if el.id == element_id), None)


class UserRecord(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="allow")

    id: Optional[str] = None
    name: str = ""
    role: str = ""
    unit: Optional[str] = None
    cpf_cnpj: Optional[str] = None
    avatar_url: Optional[str] = None
    admission_date: Optional[str] = None
    qr_code_data: Optional[str] = None

    def as_lookup(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class BrandingRecord(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="allow")

    name: str = ""
    cnpj: str = ""
    address: str = ""
    logo_url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    primary_color: Optional[str] = None

    def as_lookup(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# --- Renderer output ---

class RenderNode(CamelModel):
    element_id: str
    type: ElementType
    label: str = ""
    x_percent: float
    y_percent: float
    x: float                        # px within the canvas box
    y: float
    width: Optional[float] = None
    height: Optional[float] = None
    style: ElementStyle = Field(default_factory=ElementStyle)
    content: Optional[str] = None
    image_src: Optional[str] = None
    placeholder: Optional[Literal["avatar", "logo"]] = None
    qr_cells: Optional[Tuple[bool, ...]] = None


class VisualTree(CamelModel):
    template_id: str
    side: Side
    width: float
    height: float
    background: str
    nodes: Tuple[RenderNode, ...] = ()


class GridOverlay(CamelModel):
    spacing: float
    vertical: Tuple[float, ...] = ()
    horizontal: Tuple[float, ...] = ()


class MarginGuide(CamelModel):
    x: float
    y: float
    width: float
    height: float


class EditorView(CamelModel):
    state: Literal["idle", "selected", "dragging"]
    selected_element_id: Optional[str] = None
    tree: VisualTree
    grid: Optional[GridOverlay] = None
    margins: Optional[MarginGuide] = None
