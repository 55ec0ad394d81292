from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

from app.delivery.schemas.card import (
    BrandingRecord, CamelModel, CardElement, ElementType, Orientation, Side, UserRecord,
)

class TemplateSeed(CamelModel):
    name: Optional[str] = None
    width_px: Optional[float] = Field(default=None, gt=0)
    height_px: Optional[float] = Field(default=None, gt=0)
    orientation: Optional[Orientation] = None
    front_background: Optional[str] = None
    back_background: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

class TemplatePatch(TemplateSeed):
    elements: Optional[List[CardElement]] = None

class AddElementBody(CamelModel):
    type: ElementType
    # Defaults to the session's active layer
    layer: Optional[Side] = None

class ElementPatch(CamelModel):
    label: Optional[str] = None
    field: Optional[str] = None
    content: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    layer: Optional[Side] = None
    style: Optional[Dict[str, Any]] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)

class MoveElementBody(BaseModel):
    direction: Literal["up", "down"]

class SelectTemplateBody(CamelModel):
    template_id: str

class PointerBody(CamelModel):
    x: float
    y: float
    element_id: Optional[str] = None
    # On-screen canvas size when the editor is zoomed; template box otherwise
    canvas_width: Optional[float] = Field(default=None, gt=0)
    canvas_height: Optional[float] = Field(default=None, gt=0)

class PointerUpBody(CamelModel):
    element_id: Optional[str] = None

class LayerBody(BaseModel):
    side: Side

class OverlayBody(BaseModel):
    grid: Optional[bool] = None
    margins: Optional[bool] = None

class DataSources(CamelModel):
    user: UserRecord = Field(default_factory=UserRecord)
    system: BrandingRecord = Field(default_factory=BrandingRecord)

class RenderBody(DataSources):
    side: Side = "front"
