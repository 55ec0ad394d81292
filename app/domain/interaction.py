# app/domain/interaction.py
"""Pointer-driven editing of a template canvas.

The editor state lives in an explicit ``DesignerSession`` value. Every event
handler takes the current session and returns the next one; template changes
go through the ``TemplateStore`` as immutable element replacements.

States: idle (nothing selected), selected(element), dragging(element, origin).
"""
from dataclasses import dataclass, replace
from typing import Optional

from app.config.logger import get_logger
from app.config.settings import settings
from app.delivery.schemas.card import (
    BrandingRecord, CardTemplate, EditorView, GridOverlay, MarginGuide, UserRecord,
)
from app.domain import catalog
from app.domain.errors import NotFound
from app.domain.geometry import canvas_box, clamp_percent, round_percent, to_percent
from app.domain.renderer import render
from app.domain.template_store import TemplateStore

logger = get_logger(__name__)

CSS_PX_PER_MM = 96 / 25.4


@dataclass(frozen=True)
class DragOrigin:
    element_id: str
    pointer_x: float
    pointer_y: float
    element_x: float
    element_y: float


@dataclass(frozen=True)
class DesignerSession:
    template_id: Optional[str] = None
    active_layer: str = "front"
    selected_element_id: Optional[str] = None
    drag: Optional[DragOrigin] = None
    show_grid: bool = False
    show_margins: bool = False

    @property
    def state(self) -> str:
        if self.drag is not None:
            return "dragging"
        if self.selected_element_id is not None:
            return "selected"
        return "idle"

    def cleared(self) -> "DesignerSession":
        return replace(self, selected_element_id=None, drag=None)


class CanvasInteractionEngine:
    def __init__(self, store: TemplateStore):
        self.store = store

    def _template(self, session: DesignerSession) -> Optional[CardTemplate]:
        if session.template_id is None:
            return None
        try:
            return self.store.get_template(session.template_id)
        except NotFound:
            return None

    def _require_template(self, session: DesignerSession) -> CardTemplate:
        template = self._template(session)
        if template is None:
            raise NotFound("template", session.template_id or "<none>")
        return template

    # --- navigation ---

    def select_template(self, session: DesignerSession, template_id: str) -> DesignerSession:
        self.store.get_template(template_id)
        self.store.active_template_id = template_id
        return replace(session, template_id=template_id, active_layer="front").cleared()

    def switch_layer(self, session: DesignerSession, side: str) -> DesignerSession:
        if side not in ("front", "back"):
            raise ValueError(f"Unknown side: {side!r}")
        # Elements are layer scoped, so selection never survives a face switch
        return replace(session, active_layer=side).cleared()

    def reconcile(self, session: DesignerSession) -> DesignerSession:
        """Drop a selection or drag whose element left the template or the active face."""
        template = self._template(session)
        tracked = {session.selected_element_id, session.drag.element_id if session.drag else None} - {None}
        if not tracked:
            return session
        if template is None:
            return session.cleared()
        for element_id in tracked:
            element = template.find_element(element_id)
            if element is None or element.layer != session.active_layer:
                return session.cleared()
        return session

    def click_canvas(self, session: DesignerSession) -> DesignerSession:
        return session.cleared()

    def set_overlays(self, session: DesignerSession, grid: Optional[bool] = None,
                     margins: Optional[bool] = None) -> DesignerSession:
        return replace(
            session,
            show_grid=session.show_grid if grid is None else grid,
            show_margins=session.show_margins if margins is None else margins,
        )

    # --- pointer ---

    def pointer_down(self, session: DesignerSession, element_id: str,
                     pointer_x: float, pointer_y: float) -> DesignerSession:
        template = self._template(session)
        if template is None:
            return session
        element = template.find_element(element_id)
        if element is None or element.layer != session.active_layer:
            logger.debug(f"Ignoring pointer down on stale element {element_id}.")
            return session
        origin = DragOrigin(element.id, pointer_x, pointer_y, element.x, element.y)
        return replace(session, selected_element_id=element.id, drag=origin)

    def pointer_move(self, session: DesignerSession, pointer_x: float, pointer_y: float,
                     canvas_w: Optional[float] = None, canvas_h: Optional[float] = None) -> DesignerSession:
        origin = session.drag
        template = self._template(session)
        if origin is None or template is None:
            return session
        if template.find_element(origin.element_id) is None:
            return session.cleared()
        box_w, box_h = canvas_box(template)
        dx, dy = to_percent(pointer_x - origin.pointer_x, pointer_y - origin.pointer_y,
                            canvas_w or box_w, canvas_h or box_h)
        # No clamping mid-drag: elements may sit outside the visible canvas
        self.store.update_element(template.id, origin.element_id, {
            "x": round_percent(origin.element_x + dx),
            "y": round_percent(origin.element_y + dy),
        })
        return session

    def pointer_up(self, session: DesignerSession, element_id: Optional[str] = None) -> DesignerSession:
        origin = session.drag
        if origin is None:
            return session
        if element_id is not None and element_id != origin.element_id:
            return session
        if settings.CLAMP_ON_DROP and session.template_id is not None:
            try:
                element = self.store.get_element(session.template_id, origin.element_id)
                self.store.update_element(session.template_id, element.id, {
                    "x": clamp_percent(element.x), "y": clamp_percent(element.y),
                })
            except NotFound:
                return session.cleared()
        return replace(session, selected_element_id=origin.element_id, drag=None)

    # --- element editing ---

    def add_element(self, session: DesignerSession, element_type: str,
                    layer: Optional[str] = None) -> DesignerSession:
        template = self._require_template(session)
        element = catalog.add_element(self.store, template.id, element_type, layer or session.active_layer)
        return replace(session, active_layer=element.layer, selected_element_id=element.id, drag=None)

    def delete_element(self, session: DesignerSession, element_id: str) -> DesignerSession:
        template = self._require_template(session)
        self.store.remove_element(template.id, element_id)
        if session.selected_element_id == element_id:
            return session.cleared()
        return session

    def set_element_layer(self, session: DesignerSession, element_id: str, side: str) -> DesignerSession:
        template = self._require_template(session)
        self.store.update_element(template.id, element_id, {"layer": side})
        if session.selected_element_id == element_id and side != session.active_layer:
            return session.cleared()
        return session

    # --- view ---

    def editor_view(self, session: DesignerSession, user: UserRecord, system: BrandingRecord) -> EditorView:
        template = self._require_template(session)
        tree = render(template, session.active_layer, user, system)
        selected = session.selected_element_id
        if selected is not None:
            # Raise the selection visually; the stored order is untouched
            nodes = [n for n in tree.nodes if n.element_id != selected]
            nodes += [n for n in tree.nodes if n.element_id == selected]
            tree = tree.model_copy(update={"nodes": tuple(nodes)})
        return EditorView(
            state=session.state,
            selected_element_id=selected,
            tree=tree,
            grid=grid_overlay(tree.width, tree.height) if session.show_grid else None,
            margins=margin_guide(tree.width, tree.height) if session.show_margins else None,
        )


def grid_overlay(width: float, height: float, spacing: float = None) -> GridOverlay:
    spacing = spacing or settings.GRID_SIZE_PX
    vertical = tuple(float(v) for v in range(0, int(width) + 1, int(spacing)))
    horizontal = tuple(float(h) for h in range(0, int(height) + 1, int(spacing)))
    return GridOverlay(spacing=spacing, vertical=vertical, horizontal=horizontal)


def margin_guide(width: float, height: float, inset_mm: float = None) -> MarginGuide:
    inset = round((inset_mm if inset_mm is not None else settings.MARGIN_GUIDE_MM) * CSS_PX_PER_MM, 2)
    return MarginGuide(x=inset, y=inset, width=max(0.0, width - 2 * inset), height=max(0.0, height - 2 * inset))
