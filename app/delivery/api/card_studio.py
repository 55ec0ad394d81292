# app/delivery/api/card_studio.py
from dataclasses import asdict
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from typing import Optional
import secrets
import logging

from app.config.settings import settings
from app.delivery.schemas.body import (
    AddElementBody, DataSources, ElementPatch, LayerBody, MoveElementBody, OverlayBody,
    PointerBody, PointerUpBody, RenderBody, SelectTemplateBody, TemplatePatch, TemplateSeed,
)
from app.domain.export_service import CardExportService, artifact_basename
from app.domain.interaction import CanvasInteractionEngine, DesignerSession
from app.domain.renderer import render
from app.domain.template_store import TemplateStore

security = HTTPBasic()
logger = logging.getLogger("uvicorn.error")

def verify_basic_auth(creds: HTTPBasicCredentials = Depends(security)) -> None:
    ok_user = secrets.compare_digest(creds.username, settings.BASIC_AUTH_USERNAME)
    ok_pass = secrets.compare_digest(creds.password, settings.BASIC_AUTH_PASSWORD)
    if not (ok_user and ok_pass):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

router = APIRouter(prefix="/card-studio", dependencies=[Depends(verify_basic_auth)])

MEDIA_TYPES = {"png": "image/png", "jpeg": "image/jpeg", "jpg": "image/jpeg"}

# --- state accessors ---

def _store(request: Request) -> TemplateStore:
    return request.app.state.store

def _engine(request: Request) -> CanvasInteractionEngine:
    return request.app.state.engine

def _exporter(request: Request) -> CardExportService:
    service = getattr(request.app.state, "export_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Export service is not ready. Please try again in a moment.",
        )
    return service

def _session(request: Request) -> DesignerSession:
    return request.app.state.session

def _commit(request: Request, session: DesignerSession) -> dict:
    request.app.state.session = session
    return session_json(session, _store(request).saved)

def session_json(session: DesignerSession, saved: bool) -> dict:
    drag = asdict(session.drag) if session.drag else None
    return {
        "templateId": session.template_id,
        "activeLayer": session.active_layer,
        "selectedElementId": session.selected_element_id,
        "state": session.state,
        "drag": {
            "elementId": drag["element_id"], "pointerX": drag["pointer_x"], "pointerY": drag["pointer_y"],
            "elementX": drag["element_x"], "elementY": drag["element_y"],
        } if drag else None,
        "showGrid": session.show_grid,
        "showMargins": session.show_margins,
        "saved": saved,
    }

def _focus(request: Request, template_id: str) -> DesignerSession:
    session = _session(request)
    if session.template_id != template_id:
        session = _engine(request).select_template(session, template_id)
    return session

# --- templates ---

@router.get("/templates")
async def list_templates(request: Request):
    return [t.to_json_dict() for t in _store(request).list_templates()]

@router.post("/templates/save")
async def save_templates(request: Request):
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Template storage unavailable.")
    store = _store(request)
    count = await repository.save_all(store.list_templates())
    store.mark_saved()
    return {"success": True, "saved": count}

@router.post("/templates/load")
async def load_templates(request: Request):
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Template storage unavailable.")
    store = _store(request)
    store.replace_all(await repository.load_all())
    store.mark_saved()
    request.app.state.session = DesignerSession()
    return [t.to_json_dict() for t in store.list_templates()]

@router.post("/templates", status_code=status.HTTP_201_CREATED)
async def create_template(request: Request, seed: Optional[TemplateSeed] = None):
    store = _store(request)
    template = store.create_template(seed.changes() if seed else None)
    _commit(request, _engine(request).select_template(_session(request), template.id))
    return template.to_json_dict()

@router.get("/templates/{template_id}")
async def get_template(request: Request, template_id: str):
    return _store(request).get_template(template_id).to_json_dict()

@router.patch("/templates/{template_id}")
async def update_template(request: Request, template_id: str, patch: TemplatePatch):
    template = _store(request).update_template(template_id, patch.changes())
    if _session(request).template_id == template_id:
        _commit(request, _engine(request).reconcile(_session(request)))
    return template.to_json_dict()

@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(request: Request, template_id: str):
    _store(request).delete_template(template_id)
    if _session(request).template_id == template_id:
        request.app.state.session = DesignerSession()
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# --- elements ---

@router.post("/templates/{template_id}/elements", status_code=status.HTTP_201_CREATED)
async def add_element(request: Request, template_id: str, body: AddElementBody):
    session = _engine(request).add_element(_focus(request, template_id), body.type, body.layer)
    element = _store(request).get_element(template_id, session.selected_element_id)
    return {"element": element.to_json_dict(), "session": _commit(request, session)}

@router.patch("/templates/{template_id}/elements/{element_id}")
async def update_element(request: Request, template_id: str, element_id: str, patch: ElementPatch):
    store = _store(request)
    changes = patch.changes()
    layer = changes.pop("layer", None)
    session = _session(request)
    if changes:
        store.update_element(template_id, element_id, changes)
    if layer is not None:
        session = _engine(request).set_element_layer(_focus(request, template_id), element_id, layer)
    return {"element": store.get_element(template_id, element_id).to_json_dict(),
            "session": _commit(request, session)}

@router.delete("/templates/{template_id}/elements/{element_id}")
async def delete_element(request: Request, template_id: str, element_id: str):
    session = _engine(request).delete_element(_focus(request, template_id), element_id)
    return {"session": _commit(request, session)}

@router.post("/templates/{template_id}/elements/{element_id}/move")
async def move_element(request: Request, template_id: str, element_id: str, body: MoveElementBody):
    return _store(request).move_element(template_id, element_id, body.direction).to_json_dict()

# --- rendering & export ---

@router.post("/templates/{template_id}/render")
async def render_face(request: Request, template_id: str, body: RenderBody):
    template = _store(request).get_template(template_id)
    return render(template, body.side, body.user, body.system).to_json_dict()

@router.post("/templates/{template_id}/export/pdf")
async def export_pdf(request: Request, template_id: str, body: DataSources):
    logger.info(f"=== EXPORT PDF START for {template_id} ===")
    data = await _exporter(request).export_pdf(template_id, body.user, body.system)
    filename = f"{artifact_basename(body.user)}-completa.pdf"
    return Response(content=data, media_type="application/pdf",
                    headers={"Content-Disposition": f'attachment; filename="{filename}"'})

@router.post("/templates/{template_id}/export/{side}")
async def export_face(request: Request, template_id: str, side: str, body: DataSources,
                      fmt: str = Query("png", pattern="^(png|jpe?g)$")):
    if side not in ("front", "back"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown side '{side}'")
    logger.info(f"=== EXPORT {side.upper()} ({fmt}) START for {template_id} ===")
    data = await _exporter(request).export_image(template_id, side, body.user, body.system, fmt)
    ext = "jpg" if fmt.startswith("jp") else "png"
    filename = f"{artifact_basename(body.user)}-{side}.{ext}"
    return Response(content=data, media_type=MEDIA_TYPES[fmt],
                    headers={"Content-Disposition": f'attachment; filename="{filename}"'})

# --- designer session ---

@router.get("/session")
async def get_session(request: Request):
    return session_json(_session(request), _store(request).saved)

@router.post("/session/template")
async def select_template(request: Request, body: SelectTemplateBody):
    return _commit(request, _engine(request).select_template(_session(request), body.template_id))

@router.post("/session/layer")
async def switch_layer(request: Request, body: LayerBody):
    return _commit(request, _engine(request).switch_layer(_session(request), body.side))

@router.post("/session/overlays")
async def set_overlays(request: Request, body: OverlayBody):
    return _commit(request, _engine(request).set_overlays(_session(request), body.grid, body.margins))

@router.post("/session/click-canvas")
async def click_canvas(request: Request):
    return _commit(request, _engine(request).click_canvas(_session(request)))

@router.post("/session/pointer-down")
async def pointer_down(request: Request, body: PointerBody):
    if body.element_id is None:
        return _commit(request, _engine(request).click_canvas(_session(request)))
    return _commit(request, _engine(request).pointer_down(_session(request), body.element_id, body.x, body.y))

@router.post("/session/pointer-move")
async def pointer_move(request: Request, body: PointerBody):
    session = _engine(request).pointer_move(
        _session(request), body.x, body.y, body.canvas_width, body.canvas_height
    )
    return _commit(request, session)

@router.post("/session/pointer-up")
async def pointer_up(request: Request, body: Optional[PointerUpBody] = None):
    element_id = body.element_id if body else None
    return _commit(request, _engine(request).pointer_up(_session(request), element_id))

@router.post("/session/view")
async def editor_view(request: Request, body: DataSources):
    return _engine(request).editor_view(_session(request), body.user, body.system).to_json_dict()
