# app/main.py
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from concurrent.futures import ThreadPoolExecutor
from pydantic import ValidationError
import asyncio
import logging
import os

from app.config.database import build_engine, build_session_factory, init_db
from app.config.settings import settings
from app.delivery.api.card_studio import router
from app.domain.errors import ExportFailed, ExportSuperseded, NotFound
from app.domain.export_service import CardExportService
from app.domain.interaction import CanvasInteractionEngine, DesignerSession
from app.domain.presets import preset_templates
from app.domain.template_store import TemplateStore
from app.infrastructure.database.repository import TemplateRepository

logger = logging.getLogger("uvicorn.error")

async def _bootstrap_store(app: FastAPI) -> TemplateStore:
    store = TemplateStore()
    app.state.repository = None
    app.state.db_engine = build_engine()
    if await init_db(app.state.db_engine):
        app.state.repository = TemplateRepository(build_session_factory(app.state.db_engine))
        store.replace_all(await app.state.repository.load_all())
        store.mark_saved()
    if not store.list_templates() and settings.SEED_PRESETS:
        store.replace_all(preset_templates())
        logger.info("No saved templates; seeded the stock presets.")
    return store

@asynccontextmanager
async def lifespan(app: FastAPI):
    max_workers = min(4, os.cpu_count() or 1)  # Conservative limit
    app.state.executor = ThreadPoolExecutor(max_workers=max_workers)
    app.state.store = await _bootstrap_store(app)
    app.state.engine = CanvasInteractionEngine(app.state.store)
    app.state.session = DesignerSession()
    app.state.export_service = CardExportService(app.state.store, app.state.executor)
    logger.info(f"'{settings.PROJECT_NAME}' started (mode: {settings.ENVIRONMENT}) with "
                f"{len(app.state.store.list_templates())} template(s).")
    logger.info(f"Shared ThreadPoolExecutor created with {max_workers} workers.")
    yield
    logger.info("Shutting down ThreadPoolExecutor...")
    app.state.executor.shutdown(wait=True)
    await app.state.db_engine.dispose()
    logger.info("Card Studio stopped.")

app = FastAPI(
    title="Card Studio Service",
    description="Identity-card template designer: layout editing, field binding, rendering and PNG/JPEG/PDF export",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    errors = [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in exc.errors()]
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": errors})

@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

@app.exception_handler(ExportSuperseded)
async def superseded_handler(request: Request, exc: ExportSuperseded):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

@app.exception_handler(ExportFailed)
async def export_failed_handler(request: Request, exc: ExportFailed):
    logger.error(f"=== EXPORT ERROR for {exc.template_id}: {exc} ===")
    timed_out = isinstance(exc.__cause__, asyncio.TimeoutError)
    return JSONResponse(
        status_code=status.HTTP_504_GATEWAY_TIMEOUT if timed_out else status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "retryable": exc.retryable},
    )

app.include_router(router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    return {"message": "Card Studio Service", "version": "1.0.0", "status": "ok"}

@app.get("/health")
async def health_check(request: Request):
    store = getattr(request.app.state, "store", None)
    return {
        "status": "ok",
        "service": settings.PROJECT_NAME,
        "templates_loaded": len(store.list_templates()) if store else 0,
        "storage": getattr(request.app.state, "repository", None) is not None,
    }
