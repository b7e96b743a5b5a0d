import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from marketplace.config import Settings, get_settings
from marketplace.core.logging import setup_logging
from marketplace.database import Base, engine
from marketplace.models import import_all_models
from marketplace.routers import (
    health_router,
    marketplace_router,
    supplier_dashboard_router,
    upload_router,
)
from marketplace.services.storage_service import ensure_upload_dir

logger = logging.getLogger(__name__)

setup_logging()
settings: Settings = get_settings()

import_all_models()
Base.metadata.create_all(bind=engine)

upload_dir = ensure_upload_dir(settings.UPLOAD_DIR)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    ensure_upload_dir(settings.UPLOAD_DIR)
    try:
        yield
    finally:
        engine.dispose()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.mount(
    "/" + settings.UPLOAD_URL_PREFIX.strip("/"),
    StaticFiles(directory=str(upload_dir)),
    name="uploads",
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    """Render request validation errors as ``{"error": "field: message; ..."}`` with 400."""
    messages = []
    for error in exc.errors():
        field = " -> ".join(str(part) for part in error["loc"])
        messages.append(f"{field}: {error['msg']}")
    logger.info("Rejected request: %s", messages)
    return JSONResponse(status_code=400, content={"error": "; ".join(messages)})


app.include_router(health_router)
app.include_router(marketplace_router)
app.include_router(supplier_dashboard_router)
app.include_router(upload_router)


__all__ = ["app"]
