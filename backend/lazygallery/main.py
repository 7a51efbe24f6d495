import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lazygallery.api.galleries import router as galleries_router
from lazygallery.api.media import router as media_router
from lazygallery.api.shared import router as shared_router
from lazygallery.core.config import settings
from lazygallery.core.errors import GalleryError, NotFound
from lazygallery.core.logging import setup_logging
from lazygallery.services.storage import ObjectNotFound, StorageError, get_object_store

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="LazyGallery", version="1.0.0")


def _allowed_origins() -> list[str]:
    origins = [settings.FRONTEND_URL.rstrip("/")]
    if settings.FRONTEND_URLS:
        extra = [item.strip().rstrip("/") for item in settings.FRONTEND_URLS.split(",") if item.strip()]
        origins.extend(extra)
    return list(dict.fromkeys(origins))

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag", "Content-Disposition"],
)

app.include_router(galleries_router)
app.include_router(media_router)
app.include_router(shared_router)


def _error_body(error: str, message: str) -> dict:
    return {"error": error, "message": message}


@app.exception_handler(GalleryError)
async def handle_gallery_error(request: Request, exc: GalleryError):
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.error, exc.message))


@app.exception_handler(ObjectNotFound)
async def handle_object_not_found(request: Request, exc: ObjectNotFound):
    not_found = NotFound()
    return JSONResponse(status_code=not_found.status_code, content=_error_body(not_found.error, not_found.message))


@app.exception_handler(StorageError)
async def handle_storage_error(request: Request, exc: StorageError):
    logger.warning("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content=_error_body("storage_error", str(exc)))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body("internal_error", "Internal server error"))


@app.on_event("startup")
async def ensure_buckets() -> None:
    if not settings.ENSURE_BUCKETS_ON_STARTUP:
        return
    objects = get_object_store()
    for bucket in (settings.BUCKET_MEDIA, settings.BUCKET_THUMBNAILS, settings.BUCKET_ARCHIVES):
        objects.ensure_bucket(bucket)
    logger.info("Object store buckets ready")


@app.get("/health")
async def health():
    return {"status": "ok"}
