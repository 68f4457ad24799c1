# main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config import settings
from app.api.routes import snags, photos, storage
from app.core.image_store import ImageStore
from app.core.logging_middleware import log_requests
from app.core.logger import logger
from app.database import SessionLocal, init_db
from app.services import snag_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ===== startup =====
    logger.info("SnagCapture API starting")
    init_db()

    # one store for the whole process, shared through app.state
    app.state.image_store = ImageStore(settings.image_dir)
    logger.info(f"Photo directory: {settings.image_dir}")

    db = SessionLocal()
    try:
        if settings.seed_sample_data:
            added = snag_service.seed_sample_snags(db)
            if added:
                logger.info(f"Seeded {added} sample snags")

        # no uploads are in flight yet, so the referenced set is complete
        if settings.cleanup_orphans_on_startup:
            try:
                snag_service.cleanup_orphans(db, app.state.image_store)
            except OSError as e:
                logger.error(f"Startup orphan cleanup incomplete: {e}")
    finally:
        db.close()

    yield

    # ===== shutdown =====
    logger.info("SnagCapture API stopped")


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan
)

# ===== request logging (first) =====
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    return await log_requests(request, call_next)
# ===================================

# request size limit
MAX_REQUEST_SIZE = settings.max_photos_per_upload * settings.max_upload_size

@app.middleware("http")
async def limit_upload_size(request: Request, call_next):
    """Reject oversized request bodies"""
    if request.method in ["POST", "PUT", "PATCH"]:
        content_length = request.headers.get("content-length")
        if content_length and int(content_length) > MAX_REQUEST_SIZE:
            return JSONResponse(
                status_code=413,
                content={"detail": f"Request too large. Max: {MAX_REQUEST_SIZE // 1024 // 1024}MB"}
            )
    return await call_next(request)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# routers
app.include_router(snags.router)
app.include_router(photos.router)
app.include_router(storage.router)

@app.get("/health")
def health_check():
    """Health check"""
    return {
        "status": "healthy",
        "service": settings.app_name
    }
