# app/api/routes/storage.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_image_store
from app.core.image_store import ImageDeleteError, ImageStore, OrphanCleanupError
from app.core.logger import logger
from app.database import get_db
from app.schemas.storage import CleanupResponse, ClearAllResponse, StorageUsageResponse
from app.services import snag_service

router = APIRouter(prefix="/api/v1/storage", tags=["storage"])

@router.get("/", response_model=StorageUsageResponse)
def get_storage_usage(store: ImageStore = Depends(get_image_store)):
    """Disk space used by stored photos"""
    total = store.get_total_storage_size()
    return StorageUsageResponse(
        total_bytes=total,
        formatted=store.format_storage_size(total),
        file_count=len(store.list_filenames())
    )

@router.post("/cleanup", response_model=CleanupResponse)
def cleanup_orphans(
    db: Session = Depends(get_db),
    store: ImageStore = Depends(get_image_store)
):
    """Remove photo files no snag references"""
    try:
        files_removed, bytes_freed = snag_service.cleanup_orphans(db, store)
    except OrphanCleanupError as e:
        logger.error(f"Orphan cleanup incomplete: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Removed {e.files_removed} file(s), {len(e.failures)} could not be removed"
        )
    return CleanupResponse(files_removed=files_removed, bytes_freed=bytes_freed)

@router.delete("/", response_model=ClearAllResponse)
def clear_all_photos(
    confirm: bool = Query(False, description="Must be true"),
    db: Session = Depends(get_db),
    store: ImageStore = Depends(get_image_store)
):
    """Delete every photo of every snag"""
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Pass confirm=true to delete all photos"
        )

    try:
        files_removed, photos_deleted = snag_service.clear_all_photos(db, store)
    except ImageDeleteError as e:
        logger.error(f"Clear all photos incomplete: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Removed {e.files_removed} file(s), {len(e.failures)} could not be removed"
        )
    except OSError as e:
        logger.error(f"Clear all photos failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not delete all photo files"
        )
    return ClearAllResponse(files_removed=files_removed, photos_deleted=photos_deleted)
