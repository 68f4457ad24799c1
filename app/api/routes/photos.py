# app/api/routes/photos.py
from fastapi import APIRouter, Depends, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from app.api.deps import get_image_store, get_snag_or_404
from app.config import settings
from app.core.file_security import validate_uploaded_file
from app.core.image_store import ImageStore
from app.core.logger import logger
from app.database import get_db
from app.models.snag import Snag
from app.schemas.photo import PhotoResponse, PhotoUploadResponse
from app.services import snag_service
from app.services.image_service import InvalidImageError

router = APIRouter(prefix="/api/v1/snags/{snag_id}/photos", tags=["photos"])

@router.post("/", response_model=PhotoUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_photos(
    files: list[UploadFile],
    snag: Snag = Depends(get_snag_or_404),
    db: Session = Depends(get_db),
    store: ImageStore = Depends(get_image_store)
):
    """
    Attach photos to a snag.

    Every file is decoded and compressed before any is stored, so an
    unreadable file rejects the whole upload. A storage failure partway
    through keeps the photos already attached.
    """

    if len(files) > settings.max_photos_per_upload:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.max_photos_per_upload} photos per upload"
        )

    # validate everything before storing anything
    for file in files:
        validate_uploaded_file(file)

    prepared = []
    for file in files:
        content = await file.read()
        try:
            prepared.append(snag_service.prepare_upload(content, settings.jpeg_quality))
        except InvalidImageError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Could not read image: {file.filename}"
            )

    uploaded_photos = []

    for data, width, height in prepared:
        try:
            photo = snag_service.add_photo(db, store, snag, data, width=width, height=height)
        except OSError as e:
            logger.error(f"Photo write failed for snag {snag.id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_507_INSUFFICIENT_STORAGE,
                detail="Could not save photo"
            )

        uploaded_photos.append(photo)

    return PhotoUploadResponse(
        photos=[PhotoResponse.model_validate(photo) for photo in uploaded_photos],
        total=len(uploaded_photos)
    )

@router.get("/", response_model=list[PhotoResponse])
def list_photos(snag: Snag = Depends(get_snag_or_404)):
    """Photos of a snag, oldest first"""
    return snag.photos

@router.get("/{photo_id}/image")
def get_photo_image(
    photo_id: str,
    snag: Snag = Depends(get_snag_or_404),
    db: Session = Depends(get_db),
    store: ImageStore = Depends(get_image_store)
):
    """Raw JPEG bytes of a photo"""
    photo = snag_service.get_photo(db, snag.id, photo_id)
    data = store.load_image_data(photo.filename) if photo else None

    if data is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Photo not found"
        )

    return Response(content=data, media_type="image/jpeg")

@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_photo(
    photo_id: str,
    snag: Snag = Depends(get_snag_or_404),
    db: Session = Depends(get_db),
    store: ImageStore = Depends(get_image_store)
):
    """Delete a photo"""
    photo = snag_service.get_photo(db, snag.id, photo_id)

    if not photo:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Photo not found"
        )

    snag_service.delete_photo(db, store, snag, photo)
    return None
