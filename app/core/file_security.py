# app/core/file_security.py
import os
from fastapi import UploadFile, HTTPException, status

from app.config import settings

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".heic"}
ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/heic",
}

def validate_file_extension(filename: str | None) -> None:
    """Check the file extension"""
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type not allowed. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

def validate_file_size(file: UploadFile) -> None:
    """Check the file size"""
    file.file.seek(0, 2)  # seek to end
    size = file.file.tell()
    file.file.seek(0)

    if size > settings.max_upload_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Max: {settings.max_upload_size // 1024 // 1024}MB"
        )

def validate_mime_type(file: UploadFile) -> None:
    """Check the declared content type"""
    if file.content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type not allowed. Uploaded type: {file.content_type}"
        )

def validate_uploaded_file(file: UploadFile) -> None:
    """Run every upload check"""
    validate_file_extension(file.filename)
    validate_file_size(file)
    validate_mime_type(file)
