# app/schemas/photo.py
from pydantic import BaseModel
from datetime import datetime

class PhotoResponse(BaseModel):
    """Photo response"""
    id: str
    snag_id: str
    filename: str
    width: int | None
    height: int | None
    created_at: datetime

    class Config:
        from_attributes = True

class PhotoUploadResponse(BaseModel):
    """Photo upload response"""
    photos: list[PhotoResponse]
    total: int
