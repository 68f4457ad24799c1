# app/schemas/snag.py
from pydantic import BaseModel, Field
from datetime import datetime

from app.models.snag import SnagPriority, SnagStatus
from app.schemas.photo import PhotoResponse

class SnagCreate(BaseModel):
    """Create snag request"""
    title: str = Field(..., min_length=1, max_length=200)
    notes: str = ""
    location: str = Field("", max_length=200)
    priority: SnagPriority = SnagPriority.MEDIUM
    status: SnagStatus = SnagStatus.OPEN

class SnagUpdate(BaseModel):
    """Partial snag update; omitted fields are left alone"""
    title: str | None = Field(None, min_length=1, max_length=200)
    notes: str | None = None
    location: str | None = Field(None, max_length=200)
    priority: SnagPriority | None = None
    status: SnagStatus | None = None

class SnagResponse(BaseModel):
    """Snag response"""
    id: str
    title: str
    notes: str
    location: str
    priority: SnagPriority
    status: SnagStatus
    created_at: datetime
    updated_at: datetime
    photo_count: int
    photos: list[PhotoResponse]

    class Config:
        from_attributes = True

class SnagSummary(BaseModel):
    """Snag list row"""
    id: str
    title: str
    location: str
    priority: SnagPriority
    status: SnagStatus
    updated_at: datetime
    photo_count: int

    class Config:
        from_attributes = True
