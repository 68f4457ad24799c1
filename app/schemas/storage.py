# app/schemas/storage.py
from pydantic import BaseModel

class StorageUsageResponse(BaseModel):
    """On-disk footprint of stored photos"""
    total_bytes: int
    formatted: str
    file_count: int

class CleanupResponse(BaseModel):
    """Orphan sweep result"""
    files_removed: int
    bytes_freed: int

class ClearAllResponse(BaseModel):
    """Clear-all result"""
    files_removed: int
    photos_deleted: int
