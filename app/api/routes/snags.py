# app/api/routes/snags.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_image_store, get_snag_or_404
from app.core.image_store import ImageStore
from app.database import get_db
from app.models.snag import Snag, SnagPriority, SnagStatus
from app.schemas.snag import SnagCreate, SnagResponse, SnagSummary, SnagUpdate
from app.services import snag_service

router = APIRouter(prefix="/api/v1/snags", tags=["snags"])

@router.post("/", response_model=SnagResponse, status_code=status.HTTP_201_CREATED)
def create_snag(data: SnagCreate, db: Session = Depends(get_db)):
    """Create a snag"""
    return snag_service.create_snag(db, data)

@router.get("/", response_model=list[SnagSummary])
def list_snags(
    q: str | None = Query(None, description="Search title, location and notes"),
    status: SnagStatus | None = Query(None),
    priority: SnagPriority | None = Query(None),
    db: Session = Depends(get_db)
):
    """List snags, most recently updated first"""
    return snag_service.list_snags(db, search=q, status=status, priority=priority)

@router.get("/{snag_id}", response_model=SnagResponse)
def get_snag(snag: Snag = Depends(get_snag_or_404)):
    """Snag detail with photos"""
    return snag

@router.patch("/{snag_id}", response_model=SnagResponse)
def update_snag(
    data: SnagUpdate,
    snag: Snag = Depends(get_snag_or_404),
    db: Session = Depends(get_db)
):
    """Edit snag fields"""
    return snag_service.update_snag(db, snag, data)

@router.delete("/{snag_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_snag(
    snag: Snag = Depends(get_snag_or_404),
    db: Session = Depends(get_db),
    store: ImageStore = Depends(get_image_store)
):
    """Delete a snag together with its photos"""
    snag_service.delete_snag(db, store, snag)
    return None
