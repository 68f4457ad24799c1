# app/api/deps.py
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.image_store import ImageStore
from app.database import get_db
from app.models.snag import Snag
from app.services import snag_service

def get_image_store(request: Request) -> ImageStore:
    """The process-wide image store built at startup"""
    return request.app.state.image_store

def get_snag_or_404(snag_id: str, db: Session = Depends(get_db)) -> Snag:
    """Look up a snag from the path or fail with 404"""
    snag = snag_service.get_snag(db, snag_id)
    if snag is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Snag not found"
        )
    return snag
