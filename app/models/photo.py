# app/models/photo.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Session, relationship
from app.database import Base
from app.models.snag import utcnow
import uuid

class SnagPhoto(Base):
    """Photo attached to a snag; bytes live in the image store under `filename`"""
    __tablename__ = "snag_photos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    snag_id = Column(String, ForeignKey("snags.id", ondelete="CASCADE"), nullable=False, index=True)

    # image store key
    filename = Column(String, nullable=False, unique=True)

    # pixel size measured at ingestion
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # relationships
    snag = relationship("Snag", back_populates="photos")

    def __init__(self, **kwargs):
        kwargs.setdefault("created_at", utcnow())
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<SnagPhoto {self.filename}>"


def referenced_filenames(db: Session) -> set[str]:
    """Every filename referenced by a live photo record"""
    return {filename for (filename,) in db.query(SnagPhoto.filename).all()}
