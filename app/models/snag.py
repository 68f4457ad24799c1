# app/models/snag.py
from datetime import datetime, timedelta, timezone
from sqlalchemy import Column, String, Text, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from app.database import Base
import uuid
import enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SnagPriority(str, enum.Enum):
    """Snag priority"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def label(self) -> str:
        return self.value.title()


class SnagStatus(str, enum.Enum):
    """Snag status"""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class Snag(Base):
    """Construction defect record"""
    __tablename__ = "snags"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    title = Column(String, nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    location = Column(String, nullable=False, default="")
    priority = Column(SQLEnum(SnagPriority), nullable=False, default=SnagPriority.MEDIUM)
    status = Column(SQLEnum(SnagStatus), nullable=False, default=SnagStatus.OPEN)

    # timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # relationships
    photos = relationship(
        "SnagPhoto",
        back_populates="snag",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SnagPhoto.created_at",
    )

    def __init__(self, **kwargs):
        kwargs.setdefault("title", "")
        kwargs.setdefault("notes", "")
        kwargs.setdefault("location", "")
        kwargs.setdefault("priority", SnagPriority.MEDIUM)
        kwargs.setdefault("status", SnagStatus.OPEN)
        now = utcnow()
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", kwargs["created_at"])
        super().__init__(**kwargs)

    @property
    def photo_count(self) -> int:
        return len(self.photos)

    def touch(self) -> None:
        """Advance updated_at; always moves forward even if the clock did not"""
        now = utcnow()
        previous = _as_aware(self.updated_at or self.created_at)
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        self.updated_at = now

    def __repr__(self):
        return f"<Snag {self.title!r} - {self.status}>"


def _as_aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
