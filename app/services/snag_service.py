# app/services/snag_service.py
"""
Snag and photo lifecycle.

Photo bytes and photo records live in two stores with no shared transaction,
so every flow here orders its steps so that a failure can only leave an
orphaned file (cleaned up later by ``cleanup_orphans``), never a record that
points at a missing file:

- add: bytes are written first, the record is committed second
- delete: bytes are removed first (best effort), the record second
"""
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.image_store import ImageDeleteError, ImageStore
from app.core.logger import logger
from app.models.photo import SnagPhoto, referenced_filenames
from app.models.snag import Snag, SnagPriority, SnagStatus
from app.schemas.snag import SnagCreate, SnagUpdate
from app.services.image_service import (
    decode_upload,
    get_image_dimensions,
    prepare_image_for_storage,
)

EDITABLE_FIELDS = ("title", "notes", "location", "priority", "status")


# ===== snags =====

def create_snag(db: Session, data: SnagCreate) -> Snag:
    """Create a snag"""
    snag = Snag(**data.model_dump())
    db.add(snag)
    db.commit()
    db.refresh(snag)
    logger.info(f"Snag created: {snag.id} ({snag.title})")
    return snag


def get_snag(db: Session, snag_id: str) -> Snag | None:
    return db.query(Snag).filter(Snag.id == snag_id).first()


def list_snags(
    db: Session,
    search: str | None = None,
    status: SnagStatus | None = None,
    priority: SnagPriority | None = None,
) -> list[Snag]:
    """Snags, most recently updated first"""
    query = db.query(Snag)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Snag.title.ilike(pattern),
                Snag.location.ilike(pattern),
                Snag.notes.ilike(pattern),
            )
        )
    if status is not None:
        query = query.filter(Snag.status == status)
    if priority is not None:
        query = query.filter(Snag.priority == priority)

    return query.order_by(Snag.updated_at.desc()).all()


def update_snag(db: Session, snag: Snag, data: SnagUpdate) -> Snag:
    """Apply changed fields; updated_at only moves when something changed"""
    changed = False
    for field, value in data.model_dump(exclude_unset=True).items():
        if field not in EDITABLE_FIELDS or value is None:
            continue
        if getattr(snag, field) != value:
            setattr(snag, field, value)
            changed = True

    if changed:
        snag.touch()
        db.commit()
        db.refresh(snag)
    return snag


def delete_snag(db: Session, store: ImageStore, snag: Snag) -> None:
    """Delete a snag, its photo files and (by cascade) its photo records"""
    for photo in list(snag.photos):
        _delete_photo_file(store, photo)

    snag_id = snag.id
    db.delete(snag)
    db.commit()
    logger.info(f"Snag deleted: {snag_id}")


# ===== photos =====

def add_photo(
    db: Session,
    store: ImageStore,
    snag: Snag,
    image_data: bytes,
    width: int | None = None,
    height: int | None = None,
) -> SnagPhoto:
    """
    Store ``image_data`` and attach it to ``snag``.

    If the file write fails nothing is recorded. If the commit fails after
    the write, the file is left as an orphan for the next cleanup.
    """
    filename = store.save_image(image_data)

    try:
        photo = SnagPhoto(filename=filename, width=width, height=height)
        snag.photos.append(photo)
        snag.touch()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning(f"Photo record not saved, {filename} left for orphan cleanup")
        raise

    db.refresh(photo)
    logger.info(f"Photo stored: {filename} -> snag {snag.id}")
    return photo


def prepare_upload(raw_bytes: bytes, compression_quality: float = 0.8) -> tuple[bytes, int, int]:
    """Decode an upload, measure it and compress it to JPEG: (data, width, height)"""
    image = decode_upload(raw_bytes)
    width, height = get_image_dimensions(image)
    return prepare_image_for_storage(image, compression_quality), width, height


def add_photo_from_upload(
    db: Session,
    store: ImageStore,
    snag: Snag,
    raw_bytes: bytes,
    compression_quality: float = 0.8,
) -> SnagPhoto:
    """Prepare an upload and attach it"""
    data, width, height = prepare_upload(raw_bytes, compression_quality)
    return add_photo(db, store, snag, data, width=width, height=height)


def get_photo(db: Session, snag_id: str, photo_id: str) -> SnagPhoto | None:
    return db.query(SnagPhoto)\
        .filter(SnagPhoto.id == photo_id, SnagPhoto.snag_id == snag_id)\
        .first()


def delete_photo(db: Session, store: ImageStore, snag: Snag, photo: SnagPhoto) -> None:
    """Remove a photo's file (best effort), then its record"""
    filename = photo.filename
    _delete_photo_file(store, photo)

    snag.photos.remove(photo)
    snag.touch()
    db.commit()
    logger.info(f"Photo deleted: {filename} from snag {snag.id}")


def _delete_photo_file(store: ImageStore, photo: SnagPhoto) -> None:
    try:
        store.delete_image(photo.filename)
    except OSError as e:
        logger.warning(f"Could not delete {photo.filename}, leaving it for orphan cleanup: {e}")


# ===== maintenance =====

def cleanup_orphans(db: Session, store: ImageStore) -> tuple[int, int]:
    """
    Remove stored files no photo record references.

    Must not run while a photo's file has been written but its record is not
    yet committed; callers run it at startup or from the single request
    context that also performs uploads.
    """
    keep = referenced_filenames(db)
    files_removed, bytes_freed = store.cleanup_orphaned_files(keep)
    logger.bind(storage=True).info(
        f"Orphan cleanup: removed {files_removed} file(s), "
        f"freed {store.format_storage_size(bytes_freed)}"
    )
    return files_removed, bytes_freed


def clear_all_photos(db: Session, store: ImageStore) -> tuple[int, int]:
    """
    Delete every stored file, then the record of every photo whose file is gone.

    If some files could not be removed, their records are kept, the rest are
    deleted, and the ``ImageDeleteError`` is re-raised afterwards.

    Returns (files_removed, photos_deleted).
    """
    error = None
    try:
        files_removed = store.clear_all_images()
    except ImageDeleteError as e:
        error = e
        files_removed = e.files_removed

    still_stored = error.failed_filenames if error else set()
    photos = [p for p in db.query(SnagPhoto).all() if p.filename not in still_stored]
    touched = set()
    for photo in photos:
        snag = photo.snag
        snag.photos.remove(photo)
        if snag.id not in touched:
            snag.touch()
            touched.add(snag.id)
    db.commit()

    logger.bind(storage=True).warning(
        f"All photos cleared: {files_removed} file(s), {len(photos)} record(s)"
    )
    if error:
        raise error
    return files_removed, len(photos)


def sample_snags() -> list[Snag]:
    """Demo snags for a fresh development database"""
    return [
        Snag(
            title="Cracked tile in bathroom",
            notes="Large crack in floor tile near shower. Needs replacement.",
            location="Unit 4B - Master Bathroom",
            priority=SnagPriority.HIGH,
            status=SnagStatus.OPEN,
        ),
        Snag(
            title="Paint touch-up required",
            notes="Minor scuffs on living room wall",
            location="Unit 4B - Living Room",
            priority=SnagPriority.LOW,
            status=SnagStatus.IN_PROGRESS,
        ),
        Snag(
            title="Window seal leaking",
            notes="Water seepage during heavy rain. Urgent fix needed.",
            location="Unit 3A - Bedroom 2",
            priority=SnagPriority.HIGH,
            status=SnagStatus.OPEN,
        ),
        Snag(
            title="Door handle loose",
            notes="Front door handle wobbles. Tighten or replace.",
            location="Unit 2C - Entry",
            priority=SnagPriority.MEDIUM,
            status=SnagStatus.CLOSED,
        ),
    ]


def seed_sample_snags(db: Session) -> int:
    """Insert the demo snags into an empty database; returns how many were added"""
    if db.query(Snag).count():
        return 0
    snags = sample_snags()
    db.add_all(snags)
    db.commit()
    return len(snags)
