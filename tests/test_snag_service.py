import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.models.photo import SnagPhoto, referenced_filenames
from app.models.snag import Snag, SnagPriority, SnagStatus
from app.schemas.snag import SnagCreate, SnagUpdate
from app.core.image_store import ImageDeleteError
from app.services import snag_service
from app.services.image_service import InvalidImageError
from conftest import make_jpeg


@pytest.fixture
def snag(db):
    return snag_service.create_snag(db, SnagCreate(title="Cracked tile", location="Unit 4B"))


def test_create_and_list(db):
    snag_service.create_snag(db, SnagCreate(title="Cracked tile", location="Unit 4B - Bathroom"))
    snag_service.create_snag(
        db,
        SnagCreate(title="Door handle loose", notes="wobbles", priority=SnagPriority.LOW,
                   status=SnagStatus.CLOSED),
    )

    assert len(snag_service.list_snags(db)) == 2
    assert [s.title for s in snag_service.list_snags(db, search="bathroom")] == ["Cracked tile"]
    assert [s.title for s in snag_service.list_snags(db, search="WOBBLE")] == ["Door handle loose"]
    assert [s.title for s in snag_service.list_snags(db, status=SnagStatus.CLOSED)] == ["Door handle loose"]
    assert [s.title for s in snag_service.list_snags(db, priority=SnagPriority.MEDIUM)] == ["Cracked tile"]


def test_update_advances_updated_at_only_on_change(db, snag):
    created = snag.updated_at

    snag_service.update_snag(db, snag, SnagUpdate(title="Cracked tile"))
    assert snag.updated_at == created

    snag_service.update_snag(db, snag, SnagUpdate(status=SnagStatus.IN_PROGRESS))
    assert snag.status == SnagStatus.IN_PROGRESS
    assert snag.updated_at > created
    assert snag.updated_at >= snag.created_at


def test_add_photo_stores_bytes_then_record(db, store, snag, jpeg_bytes):
    before = snag.updated_at

    photo = snag_service.add_photo(db, store, snag, jpeg_bytes, width=100, height=100)

    assert store.load_image_data(photo.filename) == jpeg_bytes
    assert photo.snag_id == snag.id
    assert (photo.width, photo.height) == (100, 100)
    assert snag.photo_count == 1
    assert snag.updated_at > before
    assert referenced_filenames(db) == {photo.filename}


def test_add_photo_write_failure_creates_no_record(db, store, snag, jpeg_bytes, monkeypatch):
    before = snag.updated_at

    def full_disk(data):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(store, "save_image", full_disk)

    with pytest.raises(OSError):
        snag_service.add_photo(db, store, snag, jpeg_bytes)

    assert db.query(SnagPhoto).count() == 0
    db.refresh(snag)
    assert snag.updated_at == before


def test_add_photo_commit_failure_leaves_orphan(db, store, snag, jpeg_bytes, monkeypatch):
    def failing_commit():
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(SQLAlchemyError):
        snag_service.add_photo(db, store, snag, jpeg_bytes)

    monkeypatch.undo()

    assert db.query(SnagPhoto).count() == 0
    assert len(store.list_filenames()) == 1

    assert snag_service.cleanup_orphans(db, store) == (1, len(jpeg_bytes))
    assert store.list_filenames() == set()


def test_add_photo_from_upload_measures_and_compresses(db, store, snag):
    upload = make_jpeg(width=64, height=48)
    photo = snag_service.add_photo_from_upload(db, store, snag, upload, compression_quality=0.5)

    assert (photo.width, photo.height) == (64, 48)
    image = store.load_image(photo.filename)
    assert image.format == "JPEG"
    assert image.size == (64, 48)


def test_add_photo_from_upload_rejects_garbage(db, store, snag):
    with pytest.raises(InvalidImageError):
        snag_service.add_photo_from_upload(db, store, snag, b"not an image")
    assert store.list_filenames() == set()
    assert db.query(SnagPhoto).count() == 0


def test_delete_photo(db, store, snag, jpeg_bytes):
    keep = snag_service.add_photo(db, store, snag, jpeg_bytes)
    gone = snag_service.add_photo(db, store, snag, jpeg_bytes)
    gone_filename = gone.filename
    before = snag.updated_at

    snag_service.delete_photo(db, store, snag, gone)

    assert store.load_image_data(gone_filename) is None
    assert store.load_image_data(keep.filename) == jpeg_bytes
    assert [p.id for p in snag.photos] == [keep.id]
    assert db.query(SnagPhoto).count() == 1
    assert snag.updated_at > before


def test_delete_photo_survives_file_error(db, store, snag, jpeg_bytes, monkeypatch):
    photo = snag_service.add_photo(db, store, snag, jpeg_bytes)
    filename = photo.filename

    def denied(name):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(store, "delete_image", denied)
    snag_service.delete_photo(db, store, snag, photo)
    monkeypatch.undo()

    # record gone, bytes leaked until the next sweep
    assert db.query(SnagPhoto).count() == 0
    assert store.list_filenames() == {filename}

    snag_service.cleanup_orphans(db, store)
    assert store.list_filenames() == set()


def test_delete_snag_cascades(db, store, snag, jpeg_bytes):
    p1 = snag_service.add_photo(db, store, snag, jpeg_bytes)
    p2 = snag_service.add_photo(db, store, snag, make_jpeg(color=(0, 0, 255)))
    other = snag_service.create_snag(db, SnagCreate(title="Other"))
    p3 = snag_service.add_photo(db, store, other, jpeg_bytes)
    k1, k2, snag_id = p1.filename, p2.filename, snag.id

    snag_service.delete_snag(db, store, snag)

    assert store.load_image_data(k1) is None
    assert store.load_image_data(k2) is None
    assert snag_service.get_snag(db, snag_id) is None
    assert db.query(SnagPhoto).filter(SnagPhoto.snag_id == snag_id).count() == 0
    assert store.load_image_data(p3.filename) == jpeg_bytes
    assert referenced_filenames(db) == {p3.filename}


def test_delete_snag_ignores_file_errors(db, store, snag, jpeg_bytes, monkeypatch):
    snag_service.add_photo(db, store, snag, jpeg_bytes)
    snag_service.add_photo(db, store, snag, jpeg_bytes)
    snag_id = snag.id

    def denied(name):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(store, "delete_image", denied)
    snag_service.delete_snag(db, store, snag)
    monkeypatch.undo()

    assert snag_service.get_snag(db, snag_id) is None
    assert db.query(SnagPhoto).count() == 0
    assert snag_service.cleanup_orphans(db, store)[0] == 2


def test_crash_recovery_sweep(db, store, snag, jpeg_bytes):
    p1 = snag_service.add_photo(db, store, snag, jpeg_bytes)
    p2 = snag_service.add_photo(db, store, snag, jpeg_bytes)
    # blob saved, metadata commit never happened
    orphan = store.save_image(jpeg_bytes)

    removed, freed = snag_service.cleanup_orphans(db, store)

    assert (removed, freed) == (1, len(jpeg_bytes))
    assert store.load_image_data(orphan) is None
    assert store.load_image_data(p1.filename) == jpeg_bytes
    assert store.load_image_data(p2.filename) == jpeg_bytes


def test_clear_all_photos(db, store, snag, jpeg_bytes):
    snag_service.add_photo(db, store, snag, jpeg_bytes)
    snag_service.add_photo(db, store, snag, jpeg_bytes)
    stray = store.save_image(b"stray")

    files_removed, photos_deleted = snag_service.clear_all_photos(db, store)

    assert (files_removed, photos_deleted) == (3, 2)
    assert store.load_image_data(stray) is None
    assert store.get_total_storage_size() == 0
    assert db.query(SnagPhoto).count() == 0
    assert snag_service.get_snag(db, snag.id) is not None


def test_clear_all_photos_keeps_records_only_for_files_still_stored(db, store, snag, jpeg_bytes, monkeypatch):
    snag_service.add_photo(db, store, snag, jpeg_bytes)
    snag_service.add_photo(db, store, snag, jpeg_bytes)
    snag_service.add_photo(db, store, snag, jpeg_bytes)

    real_delete = store.delete_image
    calls = []

    def second_call_denied(filename):
        calls.append(filename)
        if len(calls) == 2:
            raise PermissionError(13, "Permission denied")
        real_delete(filename)

    monkeypatch.setattr(store, "delete_image", second_call_denied)

    with pytest.raises(ImageDeleteError) as excinfo:
        snag_service.clear_all_photos(db, store)
    monkeypatch.undo()

    stuck = calls[1]
    assert excinfo.value.failed_filenames == {stuck}
    assert excinfo.value.files_removed == 2
    assert store.list_filenames() == {stuck}
    # every remaining record still resolves to a file
    assert referenced_filenames(db) == {stuck}
    for filename in referenced_filenames(db):
        assert store.load_image_data(filename) is not None
    db.refresh(snag)
    assert [p.filename for p in snag.photos] == [stuck]


def test_prepare_upload_rejects_garbage_without_storing(store):
    with pytest.raises(InvalidImageError):
        snag_service.prepare_upload(b"not an image")
    assert store.list_filenames() == set()

    data, width, height = snag_service.prepare_upload(make_jpeg(width=30, height=10))
    assert (width, height) == (30, 10)
    assert data[:2] == b"\xff\xd8"


def test_seed_sample_snags(db):
    assert snag_service.seed_sample_snags(db) == 4
    assert snag_service.seed_sample_snags(db) == 0
    titles = {s.title for s in snag_service.list_snags(db)}
    assert "Window seal leaking" in titles
    assert db.query(Snag).filter(Snag.status == SnagStatus.CLOSED).count() == 1
