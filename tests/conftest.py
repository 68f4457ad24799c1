import os
import tempfile
from io import BytesIO

import pytest

# settings are read at import time, so point everything at a scratch dir first
_SCRATCH = tempfile.mkdtemp(prefix="snagcapture-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_SCRATCH}/app.db")
os.environ.setdefault("IMAGE_DIR", f"{_SCRATCH}/SnagImages")
os.environ.setdefault("LOG_DIR", f"{_SCRATCH}/logs")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from PIL import Image
from sqlalchemy.orm import sessionmaker

from app.core.image_store import ImageStore
from app.database import Base, build_engine, get_db
import app.models.snag  # noqa: F401
import app.models.photo  # noqa: F401


def make_jpeg(width=100, height=100, color=(255, 0, 0), quality=80) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes():
    return make_jpeg()


@pytest.fixture
def store(tmp_path):
    return ImageStore(tmp_path / "SnagImages")


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'snags.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory, store):
    from fastapi.testclient import TestClient
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        app.state.image_store = store
        yield c
    app.dependency_overrides.clear()
