# app/database.py
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings


def build_engine(database_url: str, echo: bool = False):
    """Create an engine; SQLite gets foreign keys switched on per connection"""
    url = make_url(database_url)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, echo=echo, connect_args=connect_args)

    if url.get_backend_name() == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


# database engine
engine = build_engine(settings.database_url, echo=settings.debug)

# session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# base class for all models
Base = declarative_base()


def init_db() -> None:
    """Create tables for every registered model"""
    import app.models.snag  # noqa: F401
    import app.models.photo  # noqa: F401
    Base.metadata.create_all(bind=engine)


# DB session dependency (FastAPI)
def get_db():
    """Open and close a DB session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
