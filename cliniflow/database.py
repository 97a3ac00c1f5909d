"""
SQLAlchemy engine, session factory and declarative base shared by every
feature package. Tables are scoped per clinic through ``clinic_id`` columns,
not through separate schemas.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings

_is_sqlite = settings.database_url.startswith("sqlite")

engine = create_engine(
    settings.database_url,
    # the test client runs requests on a worker thread
    connect_args={"check_same_thread": False} if _is_sqlite else {},
    pool_pre_ping=not _is_sqlite,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

Base = declarative_base()


def get_db():
    """
    Request-scoped session dependency.

    Services commit explicitly; anything left uncommitted when the request
    ends is rolled back by ``close()``.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
