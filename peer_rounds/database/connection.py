"""Database connection and session management."""
from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from peer_rounds.config import get_settings


@lru_cache
def get_engine() -> Engine:
    """Create and cache the SQLAlchemy engine."""
    settings = get_settings()
    url = settings.database_url

    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=settings.debug,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        url,
        echo=settings.debug,  # Log SQL in debug mode
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=10,
    )


@lru_cache
def get_session_factory() -> sessionmaker:
    """Session factory bound to the cached engine."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=get_engine(),
    )


def SessionLocal() -> Session:
    """Open a new session from the cached factory."""
    return get_session_factory()()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function for FastAPI to get database session.

    Usage in FastAPI:
        @router.get("/rounds")
        def list_rounds(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
