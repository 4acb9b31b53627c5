"""
Database session management for ChatVault
SQLAlchemy engine, session factory and declarative base
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from chatvault.config import settings


def _engine_options(url: str) -> dict:
    """SQLite needs a shared connection across threads (used for tests and local runs)"""
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options
    return {"pool_pre_ping": True}


# Create database engine
# echo: Log all SQL statements when DEBUG=True
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL)
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all models
Base = declarative_base()


def get_db():
    """
    Dependency for FastAPI endpoints to get database session
    Automatically closes session after request

    Pending transactions are rolled back when the request fails so a
    dirty session never leaks into the pool.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def create_tables():
    """
    Create all tables in the database
    Called during application startup

    Note: Import models here to ensure they're registered with Base.metadata
    """
    from chatvault import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
