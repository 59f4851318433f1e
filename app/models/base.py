"""
Base database model and session management

Only the local fallback cache lives in this database; product data is held
by the remote store.
"""
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool
from app.config import get_settings


def _resolve_url(url: str) -> str:
    """Resolve relative SQLite paths to absolute so cwd changes can't break it"""
    if url.startswith("sqlite:///") and not url.startswith("sqlite:////"):
        rel_path = url[len("sqlite:///"):]
        return "sqlite:///" + os.path.abspath(rel_path)
    return url


def make_engine(url: str):
    """Create an engine for the cache database"""
    url = _resolve_url(url)
    if url in ("sqlite://", "sqlite:///:memory:"):
        # In-memory SQLite must share one connection or the tables vanish
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 60},
            poolclass=NullPool,
        )
    return create_engine(url, pool_pre_ping=True, pool_recycle=300)


settings = get_settings()

# Create database engine
engine = make_engine(settings.database_url)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all models
Base = declarative_base()


def init_db(bind=None):
    """Initialize database tables."""
    # Register models on Base.metadata before create_all
    from app.models import local_cache  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
