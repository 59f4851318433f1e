"""
Shared test setup.

Runs before any app module is imported so settings pick up an in-memory
backend, an in-memory SQLite cache database and console-only logging.
"""
import os

import pytest

os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.models.base import init_db, make_engine  # noqa: E402
from app.services.local_cache import LocalCache  # noqa: E402


@pytest.fixture
def local_cache():
    """Empty local cache backed by its own in-memory database"""
    engine = make_engine("sqlite://")
    init_db(bind=engine)
    cache = LocalCache(sessionmaker(bind=engine), "dropship_tracker_v1")
    yield cache
    engine.dispose()
