"""
Local fallback cache model
Single-device slots holding product records created before a session existed
"""
from sqlalchemy import Column, String, JSON, DateTime
from datetime import datetime, timezone

from app.models.base import Base


class LocalCacheEntry(Base):
    """One namespaced slot holding a serialized list of product documents"""
    __tablename__ = "local_cache"

    key = Column(String, primary_key=True)
    payload = Column(JSON, nullable=False)

    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
