"""Local fallback cache: product records created before a session existed"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from app.models.local_cache import LocalCacheEntry
from app.utils.logger import log


class LocalCache:
    """A single namespaced slot holding a list of product documents"""

    def __init__(self, session_factory: sessionmaker, key: str):
        self.session_factory = session_factory
        self.key = key

    def read(self) -> Optional[List[Dict[str, Any]]]:
        """Cached records, or None if the slot is empty or unreadable."""
        db: Session = self.session_factory()
        try:
            entry = db.get(LocalCacheEntry, self.key)
            if entry is None:
                return None
            payload = entry.payload
            if not isinstance(payload, list):
                log.warning(f"Local cache '{self.key}' holds {type(payload).__name__}, expected a list")
                return None
            return [record for record in payload if isinstance(record, dict)]
        finally:
            db.close()

    def write(self, records: List[Dict[str, Any]]) -> None:
        db: Session = self.session_factory()
        try:
            entry = db.get(LocalCacheEntry, self.key)
            if entry is None:
                db.add(LocalCacheEntry(key=self.key, payload=list(records)))
            else:
                entry.payload = list(records)
            db.commit()
        finally:
            db.close()

    def clear(self) -> None:
        db: Session = self.session_factory()
        try:
            db.query(LocalCacheEntry).filter(LocalCacheEntry.key == self.key).delete()
            db.commit()
        finally:
            db.close()
