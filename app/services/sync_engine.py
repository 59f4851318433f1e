"""
Product Sync Engine

Keeps the ProductStore a projection of the signed-in user's remote
collection:

1. Subscribe to <namespace>/<user_id>/products
2. On every snapshot: map documents to Products (storage key wins over any
   id in the body), order newest first, replace the store wholesale
3. On an empty snapshot: migrate records from the local fallback cache into
   the remote collection once, then clear the cache

Subscription errors end loading and leave the last collection in place;
there is no automatic resubscribe.
"""
import asyncio
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.connectors.base import CollectionPath, Document, DocumentStore, Subscription
from app.models.product import Product
from app.services.local_cache import LocalCache
from app.services.product_store import ProductStore
from app.utils.logger import log


class SyncState(str, Enum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    SYNCED = "synced"
    FAILED = "failed"


def sort_products(products: List[Product]) -> List[Product]:
    """Newest first by createdAt; missing timestamps count as 0 and sort last."""
    return sorted(products, key=lambda p: p.sort_key, reverse=True)


def map_snapshot(documents: List[Document]) -> List[Product]:
    """Documents -> ordered Products, skipping any that fail validation."""
    products = []
    for doc in documents:
        try:
            products.append(Product.from_document(doc.key, doc.data))
        except ValidationError as e:
            log.warning(f"Skipping malformed product document {doc.key}: {str(e)}")
    return sort_products(products)


class SyncEngine:
    """Live subscription for one user's product collection"""

    def __init__(
        self,
        store: DocumentStore,
        product_store: ProductStore,
        path: CollectionPath,
        local_cache: Optional[LocalCache] = None,
    ):
        self.store = store
        self.product_store = product_store
        self.path = path
        self.local_cache = local_cache

        self.state = SyncState.UNSUBSCRIBED
        self.last_error: Optional[str] = None
        self._subscription: Optional[Subscription] = None
        self._migration_task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self.state in (SyncState.SUBSCRIBING, SyncState.SYNCED)

    async def start(self) -> None:
        """Open the live subscription."""
        if self.state != SyncState.UNSUBSCRIBED:
            log.warning(f"Sync for {self.path} already started ({self.state.value})")
            return

        self.state = SyncState.SUBSCRIBING
        self.last_error = None
        self.product_store.set_loading(True)
        log.info(f"Subscribing to {self.path}")

        try:
            subscription = await self.store.subscribe(self.path, self._on_snapshot, self._on_error)
        except Exception as e:
            self._on_error(e)
            return

        if not self.active:
            # Stopped or failed while the subscription was being opened
            await subscription.aclose()
            return
        self._subscription = subscription

    async def stop(self) -> None:
        """Cancel the subscription and any in-flight migration."""
        self.state = SyncState.UNSUBSCRIBED
        self.product_store.set_loading(False)

        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.aclose()
            log.info(f"Unsubscribed from {self.path}")

        if self._migration_task is not None and not self._migration_task.done():
            # Cache is only cleared after the writes settle, so nothing is lost
            self._migration_task.cancel()

    async def wait_for_migration(self) -> int:
        """Await an in-flight migration; returns the number of records migrated."""
        if self._migration_task is None:
            return 0
        try:
            return await self._migration_task
        except asyncio.CancelledError:
            return 0

    # ── Collaborator callbacks ───────────────────────────────

    def _on_snapshot(self, documents: List[Document]) -> None:
        if not self.active:
            return

        products = map_snapshot(documents)
        self.product_store.replace(products)
        self.state = SyncState.SYNCED
        self.product_store.set_loading(False)
        log.debug(f"Snapshot for {self.path}: {len(products)} products")

        if not documents:
            self._maybe_migrate()

    def _on_error(self, error: Exception) -> None:
        log.error(f"Product sync error for {self.path}: {str(error)}")
        self.last_error = str(error)
        self.product_store.set_loading(False)
        if self.state == SyncState.UNSUBSCRIBED:
            return

        self.state = SyncState.FAILED
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()

    # ── Local cache migration ────────────────────────────────

    def _maybe_migrate(self) -> None:
        if self.local_cache is None:
            return
        if self._migration_task is not None and not self._migration_task.done():
            return
        self._migration_task = asyncio.get_running_loop().create_task(self._migrate())

    async def _migrate(self) -> int:
        try:
            records = self.local_cache.read()
        except Exception as e:
            log.error(f"Could not read local cache '{self.local_cache.key}': {str(e)}")
            return 0
        if not records:
            return 0

        log.info(f"Migrating {len(records)} cached products to {self.path}")

        keys: List[str] = []
        writes = []
        for record in records:
            document = self._cached_document(record)
            if document is None:
                continue
            keys.append(document["id"])
            writes.append(self.store.merge_write(self.path, document["id"], document))

        results = await asyncio.gather(*writes, return_exceptions=True)

        failed = 0
        for key, result in zip(keys, results):
            if isinstance(result, Exception):
                failed += 1
                log.error(f"Failed to migrate cached product {key}: {str(result)}")

        # One-shot: the slot is cleared once every write has settled
        try:
            self.local_cache.clear()
        except Exception as e:
            log.error(f"Could not clear local cache '{self.local_cache.key}': {str(e)}")

        migrated = len(keys) - failed
        log.info(f"Local cache migration finished: {migrated} migrated, {failed} failed")
        return migrated

    @staticmethod
    def _cached_document(record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        key = record.get("id")
        if not key:
            log.warning("Skipping cached product without an id")
            return None
        try:
            return Product.from_document(str(key), record).to_document()
        except ValidationError as e:
            # Written as stored rather than lost when the cache is cleared
            log.warning(f"Migrating cached product {key} without normalizing: {str(e)}")
            return {**record, "id": str(key)}
