"""
Product Mutation Gateway

Merge-writes against the signed-in user's remote collection. Local state is
never patched here; it catches up with the next snapshot.

Every operation is a no-op without an active session. Write failures are
logged and swallowed, never retried. Competitor and link edits rebuild the
whole array from the local projection, so concurrent edits to the same array
are last-writer-wins.
"""
from typing import Any, Callable, Dict, List, Optional

from app.connectors.base import AuthUser, CollectionPath, DocumentStore
from app.models.product import (
    COMPETITOR_FIELDS,
    EDITABLE_FIELDS,
    LINK_FIELDS,
    Product,
    ProductStatus,
    new_link,
    new_product,
)
from app.services.product_store import ProductStore
from app.utils.helpers import generate_id, now_ms
from app.utils.logger import log

UserProvider = Callable[[], Optional[AuthUser]]


class MutationGateway:
    """Create, edit and delete products for the current user"""

    def __init__(
        self,
        store: DocumentStore,
        product_store: ProductStore,
        current_user: UserProvider,
        namespace: str,
    ):
        self.store = store
        self.product_store = product_store
        self.current_user = current_user
        self.namespace = namespace

    def _path(self) -> Optional[CollectionPath]:
        user = self.current_user()
        if user is None:
            return None
        return CollectionPath(namespace=self.namespace, user_id=user.id)

    async def _write(self, path: CollectionPath, product_id: str, data: Dict[str, Any]) -> bool:
        try:
            await self.store.merge_write(path, product_id, data)
            return True
        except Exception as e:
            log.error(f"Error updating product {product_id}: {str(e)}")
            return False

    def _local(self, product_id: str) -> Optional[Product]:
        product = self.product_store.get(product_id)
        if product is None:
            log.warning(f"Product {product_id} is not in the local collection")
        return product

    # ── Products ─────────────────────────────────────────────

    async def create_product(self) -> Optional[str]:
        """Write a defaulted product; returns its id, or None if nothing was written."""
        path = self._path()
        if path is None:
            return None

        product = new_product(generate_id(), now_ms())
        try:
            await self.store.merge_write(path, product.id, product.to_document())
        except Exception as e:
            log.error(f"Error adding product: {str(e)}")
            return None

        log.info(f"Created product {product.id}")
        return product.id

    async def update_field(self, product_id: str, field: str, value: Any) -> bool:
        """Merge-write a single top-level field."""
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"'{field}' is not an editable product field")
        if field == "status":
            value = ProductStatus(value).value

        path = self._path()
        if path is None:
            return False
        return await self._write(path, product_id, {field: value})

    async def delete_product(self, product_id: str) -> bool:
        """Delete a product; clears the selection if it pointed at it."""
        path = self._path()
        if path is None:
            return False

        try:
            await self.store.delete(path, product_id)
        except Exception as e:
            log.error(f"Error deleting product {product_id}: {str(e)}")
            return False

        if self.product_store.selected_id == product_id:
            self.product_store.select(None)
        log.info(f"Deleted product {product_id}")
        return True

    # ── Competitors ──────────────────────────────────────────

    async def update_competitor(self, product_id: str, index: int, field: str, value: Any) -> bool:
        """Replace one field of the competitor at a position, keeping the others as they are."""
        if field not in COMPETITOR_FIELDS:
            raise ValueError(f"'{field}' is not a competitor field")

        path = self._path()
        if path is None:
            return False
        product = self._local(product_id)
        if product is None:
            return False
        if not 0 <= index < len(product.competitors):
            log.warning(f"Competitor index {index} out of range for product {product_id}")
            return False

        competitors = [c.to_document() for c in product.competitors]
        competitors[index] = {**competitors[index], field: value}
        return await self._write(path, product_id, {"competitors": competitors})

    # ── Other links ──────────────────────────────────────────

    async def add_link(self, product_id: str) -> Optional[str]:
        """Append an empty link; returns its id."""
        path = self._path()
        if path is None:
            return None
        product = self._local(product_id)
        if product is None:
            return None

        link = new_link(generate_id())
        links = self._links(product) + [link.to_document()]
        if not await self._write(path, product_id, {"otherLinks": links}):
            return None
        return link.id

    async def update_link(self, product_id: str, link_id: str, field: str, value: Any) -> bool:
        if field not in LINK_FIELDS:
            raise ValueError(f"'{field}' is not a link field")

        path = self._path()
        if path is None:
            return False
        product = self._local(product_id)
        if product is None:
            return False

        links = [
            {**link, field: value} if link["id"] == link_id else link
            for link in self._links(product)
        ]
        return await self._write(path, product_id, {"otherLinks": links})

    async def delete_link(self, product_id: str, link_id: str) -> bool:
        path = self._path()
        if path is None:
            return False
        product = self._local(product_id)
        if product is None:
            return False

        links = [link for link in self._links(product) if link["id"] != link_id]
        return await self._write(path, product_id, {"otherLinks": links})

    @staticmethod
    def _links(product: Product) -> List[Dict[str, Any]]:
        return [link.to_document() for link in product.other_links]
