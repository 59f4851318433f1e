"""
Product Store

In-memory projection of the signed-in user's remote product collection.
It is never the source of truth: every snapshot replaces the whole list.
Consumers register listeners instead of polling.
"""
from typing import Callable, List, Optional

from app.models.product import Product
from app.utils.logger import log

Listener = Callable[["ProductStore"], None]


class ProductStore:
    """Ordered product list, loading flag and current selection"""

    def __init__(self):
        self._products: List[Product] = []
        self._listeners: List[Listener] = []
        self.loading = False
        self.selected_id: Optional[str] = None

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def get(self, product_id: str) -> Optional[Product]:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    def replace(self, products: List[Product]) -> None:
        """Swap in a new projection and notify listeners."""
        self._products = list(products)
        self._notify()

    def clear(self) -> None:
        self._products = []
        self.selected_id = None
        self._notify()

    def set_loading(self, loading: bool) -> None:
        if self.loading != loading:
            self.loading = loading
            self._notify()

    # ── Selection ────────────────────────────────────────────

    def select(self, product_id: Optional[str]) -> None:
        self.selected_id = product_id
        self._notify()

    @property
    def selected(self) -> Optional[Product]:
        if self.selected_id is None:
            return None
        return self.get(self.selected_id)

    # ── Listeners ────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                log.error(f"Product store listener failed: {str(e)}")
