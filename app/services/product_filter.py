"""Client-side product filtering by name or status"""
from typing import Callable, List, Sequence

from app.models.product import Product
from app.services.product_store import ProductStore


def filter_products(products: Sequence[Product], query: str) -> List[Product]:
    """Products whose name or status contains the query, case-insensitively, in source order."""
    needle = (query or "").casefold()
    if not needle:
        return list(products)
    return [
        p for p in products
        if needle in p.name.casefold() or needle in p.status.value.casefold()
    ]


class FilteredProducts:
    """Filtered view kept current by listening to a ProductStore"""

    def __init__(self, store: ProductStore, query: str = ""):
        self.store = store
        self._query = query
        self.items: List[Product] = []
        self._unsubscribe: Callable[[], None] = store.subscribe(self._on_change)
        self._recompute()

    @property
    def query(self) -> str:
        return self._query

    @query.setter
    def query(self, value: str) -> None:
        self._query = value or ""
        self._recompute()

    def close(self) -> None:
        self._unsubscribe()

    def _on_change(self, store: ProductStore) -> None:
        self._recompute()

    def _recompute(self) -> None:
        self.items = filter_products(self.store.products, self._query)
