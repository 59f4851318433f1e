"""Models for the Product Research Tracker"""

from app.models.product import (
    Product,
    ProductStatus,
    Competitor,
    Link,
)

from app.models.local_cache import LocalCacheEntry

__all__ = [
    "Product",
    "ProductStatus",
    "Competitor",
    "Link",
    "LocalCacheEntry",
]
