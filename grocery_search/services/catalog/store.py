"""
Catalog store interface.

Only the three read operations the search pipeline needs. Implementations
raise CatalogError for any storage failure; an empty result is never used to
signal an error.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from grocery_search.services.ai.schema import EnhancedSearchParams
from grocery_search.services.catalog.models import CategoryRef, ProductRecord
from grocery_search.services.catalog.ranking import DEFAULT_LIMIT


class CatalogError(Exception):
    """Raised when the product store cannot answer a query."""

    def __init__(self, operation: str, message: str):
        super().__init__(message)
        self.operation = operation


class CatalogStore(ABC):
    @abstractmethod
    async def get_categories(self) -> List[CategoryRef]:
        """Categories with at least one product, ordered by name."""

    @abstractmethod
    async def search_by_text(self, term: str, limit: int = DEFAULT_LIMIT) -> List[ProductRecord]:
        """Plain name/description match. Blank term returns [] without querying."""

    @abstractmethod
    async def search_enhanced(
        self,
        params: EnhancedSearchParams,
        limit: int = DEFAULT_LIMIT,
    ) -> List[ProductRecord]:
        """AI-parameterized search. Empty params return [] without querying."""

    async def ping(self) -> Optional[int]:
        """Number of categories if the store is reachable (used by health checks)."""
        return len(await self.get_categories())


def dedupe_products(products: List[ProductRecord], limit: int) -> List[ProductRecord]:
    """Keep the first occurrence of each product id, preserving order, up to `limit`."""
    seen = set()
    unique: List[ProductRecord] = []
    for product in products:
        if product.id in seen:
            continue
        seen.add(product.id)
        unique.append(product)
        if len(unique) >= limit:
            break
    return unique
