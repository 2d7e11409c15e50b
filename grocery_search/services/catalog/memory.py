"""
In-process catalog store.

Evaluates the same search plans as the Postgres store, in Python. Used when
running without a database and in tests.
"""
from typing import Iterable, List, Optional

from grocery_search.core.logging import get_logger
from grocery_search.services.ai.schema import EnhancedSearchParams
from grocery_search.services.catalog.models import CategoryRef, ProductRecord
from grocery_search.services.catalog.ranking import (
    DEFAULT_LIMIT,
    PlanOrder,
    SearchPlan,
    plan_enhanced_search,
    plan_text_search,
)
from grocery_search.services.catalog.store import CatalogStore, dedupe_products

logger = get_logger(__name__)


class InMemoryCatalog(CatalogStore):
    def __init__(
        self,
        products: Iterable[ProductRecord] = (),
        categories: Optional[Iterable[CategoryRef]] = None,
    ):
        self._products: List[ProductRecord] = list(products)
        self._categories: Optional[List[CategoryRef]] = list(categories) if categories is not None else None
        self.queries_issued = 0

    async def get_categories(self) -> List[CategoryRef]:
        if self._categories is not None:
            used = {p.category_id for p in self._products}
            categories = [c for c in self._categories if c.id in used]
        else:
            by_id = {
                p.category_id: CategoryRef(id=p.category_id, name=p.category_name)
                for p in self._products
                if p.category_id is not None and p.category_name
            }
            categories = list(by_id.values())
        return sorted(categories, key=lambda c: c.name)

    def _run_plan(self, plan: SearchPlan) -> List[ProductRecord]:
        self.queries_issued += 1
        scored = []
        for product in self._products:
            row = product.model_dump()
            if not plan.admits(row):
                continue
            tier = plan.rank(row)
            if plan.order is PlanOrder.TIER_THEN_NAME:
                # same collation as lower(p.name) in the SQL store
                key = (tier, product.name.casefold(), product.id)
            else:
                key = (tier, "", product.id)
            scored.append((key, product))

        scored.sort(key=lambda item: item[0])
        products = dedupe_products([product for _, product in scored], plan.limit)
        logger.debug("memory_catalog_search", mode=plan.mode, results_count=len(products))
        return products

    async def search_by_text(self, term: str, limit: int = DEFAULT_LIMIT) -> List[ProductRecord]:
        plan = plan_text_search(term, limit)
        if plan is None:
            return []
        return self._run_plan(plan)

    async def search_enhanced(
        self,
        params: EnhancedSearchParams,
        limit: int = DEFAULT_LIMIT,
    ) -> List[ProductRecord]:
        plan = plan_enhanced_search(params, limit)
        if plan is None:
            return []
        return self._run_plan(plan)
