"""
PostgreSQL catalog store (asyncpg).

Schema:
    categories(category_id, category_name)
    products(product_id, name, description, price, stock_quantity,
             image_path, category_id, is_active)

Search plans are compiled into one parameterized statement:

    SELECT ... FROM products p LEFT JOIN categories c ON ...
    WHERE (<filter> OR <filter> ...)
    ORDER BY CASE WHEN <tier 1> THEN 1 ... ELSE n END, <tie-break>
    LIMIT $n

Matching is case-insensitive (ILIKE / lower() equality) and user text is
escaped so "%" and "_" match literally.
"""
import asyncio
import time
from typing import Any, Callable, List, Optional, Tuple

import asyncpg

from grocery_search.core.database_pool import get_pool
from grocery_search.core.logging import get_logger
from grocery_search.core.metrics import record_catalog_error
from grocery_search.services.ai.schema import EnhancedSearchParams
from grocery_search.services.catalog.models import CategoryRef, ProductRecord
from grocery_search.services.catalog.ranking import (
    DEFAULT_LIMIT,
    Condition,
    MatchField,
    MatchKind,
    PlanOrder,
    SearchPlan,
    plan_enhanced_search,
    plan_text_search,
)
from grocery_search.services.catalog.store import CatalogError, CatalogStore, dedupe_products

logger = get_logger(__name__)

PRODUCT_COLUMNS = """
    SELECT p.product_id, p.name, p.description, p.price, p.stock_quantity,
           p.image_path, p.category_id, p.is_active, c.category_name
    FROM products p
    LEFT JOIN categories c ON p.category_id = c.category_id
"""

CATEGORIES_SQL = """
    SELECT DISTINCT c.category_id, c.category_name
    FROM categories c
    JOIN products p ON c.category_id = p.category_id
    ORDER BY c.category_name ASC
"""

_COLUMN_FOR = {
    MatchField.NAME: "p.name",
    MatchField.DESCRIPTION: "p.description",
    MatchField.CATEGORY: "c.category_name",
}

_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters (backslash is the default escape)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def compile_condition(condition: Condition, args: List[Any]) -> str:
    """Render one condition, appending its bind value to `args`."""
    column = _COLUMN_FOR[condition.field]
    if condition.kind is MatchKind.EQUALS:
        args.append(condition.value)
        return f"lower({column}) = lower(${len(args)})"
    if condition.kind is MatchKind.STARTS_WITH:
        args.append(escape_like(condition.value) + "%")
    else:
        args.append("%" + escape_like(condition.value) + "%")
    return f"{column} ILIKE ${len(args)}"


def compile_plan(plan: SearchPlan) -> Tuple[str, List[Any]]:
    """Compile a search plan to SQL text plus positional arguments."""
    args: List[Any] = []

    where = " OR ".join(compile_condition(c, args) for c in plan.filters)
    sql = PRODUCT_COLUMNS + f"    WHERE ({where})\n"

    order_terms = []
    if plan.tiers:
        whens = " ".join(
            f"WHEN {compile_condition(c, args)} THEN {position}"
            for position, c in enumerate(plan.tiers, start=1)
        )
        order_terms.append(f"CASE {whens} ELSE {len(plan.tiers) + 1} END")
    if plan.order is PlanOrder.TIER_THEN_NAME:
        order_terms.append("lower(p.name) ASC")
    order_terms.append("p.product_id ASC")
    sql += "    ORDER BY " + ", ".join(order_terms) + "\n"

    args.append(plan.limit)
    sql += f"    LIMIT ${len(args)}"
    return sql, args


class PostgresCatalog(CatalogStore):
    """Catalog store backed by the shared asyncpg pool."""

    def __init__(self, pool_getter: Callable[[], Optional[asyncpg.Pool]] = get_pool):
        self._pool_getter = pool_getter

    def _require_pool(self, operation: str) -> asyncpg.Pool:
        pool = self._pool_getter()
        if pool is None:
            record_catalog_error(operation)
            logger.error("catalog_pool_unavailable", operation=operation)
            raise CatalogError(operation, "database pool is not initialized")
        return pool

    async def _fetch(self, operation: str, sql: str, args: List[Any]) -> List[asyncpg.Record]:
        pool = self._require_pool(operation)
        start = time.time()
        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(sql, *args)
        except _STORE_ERRORS as exc:
            record_catalog_error(operation)
            logger.error(
                "catalog_query_failed",
                operation=operation,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise CatalogError(operation, f"{operation} failed") from exc

        logger.debug(
            "catalog_query_completed",
            operation=operation,
            rows=len(rows),
            latency_ms=int((time.time() - start) * 1000),
        )
        return rows

    async def get_categories(self) -> List[CategoryRef]:
        rows = await self._fetch("get_categories", CATEGORIES_SQL, [])
        return [CategoryRef(id=row["category_id"], name=row["category_name"]) for row in rows]

    async def _run_plan(self, operation: str, plan: SearchPlan) -> List[ProductRecord]:
        sql, args = compile_plan(plan)
        logger.info(
            "catalog_search_started",
            operation=operation,
            mode=plan.mode,
            filter_count=len(plan.filters),
            tier_count=len(plan.tiers),
            limit=plan.limit,
        )
        rows = await self._fetch(operation, sql, args)
        products = dedupe_products([ProductRecord.from_row(row) for row in rows], plan.limit)
        logger.info("catalog_search_completed", operation=operation, results_count=len(products))
        return products

    async def search_by_text(self, term: str, limit: int = DEFAULT_LIMIT) -> List[ProductRecord]:
        plan = plan_text_search(term, limit)
        if plan is None:
            logger.warning("catalog_text_search_empty_term")
            return []
        return await self._run_plan("search_by_text", plan)

    async def search_enhanced(
        self,
        params: EnhancedSearchParams,
        limit: int = DEFAULT_LIMIT,
    ) -> List[ProductRecord]:
        plan = plan_enhanced_search(params, limit)
        if plan is None:
            logger.warning("catalog_enhanced_search_no_usable_params")
            return []
        return await self._run_plan("search_enhanced", plan)
