"""
Search plans: which products qualify and in which relevance tier they land.

A plan is backend-neutral data. The Postgres store compiles it into a
parameterized WHERE / ORDER BY CASE query; the in-memory store evaluates the
same conditions in Python. Both therefore rank identically.

Rank tiers are 1-based and the first matching tier wins; a qualifying row
that matches no tier gets len(tiers) + 1.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from grocery_search.services.ai.schema import EnhancedSearchParams

DEFAULT_LIMIT = 20


class MatchField(str, Enum):
    NAME = "name"
    DESCRIPTION = "description"
    CATEGORY = "category_name"


class MatchKind(str, Enum):
    EQUALS = "equals"
    STARTS_WITH = "starts_with"
    CONTAINS = "contains"


class PlanOrder(str, Enum):
    # Text search: tier, then product id
    TIER_THEN_ID = "tier_then_id"
    # Enhanced search: tier, then name ascending
    TIER_THEN_NAME = "tier_then_name"


@dataclass(frozen=True)
class Condition:
    """Case-insensitive text predicate on one product field."""

    field: MatchField
    kind: MatchKind
    value: str

    def matches(self, record: Mapping[str, Any]) -> bool:
        candidate = record.get(self.field.value)
        if candidate is None:
            return False
        haystack = str(candidate).lower()
        needle = self.value.lower()
        if self.kind is MatchKind.EQUALS:
            return haystack == needle
        if self.kind is MatchKind.STARTS_WITH:
            return haystack.startswith(needle)
        return needle in haystack


@dataclass(frozen=True)
class SearchPlan:
    """OR-ed filter conditions plus ordered rank tiers."""

    filters: Tuple[Condition, ...]
    tiers: Tuple[Condition, ...]
    order: PlanOrder
    limit: int = DEFAULT_LIMIT
    # Diagnostic label for logs: "text", "category" or "keyword"
    mode: str = "text"

    def admits(self, record: Mapping[str, Any]) -> bool:
        return any(condition.matches(record) for condition in self.filters)

    def rank(self, record: Mapping[str, Any]) -> int:
        for position, condition in enumerate(self.tiers, start=1):
            if condition.matches(record):
                return position
        return len(self.tiers) + 1


def plan_text_search(term: str, limit: int = DEFAULT_LIMIT) -> Optional[SearchPlan]:
    """
    Plan for the plain fallback search.

    Tiers: exact name, name starts with, name contains, description contains.
    Returns None for a blank term (nothing to query).
    """
    term = (term or "").strip()
    if not term:
        return None

    conditions = (
        Condition(MatchField.NAME, MatchKind.EQUALS, term),
        Condition(MatchField.NAME, MatchKind.STARTS_WITH, term),
        Condition(MatchField.NAME, MatchKind.CONTAINS, term),
        Condition(MatchField.DESCRIPTION, MatchKind.CONTAINS, term),
    )
    return SearchPlan(
        filters=conditions,
        tiers=conditions,
        order=PlanOrder.TIER_THEN_ID,
        limit=limit,
        mode="text",
    )


def plan_enhanced_search(
    params: EnhancedSearchParams,
    limit: int = DEFAULT_LIMIT,
) -> Optional[SearchPlan]:
    """
    Plan for the AI-enhanced search.

    With categories, the filter is "category name contains any of them" and
    keywords only rank. Without categories, the filter is "name or
    description contains the corrected query or any keyword". The tier list
    is the same in both modes:

        name == correctedQuery
        name contains correctedQuery
        name contains keyword (one tier per keyword, in order)
        description contains correctedQuery
        description contains keyword (one tier per keyword, in order)

    Returns None when the params carry nothing to search for.
    """
    if params.is_empty():
        return None

    query = params.query_text
    keywords = params.search_terms
    categories = params.category_names

    tiers = []
    if query:
        tiers.append(Condition(MatchField.NAME, MatchKind.EQUALS, query))
        tiers.append(Condition(MatchField.NAME, MatchKind.CONTAINS, query))
    tiers.extend(Condition(MatchField.NAME, MatchKind.CONTAINS, k) for k in keywords)
    if query:
        tiers.append(Condition(MatchField.DESCRIPTION, MatchKind.CONTAINS, query))
    tiers.extend(Condition(MatchField.DESCRIPTION, MatchKind.CONTAINS, k) for k in keywords)

    if categories:
        filters = [Condition(MatchField.CATEGORY, MatchKind.CONTAINS, c) for c in categories]
        mode = "category"
    else:
        filters = []
        for term in ([query] if query else []) + keywords:
            filters.append(Condition(MatchField.NAME, MatchKind.CONTAINS, term))
            filters.append(Condition(MatchField.DESCRIPTION, MatchKind.CONTAINS, term))
        mode = "keyword"

    return SearchPlan(
        filters=tuple(filters),
        tiers=tuple(tiers),
        order=PlanOrder.TIER_THEN_NAME,
        limit=limit,
        mode=mode,
    )
