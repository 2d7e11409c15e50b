"""
AI search orchestration.

Per-request state machine:

    START ──empty query──▶ REJECTED
      │
      ▼
    PROMPTING ─▶ CALLING_AI ──ok──▶ ENHANCED_SEARCH ──▶ DONE
                     │                    │
                  failure           catalog error
                     ▼                    ▼
                FALLBACK_CHECK ◀──────────┘
                 │          │
             enabled     disabled ─▶ UNAVAILABLE (AI failure) / ERROR (catalog failure)
                 ▼
           FALLBACK_SEARCH ──▶ DONE (fallback=True)
                 │
           catalog error ─▶ ERROR

FALLBACK_SEARCH runs at most once per request. Nothing is shared between
requests.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from grocery_search.core.config import SearchSettings
from grocery_search.core.logging import get_logger
from grocery_search.core.metrics import record_search_outcome, record_search_zero_result
from grocery_search.services.ai.extraction import extract_search_params
from grocery_search.services.ai.llm_client import LLMClient
from grocery_search.services.ai.prompt import build_search_prompt
from grocery_search.services.ai.schema import AIFailure, EnhancedSearchParams
from grocery_search.services.catalog.models import CategoryRef, ProductRecord
from grocery_search.services.catalog.store import CatalogStore

logger = get_logger(__name__)

MESSAGE_QUERY_REQUIRED = "Search query is required"
MESSAGE_AI_UNAVAILABLE = "AI search is temporarily unavailable"
MESSAGE_SEARCH_ERROR = "An error occurred during search"


class SearchState(str, Enum):
    START = "start"
    PROMPTING = "prompting"
    CALLING_AI = "calling_ai"
    ENHANCED_SEARCH = "enhanced_search"
    FALLBACK_CHECK = "fallback_check"
    FALLBACK_SEARCH = "fallback_search"
    # Terminal
    DONE = "done"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


TERMINAL_STATES = {
    SearchState.DONE,
    SearchState.REJECTED,
    SearchState.UNAVAILABLE,
    SearchState.ERROR,
}


@dataclass
class SearchOutcome:
    """Result envelope for one search request."""

    state: SearchState
    search_term: str
    products: List[ProductRecord] = field(default_factory=list)
    corrected_term: Optional[str] = None
    fallback: bool = False
    message: Optional[str] = None
    path: List[SearchState] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state is SearchState.DONE

    @property
    def total_results(self) -> int:
        return len(self.products)


class SearchOrchestrator:
    """Sequences prompt → AI → extraction → catalog, with a single fallback."""

    def __init__(
        self,
        catalog: CatalogStore,
        llm_client: LLMClient,
        fallback_enabled: bool = True,
        result_limit: int = 20,
    ):
        self.catalog = catalog
        self.llm_client = llm_client
        self.fallback_enabled = fallback_enabled
        self.result_limit = result_limit

    @classmethod
    def from_settings(
        cls,
        settings: SearchSettings,
        catalog: CatalogStore,
        llm_client: Optional[LLMClient] = None,
    ) -> "SearchOrchestrator":
        return cls(
            catalog=catalog,
            llm_client=llm_client or LLMClient.from_settings(settings),
            fallback_enabled=settings.fallback_enabled,
            result_limit=settings.result_limit,
        )

    async def _interpret(
        self,
        query: str,
        categories: List[CategoryRef],
    ) -> Union[EnhancedSearchParams, AIFailure]:
        prompt = build_search_prompt(query, categories)
        completion = await self.llm_client.enhance(prompt)
        if isinstance(completion, AIFailure):
            # Already logged by the client
            return completion

        params = extract_search_params(completion)
        if isinstance(params, AIFailure):
            logger.warning(
                f"ai_response_{params.kind.value}",
                query=query,
                failure_kind=params.kind.value,
                failure_category=params.category.value,
                detail=params.detail,
                raw_response=params.raw_excerpt,
            )
            return params

        if params.defaulted_fields:
            logger.warning(
                "ai_response_fields_defaulted",
                query=query,
                failure_category="malformed_response",
                defaulted_fields=params.defaulted_fields,
            )
        logger.debug("ai_response_params", query=query, params=params.to_payload())
        return params

    async def run(self, raw_query: Optional[str]) -> SearchOutcome:
        """Run one search request to a terminal state."""
        start = time.time()
        query = (raw_query or "").strip()
        outcome = SearchOutcome(state=SearchState.START, search_term=query)

        state = SearchState.START
        categories: List[CategoryRef] = []
        params: Optional[EnhancedSearchParams] = None
        catalog_failed = False

        while state not in TERMINAL_STATES:
            outcome.path.append(state)

            if state is SearchState.START:
                if not query:
                    logger.warning("ai_search_query_empty")
                    outcome.message = MESSAGE_QUERY_REQUIRED
                    state = SearchState.REJECTED
                    continue
                logger.info("ai_search_started", query=query)
                try:
                    categories = await self.catalog.get_categories()
                except Exception as exc:
                    self._log_catalog_failure(query, "get_categories", exc)
                    catalog_failed = True
                    state = SearchState.FALLBACK_CHECK
                    continue
                state = SearchState.PROMPTING

            elif state is SearchState.PROMPTING:
                state = SearchState.CALLING_AI

            elif state is SearchState.CALLING_AI:
                interpreted = await self._interpret(query, categories)
                if isinstance(interpreted, AIFailure):
                    state = SearchState.FALLBACK_CHECK
                else:
                    params = interpreted
                    logger.info(
                        "ai_search_params_extracted",
                        query=query,
                        corrected_query=params.corrected_query,
                        keywords_count=len(params.keywords),
                        categories_count=len(params.categories),
                    )
                    state = SearchState.ENHANCED_SEARCH

            elif state is SearchState.ENHANCED_SEARCH:
                try:
                    outcome.products = await self.catalog.search_enhanced(params, self.result_limit)
                except Exception as exc:
                    self._log_catalog_failure(query, "search_enhanced", exc)
                    catalog_failed = True
                    state = SearchState.FALLBACK_CHECK
                    continue
                corrected = params.query_text
                if corrected and corrected != query:
                    outcome.corrected_term = corrected
                state = SearchState.DONE

            elif state is SearchState.FALLBACK_CHECK:
                if self.fallback_enabled:
                    logger.info("ai_search_falling_back", query=query, after_catalog_error=catalog_failed)
                    state = SearchState.FALLBACK_SEARCH
                elif catalog_failed:
                    outcome.message = MESSAGE_SEARCH_ERROR
                    state = SearchState.ERROR
                else:
                    outcome.message = MESSAGE_AI_UNAVAILABLE
                    state = SearchState.UNAVAILABLE

            elif state is SearchState.FALLBACK_SEARCH:
                outcome.fallback = True
                try:
                    outcome.products = await self.catalog.search_by_text(query, self.result_limit)
                except Exception as exc:
                    self._log_catalog_failure(query, "search_by_text", exc)
                    outcome.products = []
                    outcome.message = MESSAGE_SEARCH_ERROR
                    state = SearchState.ERROR
                    continue
                state = SearchState.DONE

        outcome.state = state
        outcome.path.append(state)
        self._record(outcome, start)
        return outcome

    def _log_catalog_failure(self, query: str, operation: str, exc: Exception) -> None:
        logger.error(
            "ai_search_catalog_error",
            query=query,
            operation=operation,
            failure_category="catalog_error",
            error_type=type(exc).__name__,
        )

    def _record(self, outcome: SearchOutcome, start: float) -> None:
        if outcome.state is SearchState.DONE:
            label = "fallback" if outcome.fallback else "enhanced"
            if not outcome.products:
                record_search_zero_result(label)
        else:
            label = outcome.state.value
        record_search_outcome(label)

        logger.info(
            "ai_search_completed",
            query=outcome.search_term,
            outcome=label,
            results_count=outcome.total_results,
            corrected_term=outcome.corrected_term,
            path=[s.value for s in outcome.path],
            latency_ms=int((time.time() - start) * 1000),
        )
