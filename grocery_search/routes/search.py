"""
AI search endpoint.

POST /api/ai-search   body: {"query": "..."} (or legacy {"q": "..."})
GET  /api/ai-search?q={query}

When the JSON body has no usable query, the `q` / `query` query-string
parameter is used instead.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from grocery_search.core.logging import get_logger
from grocery_search.models.responses import AISearchRequest, AISearchResponse, ErrorResponse
from grocery_search.services.search.orchestrator import SearchOrchestrator, SearchOutcome, SearchState

logger = get_logger(__name__)

router = APIRouter()

STATUS_FOR_STATE = {
    SearchState.DONE: 200,
    SearchState.REJECTED: 400,
    SearchState.UNAVAILABLE: 503,
    SearchState.ERROR: 500,
}

OPTIONAL_KEYS = ("correctedTerm", "fallback")


def get_search_orchestrator(request: Request) -> SearchOrchestrator:
    """Orchestrator built at startup (see main.lifespan)."""
    return request.app.state.search_orchestrator


async def _read_query(request: Request) -> str:
    body: Dict[str, Any] = {}
    if request.method == "POST":
        try:
            parsed = await request.json()
        except ValueError:
            logger.info("ai_search_body_not_json")
            parsed = None
        if isinstance(parsed, dict):
            body = parsed

    try:
        query = AISearchRequest.model_validate(body).text
    except ValidationError:
        logger.info("ai_search_body_invalid")
        query = ""

    if not query:
        params = request.query_params
        query = (params.get("q") or params.get("query") or "").strip()
    return query


def render_outcome(outcome: SearchOutcome) -> JSONResponse:
    """Map a terminal outcome onto the HTTP envelope."""
    status_code = STATUS_FOR_STATE[outcome.state]

    if not outcome.success:
        error = ErrorResponse(message=outcome.message or "")
        return JSONResponse(status_code=status_code, content=error.model_dump())

    body = AISearchResponse(
        products=outcome.products,
        total_results=outcome.total_results,
        search_term=outcome.search_term,
        corrected_term=outcome.corrected_term,
        fallback=True if outcome.fallback else None,
    )
    content = body.model_dump(mode="json", by_alias=True)
    for key in OPTIONAL_KEYS:
        if content.get(key) is None:
            content.pop(key, None)
    return JSONResponse(status_code=status_code, content=content)


@router.post("/ai-search")
@router.get("/ai-search")
async def ai_search(
    request: Request,
    orchestrator: SearchOrchestrator = Depends(get_search_orchestrator),
):
    """
    AI-enhanced product search.

    Returns 200 with results (possibly from the plain text fallback), 400 for
    an empty query, 503 when the AI is unavailable and fallback is disabled,
    500 when the catalog fails and no fallback is left.
    """
    query = await _read_query(request)
    outcome = await orchestrator.run(query)
    return render_outcome(outcome)
