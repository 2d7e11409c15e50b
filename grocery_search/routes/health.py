"""
Health check endpoints.
"""
from fastapi import APIRouter, Request

from grocery_search.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/")
async def health_check():
    """Basic liveness check."""
    return {
        "status": "ok",
        "message": "API is running",
    }


@router.get("/catalog")
async def catalog_health(request: Request):
    """
    Readiness of the product catalog.

    Returns:
        status "ok" with the number of searchable categories, or
        "unavailable" when the store cannot be queried.
    """
    orchestrator = request.app.state.search_orchestrator
    try:
        category_count = await orchestrator.catalog.ping()
    except Exception as e:
        logger.warning(
            "catalog_health_unavailable",
            error_type=type(e).__name__,
        )
        return {
            "status": "unavailable",
            "available": False,
            "message": "Catalog store cannot be queried",
        }

    return {
        "status": "ok",
        "available": True,
        "category_count": category_count,
        "ai_configured": bool(orchestrator.llm_client.api_key),
        "fallback_enabled": orchestrator.fallback_enabled,
    }
