"""
Prometheus scrape endpoint.

GET /metrics
"""
from fastapi import APIRouter, Response

from grocery_search.core.logging import get_logger
from grocery_search.core.metrics import get_metrics, get_metrics_content_type

logger = get_logger(__name__)
router = APIRouter()


@router.get("")
async def metrics() -> Response:
    """HTTP, AI-call and search-outcome metrics in Prometheus text format."""
    try:
        payload = get_metrics()
    except Exception as e:
        logger.error("metrics_collection_failed", error_type=type(e).__name__, exc_info=True)
        payload = b"# metrics collection failed\n"
    return Response(content=payload, media_type=get_metrics_content_type())
