"""
Prometheus metrics collection module.

Metrics Categories:
- RED Metrics: Rate, Errors, Duration of HTTP requests
- AI Metrics: upstream model calls, latency and failure kinds
- Search Metrics: pipeline outcomes, zero-result searches, catalog errors

All metrics follow Prometheus naming conventions:
- Counters: _total suffix
- Histograms: _seconds suffix for duration
"""
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

registry = REGISTRY

# ============================================================================
# RED METRICS - Rate, Errors, Duration
# ============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
    registry=registry,
)

http_errors_total = Counter(
    "http_errors_total",
    "Total number of HTTP errors",
    ["method", "endpoint", "status_code"],
    registry=registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=registry,
)

# ============================================================================
# AI METRICS
# ============================================================================

llm_requests_total = Counter(
    "llm_requests_total",
    "Total number of calls to the AI model endpoint",
    ["outcome"],  # "success" | "failure"
    registry=registry,
)

llm_request_duration_seconds = Histogram(
    "llm_request_duration_seconds",
    "AI model call latency in seconds",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0],
    registry=registry,
)

llm_errors_total = Counter(
    "llm_errors_total",
    "Total number of AI failures by kind",
    ["kind", "category"],
    registry=registry,
)

# ============================================================================
# SEARCH METRICS
# ============================================================================

ai_search_outcomes_total = Counter(
    "ai_search_outcomes_total",
    "Terminal outcomes of the AI search pipeline",
    ["outcome"],  # enhanced | fallback | rejected | unavailable | error
    registry=registry,
)

search_zero_results_total = Counter(
    "search_zero_results_total",
    "Total number of searches that returned zero results",
    ["mode"],  # "enhanced" | "fallback"
    registry=registry,
)

catalog_errors_total = Counter(
    "catalog_errors_total",
    "Total number of catalog store failures",
    ["operation"],
    registry=registry,
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def normalize_endpoint(path: str) -> str:
    """Strip query strings and trailing slashes so label cardinality stays bounded."""
    if "?" in path:
        path = path.split("?")[0]
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/")
    return path


UNMATCHED_ENDPOINT = "unmatched"


def endpoint_label(scope: dict) -> str:
    """
    Route template for the request, e.g. "/api/ai-search".

    Requests that matched no route share one label so arbitrary paths
    never become label values.
    """
    route = scope.get("route")
    path = getattr(route, "path", None)
    return path if path else UNMATCHED_ENDPOINT


def record_http_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record HTTP request metrics (RED metrics)."""
    normalized_endpoint = normalize_endpoint(endpoint)

    http_requests_total.labels(
        method=method,
        endpoint=normalized_endpoint,
        status=str(status_code),
    ).inc()

    if status_code >= 400:
        http_errors_total.labels(
            method=method,
            endpoint=normalized_endpoint,
            status_code=str(status_code),
        ).inc()

    http_request_duration_seconds.labels(
        method=method,
        endpoint=normalized_endpoint,
    ).observe(duration_seconds)


def record_llm_request(success: bool, duration_seconds: float) -> None:
    llm_requests_total.labels(outcome="success" if success else "failure").inc()
    llm_request_duration_seconds.observe(duration_seconds)


def record_llm_error(kind: str, category: str) -> None:
    """
    Record an AI failure.

    Args:
        kind: Failure kind (e.g. "timeout", "no_json_block")
        category: "upstream_unavailable" or "malformed_response"
    """
    llm_errors_total.labels(kind=kind, category=category).inc()


def record_search_outcome(outcome: str) -> None:
    ai_search_outcomes_total.labels(outcome=outcome).inc()


def record_search_zero_result(mode: str) -> None:
    search_zero_results_total.labels(mode=mode).inc()


def record_catalog_error(operation: str) -> None:
    catalog_errors_total.labels(operation=operation).inc()


def get_metrics() -> bytes:
    """Get Prometheus metrics in text format."""
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
