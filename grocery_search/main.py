from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import SearchSettings, load_settings
from .core.database_pool import close_database_pool, initialize_database_pool
from .core.logging import configure_logging, get_logger, get_trace_id
from .core.middleware import TraceIDMiddleware
from .routes import health, metrics, search
from .services.ai.llm_client import LLMClient
from .services.catalog.postgres import PostgresCatalog
from .services.catalog.store import CatalogStore
from .services.search.orchestrator import SearchOrchestrator

logger = get_logger(__name__)


def create_app(
    settings: Optional[SearchSettings] = None,
    catalog: Optional[CatalogStore] = None,
    llm_client: Optional[LLMClient] = None,
) -> FastAPI:
    """
    Build the application.

    With no `catalog`, products come from Postgres and the connection pool is
    opened in the lifespan hook. Tests pass an in-memory catalog and a stub
    client instead.
    """
    settings = settings or load_settings()
    manage_pool = catalog is None
    catalog = catalog or PostgresCatalog()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("app_startup_started")
        if not settings.ai_configured:
            logger.warning(
                "app_startup_ai_key_missing",
                message="GEMINI_API_KEY is not set; every search will use the text fallback or fail.",
            )
        if manage_pool:
            if await initialize_database_pool(settings.database_url):
                logger.info("app_startup_database_pool_ready")
            else:
                logger.warning(
                    "app_startup_database_pool_unavailable",
                    message="Catalog queries will fail until the database is reachable.",
                )
        logger.info("app_startup_completed")
        yield
        logger.info("app_shutdown_started")
        if manage_pool:
            await close_database_pool()
        logger.info("app_shutdown_completed")

    app = FastAPI(
        title="Ghibli Groceries AI Search API",
        description="AI-assisted product search over the grocery catalog",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.search_orchestrator = SearchOrchestrator.from_settings(
        settings,
        catalog=catalog,
        llm_client=llm_client,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(TraceIDMiddleware)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        trace_id = get_trace_id()
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message": exc.detail,
                "trace_id": trace_id,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        trace_id = get_trace_id()
        logger.error(
            "unhandled_exception",
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Internal server error",
                "trace_id": trace_id,
            },
        )

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(search.router, prefix="/api", tags=["Search"])
    app.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
    return app


_settings = load_settings()
configure_logging(log_level=_settings.log_level, json_output=_settings.log_json)

app = create_app(_settings)
