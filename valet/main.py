"""
FastAPI main application for the Valet product search service.
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import logging

from valet.config import ValetSettings, get_settings
from valet.db import init_db, close_db, get_pg_pool
from valet.services.curation import build_curator
from valet.services.jobs import (
    INTERRUPTED_MESSAGE,
    JobRunner,
    JobService,
    JobStore,
    build_job_store,
)
from valet.services.media import build_verifier
from valet.services.search import ProductSearchService, SerpApiClient

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_search_service(settings: ValetSettings) -> ProductSearchService:
    """Wire the search pipeline stages from settings."""
    search_client = SerpApiClient(
        api_key=settings.require_serp_api_key(),
        base_url=settings.search.base_url,
        language=settings.search.language,
        max_candidates=settings.search.max_candidates,
        timeout_seconds=settings.search.timeout_seconds,
        max_retries=settings.search.max_retries
    )
    return ProductSearchService(
        search_client,
        build_curator(settings),
        verifier=build_verifier(settings.verification.enabled, settings.verification.timeout_seconds),
        cache_enabled=settings.cache.enabled,
        cache_ttl=settings.cache.ttl_seconds
    )


def create_app(
    settings: Optional[ValetSettings] = None,
    job_store: Optional[JobStore] = None,
    search_service: Optional[ProductSearchService] = None
) -> FastAPI:
    """Create the API application; services can be injected for tests."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        # Startup
        logger.info("Starting Valet API...")
        await init_db(settings)
        logger.info("Database initialized")

        store = job_store or build_job_store(settings.database.job_store)
        recovered = await store.fail_unfinished(INTERRUPTED_MESSAGE)
        if recovered:
            logger.warning(f"Marked {recovered} unfinished job(s) as failed")

        service = search_service or build_search_service(settings)
        runner = JobRunner(settings.max_concurrent_jobs)

        app.state.settings = settings
        app.state.search_service = service
        app.state.job_runner = runner
        app.state.job_service = JobService(store, runner, service)

        yield

        # Shutdown
        logger.info("Shutting down Valet API...")
        await runner.shutdown()
        await service.close()
        await close_db()

    app = FastAPI(
        title="Valet API",
        description="Product search with curated results",
        version="0.1.0",
        lifespan=lifespan
    )

    # CORS middleware - allow all origins for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "version": "0.1.0"
        }

    @app.get("/db-ping")
    async def db_ping():
        """Check the PostgreSQL connection"""
        try:
            pool = get_pg_pool()
        except RuntimeError:
            raise HTTPException(status_code=503, detail="Database not initialized")

        async with pool.acquire() as conn:
            value = await conn.fetchval("SELECT 1")
        return {"status": "ok", "result": value}

    # Import and include routers
    from valet.routers import alerts, favorites, jobs, search

    app.include_router(jobs.router, prefix="/api", tags=["jobs"])
    app.include_router(search.router, prefix="/api", tags=["search"])
    app.include_router(favorites.router, prefix="/api", tags=["favorites"])
    app.include_router(alerts.router, prefix="/api", tags=["alerts"])

    return app


_settings = get_settings()
configure_logging(_settings.log_level)
app = create_app(_settings)
