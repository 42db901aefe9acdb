"""FastAPI application factory and startup configuration.

Authentication is applied per router via `dependencies=[RequireApiKey]`
rather than a global middleware, so /health and /docs stay public for
container healthchecks and local development.
"""
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.core.exceptions import (
    CandidateFetchError,
    ForbiddenError,
    NotFoundError,
    SavedListingError,
)
from app.core.logging import get_logger, set_correlation_id, setup_logging
from app.api.v1.deals import router as deals_router
from app.api.v1.saved import router as saved_router
from app.api.deps import RequireApiKey
from app.api.responses import fail, ok

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    setup_logging()
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    if not settings.api_key:
        logger.warning(
            "API_KEY not configured — every protected endpoint will answer 500. "
            "Set API_KEY in .env before deploying."
        )

    yield

    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Deal Discovery API — browse, filter, save and manage off-market real estate deals.",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def add_trace_id(request: Request, call_next):
        request.state.trace_id = str(uuid4())
        set_correlation_id(request.state.trace_id)
        response = await call_next(request)
        response.headers["X-Trace-Id"] = request.state.trace_id
        return response

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        trace_id = getattr(request.state, "trace_id", None)
        logger.exception("Unhandled exception [trace_id=%s]", trace_id, exc_info=exc)
        return fail(request, 500, "Internal error", ["Internal server error"])

    @application.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return fail(request, 404, str(exc))

    @application.exception_handler(ForbiddenError)
    async def forbidden_handler(request: Request, exc: ForbiddenError):
        return fail(request, 403, str(exc))

    @application.exception_handler(CandidateFetchError)
    @application.exception_handler(SavedListingError)
    async def store_unavailable_handler(request: Request, exc: Exception):
        logger.warning("Data store unavailable: %s", str(exc))
        return fail(request, 503, str(exc))

    _auth = [RequireApiKey]

    application.include_router(deals_router, prefix="/api/v1/deals", tags=["deals"], dependencies=_auth)
    application.include_router(saved_router, prefix="/api/v1/saved", tags=["saved"], dependencies=_auth)

    @application.get("/health", tags=["system"])
    async def health_check(request: Request):
        from sqlalchemy import text
        from app.database import async_session_factory

        db_status = "ok"
        try:
            async with async_session_factory() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            db_status = f"error: {str(e)}"

        return ok(
            {
                "status": "healthy" if db_status == "ok" else "unhealthy",
                "version": settings.app_version,
                "database": db_status,
            },
            "Health check completed",
            request,
        )

    return application


app = create_app()
