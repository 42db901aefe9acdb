"""API dependencies — database session, authentication, viewer resolution and services.

Authentication:
  Every router except /health requires the X-API-Key header, configured via
  API_KEY in .env.

Viewer identity:
  The auth provider in front of this service forwards the signed-in user's
  id in X-Viewer-Id. Roles come from that user's profile; unknown or
  missing profiles are treated as investors. Requests without the header
  browse anonymously (public deals only, no saved listings).
"""
import secrets
from typing import AsyncGenerator, Annotated, Optional

from fastapi import Depends, Header, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ForbiddenError
from app.database import async_session_factory
from app.models.profile_model import Profile
from app.services.discovery_service import DealDiscoveryService, SqlCandidateSource
from app.services.saved_service import SqlSavedStore
from app.services.visibility_service import Role, ViewerContext, parse_roles


# ---------------------------------------------------------------------------
# Database session dependency
# ---------------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for request scope."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ---------------------------------------------------------------------------
# API Key authentication
# ---------------------------------------------------------------------------

_api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # custom 401 instead of the default 403
    description="API key. Configured via API_KEY in .env",
)


async def verify_api_key(
    api_key: Annotated[str | None, Security(_api_key_header)],
) -> str:
    """Validate the X-API-Key header with a constant-time comparison.

    Raises:
        HTTPException 401: key missing or wrong.
        HTTPException 500: API_KEY not configured on the server.
    """
    if not settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfigured (API_KEY missing).",
        )

    if not api_key or not secrets.compare_digest(api_key, settings.api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key. Use the X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


RequireApiKey = Depends(verify_api_key)


# ---------------------------------------------------------------------------
# Viewer
# ---------------------------------------------------------------------------

async def get_viewer(
    db: AsyncSession = Depends(get_db),
    x_viewer_id: Optional[str] = Header(None),
) -> ViewerContext:
    """Resolve the viewer and their roles from X-Viewer-Id."""
    viewer_id = (x_viewer_id or "").strip() or None
    if viewer_id is None:
        return ViewerContext(viewer_id=None)

    profile = (await db.execute(select(Profile).where(Profile.id == viewer_id))).scalar_one_or_none()
    roles = parse_roles([profile.role] if profile and profile.role else [])
    return ViewerContext(viewer_id=viewer_id, roles=roles)


async def require_signed_in(viewer: ViewerContext = Depends(get_viewer)) -> ViewerContext:
    if viewer.viewer_id is None:
        raise ForbiddenError("Sign in to use saved listings")
    return viewer


async def require_admin(viewer: ViewerContext = Depends(get_viewer)) -> ViewerContext:
    if not viewer.has_role(Role.ADMIN):
        raise ForbiddenError("Admin role required")
    return viewer


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

async def get_discovery_service(db: AsyncSession = Depends(get_db)) -> DealDiscoveryService:
    return DealDiscoveryService(SqlCandidateSource(db), SqlSavedStore(db))
