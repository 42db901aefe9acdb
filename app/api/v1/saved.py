"""Saved listings API router — the viewer's favorited deals.
/api/v1/saved"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_signed_in
from app.api.responses import ok
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.models.deal_model import Deal
from app.schemas.base_schema import ApiResponse
from app.schemas.discovery_schema import SavedListRead, SavedToggleRead
from app.services.saved_service import SqlSavedStore
from app.services.visibility_service import ViewerContext

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=ApiResponse[SavedListRead])
async def list_saved(
    request: Request,
    db: AsyncSession = Depends(get_db),
    viewer: ViewerContext = Depends(require_signed_in),
):
    """Ids of every deal the viewer has saved."""
    deal_ids = await SqlSavedStore(db).list_saved(viewer.viewer_id)
    return ok(
        SavedListRead(deal_ids=sorted(deal_ids), count=len(deal_ids)),
        "Saved listings retrieved successfully",
        request,
    )


@router.post("/{deal_id}/toggle", response_model=ApiResponse[SavedToggleRead])
async def toggle_saved(
    deal_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    viewer: ViewerContext = Depends(require_signed_in),
):
    """Save the deal if it is not saved yet, otherwise unsave it."""
    exists = (await db.execute(select(Deal.id).where(Deal.id == deal_id))).scalar_one_or_none()
    if not exists:
        raise NotFoundError(f"Deal {deal_id} not found")

    saved = await SqlSavedStore(db).toggle(viewer.viewer_id, deal_id)
    logger.info(
        "Saved listing toggled",
        extra={"viewer_id": viewer.viewer_id, "deal_id": deal_id, "status": "saved" if saved else "unsaved"},
    )
    return ok(
        SavedToggleRead(deal_id=deal_id, saved=saved),
        "Deal saved" if saved else "Deal removed from saved",
        request,
    )
