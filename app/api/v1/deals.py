"""Deals API router — marketplace discovery, admin table and record maintenance.
/api/v1/deals"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_discovery_service, get_viewer, require_admin
from app.api.responses import ok
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.models.deal_model import Deal
from app.models.profile_model import Profile
from app.schemas.base_schema import ApiResponse, Meta
from app.schemas.deal_schema import DealCreate, DealRead, DealRecord, DealUpdate, DispositionStatus
from app.schemas.discovery_schema import AdminTable, CanonicalQuery, MarketplacePage
from app.schemas.filter_schema import SortDirection, SortKey, SortState
from app.services.codec_service import (
    active_filter_tags,
    build_query_string,
    decode_criteria,
    decode_page_request,
)
from app.services.discovery_service import DealDiscoveryService
from app.services.mapper_service import deal_to_payload, parse_bool
from app.services.visibility_service import ViewerContext, build_visibility_predicate

logger = get_logger(__name__)

router = APIRouter()


def _parse_sort(sort: Optional[str], direction: Optional[str]) -> Optional[SortState]:
    """Unknown sort keys mean "no sort"; unknown directions mean ascending."""
    if not sort:
        return None
    try:
        key = SortKey(sort)
    except ValueError:
        return None
    try:
        order = SortDirection((direction or "asc").lower())
    except ValueError:
        order = SortDirection.ASC
    return SortState(key=key, direction=order)


def _parse_stage(stage: Optional[str]) -> Optional[DispositionStatus]:
    if not stage or stage.lower() == "all":
        return None
    try:
        return DispositionStatus(stage.lower())
    except ValueError:
        return None


async def _get_deal(db: AsyncSession, deal_id: str) -> Deal:
    deal = (await db.execute(
        select(Deal).where(Deal.id == deal_id).execution_options(populate_existing=True)
    )).scalar_one_or_none()
    if not deal:
        raise NotFoundError(f"Deal {deal_id} not found")
    return deal


@router.get("", response_model=ApiResponse[MarketplacePage])
async def list_marketplace(
    request: Request,
    viewer: ViewerContext = Depends(get_viewer),
    service: DealDiscoveryService = Depends(get_discovery_service),
):
    """Marketplace grid for the filters in the URL.

    Filter values are read through the URL codec, so malformed values are
    ignored instead of rejected.
    """
    query = dict(request.query_params)
    saved_only = parse_bool(query.pop("savedOnly", None)) or False

    page = await service.marketplace_view(query, viewer, saved_only=saved_only)
    return ok(
        page,
        "Deals listed successfully",
        request,
        meta=Meta(page=page.page, limit=page.limit, total=page.total, pages=page.pages),
    )


@router.get("/admin", response_model=ApiResponse[AdminTable])
async def admin_table(
    request: Request,
    q: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    direction: Optional[str] = Query(None),
    stage: Optional[str] = Query(None),
    viewer: ViewerContext = Depends(require_admin),
    service: DealDiscoveryService = Depends(get_discovery_service),
):
    """Admin CRM table: every deal, keyword and stage filter, column sort."""
    table = await service.admin_table_view(
        viewer,
        search=q,
        sort=_parse_sort(sort, direction),
        stage=_parse_stage(stage),
    )
    return ok(table, "Admin deals listed successfully", request)


@router.get("/filters", response_model=ApiResponse[CanonicalQuery])
async def canonical_filters(request: Request):
    """Decode a query string and return its canonical form."""
    query = dict(request.query_params)
    criteria = decode_criteria(query)
    return ok(
        CanonicalQuery(
            criteria=criteria,
            query_string=build_query_string(criteria, decode_page_request(query)),
            filter_tags=active_filter_tags(criteria),
        ),
        "Filters decoded successfully",
        request,
    )


@router.get("/{deal_id}", response_model=ApiResponse[DealRead])
async def get_deal(
    deal_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    viewer: ViewerContext = Depends(get_viewer),
):
    """Get a single deal; deals the viewer may not see are reported as missing."""
    deal = await _get_deal(db, deal_id)
    is_visible = build_visibility_predicate(viewer)
    if not is_visible(DealRecord.model_validate(deal_to_payload(deal))):
        raise NotFoundError(f"Deal {deal_id} not found")
    return ok(DealRead.model_validate(deal), "Deal retrieved successfully", request)


@router.post("", response_model=ApiResponse[DealRead], status_code=201)
async def create_deal(payload: DealCreate, request: Request, db: AsyncSession = Depends(get_db)):
    """Create a new deal for an existing wholesaler profile."""
    owner = (await db.execute(select(Profile).where(Profile.id == payload.wholesaler_id))).scalar_one_or_none()
    if not owner:
        raise NotFoundError(f"Profile {payload.wholesaler_id} not found")

    deal = Deal(**payload.model_dump())
    db.add(deal)
    await db.flush()
    await db.refresh(deal)

    logger.info("Deal created", extra={"deal_id": deal.id, "status": deal.status})
    return ok(DealRead.model_validate(deal), "Deal created successfully", request)


@router.patch("/{deal_id}", response_model=ApiResponse[DealRead])
async def update_deal(
    deal_id: str,
    payload: DealUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Partially update a deal."""
    deal = await _get_deal(db, deal_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(deal, field, value)

    await db.flush()
    await db.refresh(deal)
    return ok(DealRead.model_validate(deal), "Deal updated successfully", request)


@router.delete("/{deal_id}", response_model=ApiResponse[None], status_code=200)
async def delete_deal(deal_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    """Delete a deal; its saved listings go with it through the FK cascade."""
    deal = await _get_deal(db, deal_id)
    await db.delete(deal)
    logger.info("Deal deleted", extra={"deal_id": deal_id})
    return ok(None, "Deal deleted successfully", request)
