"""Discovery service — composes filtering, saved overlay, ordering and paging.

Two surfaces:

- marketplace view: visibility → filters from the URL → saved overlay →
  newest first → one page.
- admin table: every deal → local keyword and pipeline-stage filter →
  column sort, unpaginated.

A failure to load candidates is logged and rendered as an explicit
``load_error`` empty state; it never propagates to the caller.
"""
import time
from typing import List, Mapping, Optional, Protocol, Set, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import CandidateFetchError
from app.core.logging import get_logger
from app.models.deal_model import Deal
from app.schemas.deal_schema import AdminDealRow, DealCard, DealRecord, DispositionStatus
from app.schemas.discovery_schema import (
    EMPTY_STATE_MESSAGES,
    AdminColumn,
    AdminTable,
    EmptyState,
    MarketplacePage,
)
from app.schemas.filter_schema import FilterCriteria, PageRequest, SortKey, SortState
from app.services.codec_service import (
    active_filter_tags,
    build_query_string,
    decode_criteria,
    decode_page_request,
)
from app.services.mapper_service import deal_to_payload
from app.services.pagination_service import PageSlice, paginate
from app.services.predicate_service import filter_deals
from app.services.saved_service import SavedListingStore, restrict_to_saved
from app.services.sort_service import order_by_recency, sort_deals, toggle_sort
from app.services.visibility_service import (
    ViewerContext,
    VisibilityPredicate,
    build_visibility_predicate,
)

logger = get_logger(__name__)


class CandidateSource(Protocol):
    """Supplies the deals a discovery pass works on."""

    async def fetch_candidates(self, viewer: ViewerContext) -> List[DealRecord]: ...


class SqlCandidateSource:
    """Loads every deal, newest first, with its wholesaler profile."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def fetch_candidates(self, viewer: ViewerContext) -> List[DealRecord]:
        try:
            result = await self._db.execute(
                select(Deal)
                .order_by(Deal.created_at.desc())
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise CandidateFetchError("Could not load deals", str(e)) from e
        return [DealRecord.model_validate(deal_to_payload(row)) for row in result.scalars().all()]


ADMIN_COLUMNS = (
    (SortKey.TITLE, "Deal & Address"),
    (SortKey.ASKING_PRICE, "Entry / ARV"),
    (SortKey.WHOLESALER, "Wholesaler"),
    (SortKey.DISPOSITION_STATUS, "Pipeline Stage"),
    (SortKey.EXPECTED_CLOSING_DATE, "Est. Close"),
)


def admin_columns(sort: Optional[SortState]) -> List[AdminColumn]:
    """Column headers with the sort state each click would produce."""
    columns = []
    for key, label in ADMIN_COLUMNS:
        active = sort is not None and sort.key == key
        columns.append(AdminColumn(
            key=key,
            label=label,
            active=active,
            direction=sort.direction if active else None,
            next_sort=toggle_sort(sort, key),
        ))
    return columns


def matches_admin_search(deal: DealRecord, search: str) -> bool:
    """Case-insensitive substring match on title, address or wholesaler name."""
    needle = search.strip().casefold()
    for field in (deal.title, deal.property_address, deal.owner_name):
        if field and needle in field.casefold():
            return True
    return False


def _marketplace_empty_state(
    page: PageSlice,
    criteria: FilterCriteria,
    saved_only: bool,
    load_failed: bool,
) -> Optional[EmptyState]:
    if load_failed:
        return EmptyState.LOAD_ERROR
    if page.items:
        return None
    if page.total_items > 0:
        return EmptyState.PAST_LAST_PAGE
    if saved_only:
        return EmptyState.NO_SAVED_DEALS
    if not criteria.is_empty:
        return EmptyState.NO_MATCHES
    return EmptyState.NO_DEALS


class DealDiscoveryService:
    """Builds marketplace pages and admin tables from a candidate source."""

    def __init__(
        self,
        candidate_source: CandidateSource,
        saved_store: Optional[SavedListingStore] = None,
    ):
        self._candidates = candidate_source
        self._saved_store = saved_store

    async def _load_candidates(self, viewer: ViewerContext) -> Tuple[List[DealRecord], bool]:
        started = time.monotonic()
        try:
            deals = await self._candidates.fetch_candidates(viewer)
        except Exception:
            logger.exception(
                "Failed to load candidate deals",
                extra={"viewer_id": viewer.viewer_id, "status": "load_error"},
            )
            return [], False
        logger.debug(
            "Loaded %d candidate deals", len(deals),
            extra={"viewer_id": viewer.viewer_id, "duration": round(time.monotonic() - started, 4)},
        )
        return deals, True

    async def _load_saved(self, viewer: ViewerContext) -> Tuple[Set[str], Optional[str]]:
        if self._saved_store is None or viewer.viewer_id is None:
            return set(), None
        try:
            return await self._saved_store.list_saved(viewer.viewer_id), None
        except Exception as e:
            logger.warning(
                "Could not load saved listings: %s", str(e),
                extra={"viewer_id": viewer.viewer_id},
            )
            return set(), "Saved listings are unavailable right now."

    async def marketplace_view(
        self,
        query: Mapping[str, str],
        viewer: ViewerContext,
        visibility: Optional[VisibilityPredicate] = None,
        saved_only: bool = False,
        saved_ids: Optional[Set[str]] = None,
    ) -> MarketplacePage:
        """Render one marketplace page for ``query`` as seen by ``viewer``."""
        criteria = decode_criteria(query)
        page_request = decode_page_request(query)
        is_visible = visibility or build_visibility_predicate(viewer)

        candidates, loaded = await self._load_candidates(viewer)
        saved_error = None
        if saved_ids is None:
            saved_ids, saved_error = await self._load_saved(viewer)

        visible = [deal for deal in candidates if is_visible(deal)]
        matching = filter_deals(visible, criteria)
        overlaid = restrict_to_saved(matching, saved_ids, saved_only)
        page = paginate(order_by_recency(overlaid), page_request)

        empty_state = _marketplace_empty_state(page, criteria, saved_only, not loaded)
        logger.info(
            "Marketplace view: %d visible, %d matching, page %d/%d",
            len(visible), page.total_items, page.page, page.total_pages,
            extra={"viewer_id": viewer.viewer_id},
        )

        return MarketplacePage(
            items=[DealCard.from_record(deal, deal.id in saved_ids) for deal in page.items],
            total=page.total_items,
            page=page.page,
            limit=page.limit,
            pages=page.total_pages,
            first_item=page.first_item,
            last_item=page.last_item,
            criteria=criteria,
            query_string=build_query_string(criteria, PageRequest(page=page.page, limit=page.limit)),
            filter_tags=active_filter_tags(criteria),
            saved_only=saved_only,
            saved_count=len(saved_ids),
            saved_error=saved_error,
            empty_state=empty_state,
            empty_message=EMPTY_STATE_MESSAGES.get(empty_state) if empty_state else None,
        )

    async def admin_table_view(
        self,
        viewer: ViewerContext,
        search: Optional[str] = None,
        sort: Optional[SortState] = None,
        stage: Optional[DispositionStatus] = None,
    ) -> AdminTable:
        """Render the full admin deal table; no visibility rule, no paging."""
        deals, loaded = await self._load_candidates(viewer)

        if search and search.strip():
            deals = [deal for deal in deals if matches_admin_search(deal, search)]
        if stage is not None:
            deals = [deal for deal in deals if deal.pipeline_stage == stage]
        deals = sort_deals(deals, sort)

        empty_state = None
        if not loaded:
            empty_state = EmptyState.LOAD_ERROR
        elif not deals:
            empty_state = EmptyState.NO_MATCHES if (search or stage) else EmptyState.NO_DEALS

        return AdminTable(
            rows=[AdminDealRow.from_record(deal) for deal in deals],
            total=len(deals),
            search=search,
            stage=stage.value if stage else None,
            sort=sort,
            columns=admin_columns(sort),
            empty_state=empty_state,
            empty_message=EMPTY_STATE_MESSAGES.get(empty_state) if empty_state else None,
        )
