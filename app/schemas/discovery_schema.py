"""Pydantic schemas for the marketplace and admin table views."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from app.schemas.deal_schema import AdminDealRow, DealCard
from app.schemas.filter_schema import FilterCriteria, FilterTag, SortDirection, SortKey, SortState


class EmptyState(str, Enum):
    LOAD_ERROR = "load_error"
    NO_SAVED_DEALS = "no_saved_deals"
    NO_MATCHES = "no_matches"
    NO_DEALS = "no_deals"
    PAST_LAST_PAGE = "past_last_page"


EMPTY_STATE_MESSAGES = {
    EmptyState.LOAD_ERROR: "Something went wrong loading listings. Please try again.",
    EmptyState.NO_SAVED_DEALS: "You haven't saved any listings yet.",
    EmptyState.NO_MATCHES: "No deals match your current filters. Try adjusting your search criteria.",
    EmptyState.NO_DEALS: "No deals available at this time.",
    EmptyState.PAST_LAST_PAGE: "There are no listings on this page.",
}


class MarketplacePage(BaseModel):
    """One rendered page of the marketplace grid."""
    items: List[DealCard]
    total: int
    page: int
    limit: int
    pages: int
    first_item: int = 0
    last_item: int = 0
    criteria: FilterCriteria
    query_string: str
    filter_tags: List[FilterTag] = []
    saved_only: bool = False
    saved_count: int = 0
    saved_error: Optional[str] = None
    empty_state: Optional[EmptyState] = None
    empty_message: Optional[str] = None


class CanonicalQuery(BaseModel):
    """Decoded criteria with their canonical URL form."""
    criteria: FilterCriteria
    query_string: str
    filter_tags: List[FilterTag] = []


class AdminColumn(BaseModel):
    """Sortable header in the admin table, with the state a click produces."""
    key: SortKey
    label: str
    active: bool = False
    direction: Optional[SortDirection] = None
    next_sort: SortState


class AdminTable(BaseModel):
    rows: List[AdminDealRow]
    total: int
    search: Optional[str] = None
    stage: Optional[str] = None
    sort: Optional[SortState] = None
    columns: List[AdminColumn]
    empty_state: Optional[EmptyState] = None
    empty_message: Optional[str] = None


class SavedListRead(BaseModel):
    deal_ids: List[str]
    count: int


class SavedToggleRead(BaseModel):
    deal_id: str
    saved: bool
