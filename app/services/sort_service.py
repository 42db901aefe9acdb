"""Sort service — column sorting for the admin deal table.

Sorting is a pure function of the current SortState. Numeric columns
compare as numbers with missing values ordered as 0; text columns compare
case-folded with missing values ordered as ''. Python's sort is stable in
both directions, so rows with equal keys keep their input order.
"""
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from app.schemas.deal_schema import DealRecord
from app.schemas.filter_schema import SortDirection, SortKey, SortState
from app.services.mapper_service import parse_number


def _numeric(field: str) -> Callable[[DealRecord], float]:
    def extract(deal: DealRecord) -> float:
        value = parse_number(getattr(deal, field))
        return value if value is not None else 0.0
    return extract


def _text(field: str) -> Callable[[DealRecord], str]:
    def extract(deal: DealRecord) -> str:
        value = getattr(deal, field)
        if value is None:
            return ""
        return str(getattr(value, "value", value)).casefold()
    return extract


def _timestamp(field: str) -> Callable[[DealRecord], float]:
    def extract(deal: DealRecord) -> float:
        value = getattr(deal, field)
        if isinstance(value, datetime):
            return value.timestamp()
        if isinstance(value, date):
            return float(value.toordinal())
        return 0.0
    return extract


def _stage(deal: DealRecord) -> str:
    return deal.pipeline_stage.value


def _wholesaler(deal: DealRecord) -> str:
    return (deal.owner_name or "").casefold()


SORT_EXTRACTORS: Dict[SortKey, Callable[[DealRecord], Any]] = {
    SortKey.TITLE: _text("title"),
    SortKey.PROPERTY_ADDRESS: _text("property_address"),
    SortKey.PROPERTY_CITY: _text("property_city"),
    SortKey.PROPERTY_ZIP: _text("property_zip"),
    SortKey.ASKING_PRICE: _numeric("asking_price"),
    SortKey.BUYER_ENTRY_COST: _numeric("buyer_entry_cost"),
    SortKey.ARV: _numeric("arv"),
    SortKey.BEDROOMS: _numeric("bedrooms"),
    SortKey.BATHROOMS: _numeric("bathrooms"),
    SortKey.SQUARE_FEET: _numeric("square_feet"),
    SortKey.LOT_SIZE_ACRES: _numeric("lot_size_acres"),
    SortKey.DEAL_TYPE: _text("deal_type"),
    SortKey.STATUS: _text("status"),
    SortKey.DISPOSITION_STATUS: _stage,
    SortKey.EXPECTED_CLOSING_DATE: _timestamp("expected_closing_date"),
    SortKey.CREATED_AT: _timestamp("created_at"),
    SortKey.WHOLESALER: _wholesaler,
}


def sort_deals(deals: Sequence[DealRecord], state: Optional[SortState]) -> List[DealRecord]:
    """Return ``deals`` ordered by ``state``; None keeps the input order."""
    if state is None:
        return list(deals)
    extract = SORT_EXTRACTORS[state.key]
    return sorted(deals, key=extract, reverse=state.direction == SortDirection.DESC)


def order_by_recency(deals: Sequence[DealRecord]) -> List[DealRecord]:
    """Newest first, the default marketplace order."""
    return sort_deals(deals, SortState(key=SortKey.CREATED_AT, direction=SortDirection.DESC))


def toggle_sort(current: Optional[SortState], key: SortKey) -> SortState:
    """Next sort state after clicking the ``key`` column header.

    The same column flips direction; a different column starts ascending.
    """
    if current is not None and current.key == key:
        flipped = SortDirection.DESC if current.direction == SortDirection.ASC else SortDirection.ASC
        return SortState(key=key, direction=flipped)
    return SortState(key=key, direction=SortDirection.ASC)
