"""Discovery session — client-side controller that keeps the view in sync with the URL.

Every filter edit produces a full new URL query and a refetch:

    IDLE → FILTER_CHANGED → URL_UPDATED → REFETCHING → IDLE

Each navigation takes a sequence number. When several refetches overlap,
only the result of the most recent one is applied; older results are
discarded when they arrive.
"""
import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Set
from urllib.parse import urlencode

from app.config import settings
from app.core.logging import get_logger
from app.schemas.discovery_schema import MarketplacePage
from app.schemas.filter_schema import FilterCriteria
from app.services.codec_service import (
    LIMIT_KEY,
    PAGE_KEY,
    decode_criteria,
    merge_criteria,
    remove_filter_keys,
)
from app.services.discovery_service import DealDiscoveryService
from app.services.saved_service import SavedDeals, ToggleOutcome
from app.services.visibility_service import ViewerContext, VisibilityPredicate

logger = get_logger(__name__)

PageFetcher = Callable[[Mapping[str, str], bool], Awaitable[MarketplacePage]]


class SessionState(str, Enum):
    IDLE = "idle"
    FILTER_CHANGED = "filter_changed"
    URL_UPDATED = "url_updated"
    REFETCHING = "refetching"


class SearchDebouncer:
    """Delays keystroke commits; a new keystroke cancels the pending one.

    Once the delay has elapsed the commit runs to completion even if more
    keystrokes arrive.
    """

    def __init__(self, callback: Callable[[str], Awaitable[Any]], delay_ms: Optional[int] = None):
        self._callback = callback
        self._delay = (delay_ms if delay_ms is not None else settings.search_debounce_ms) / 1000
        self._pending: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    def submit(self, value: str) -> None:
        if self._pending is not None:
            self._pending.cancel()
        task = asyncio.create_task(self._fire(value))
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fire(self, value: str) -> None:
        await asyncio.sleep(self._delay)
        self._pending = None
        await self._callback(value)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    async def wait(self) -> None:
        """Wait until no commit is pending or running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def service_fetcher(
    service: DealDiscoveryService,
    viewer: ViewerContext,
    visibility: Optional[VisibilityPredicate] = None,
    saved: Optional[SavedDeals] = None,
) -> PageFetcher:
    """Adapt a DealDiscoveryService into a session page fetcher."""

    async def fetch(query: Mapping[str, str], saved_only: bool) -> MarketplacePage:
        return await service.marketplace_view(
            query,
            viewer,
            visibility=visibility,
            saved_only=saved_only,
            saved_ids=saved.ids if saved is not None else None,
        )

    return fetch


class DiscoverySession:
    """One viewer's browsing session on the marketplace."""

    def __init__(
        self,
        fetch_page: PageFetcher,
        query: Optional[Mapping[str, str]] = None,
        saved: Optional[SavedDeals] = None,
        debounce_ms: Optional[int] = None,
    ):
        self._fetch_page = fetch_page
        self._saved = saved
        self._seq = 0
        self.query: Dict[str, str] = dict(query or {})
        self.state = SessionState.IDLE
        self.page: Optional[MarketplacePage] = None
        self.history: List[str] = []
        self._debouncer = SearchDebouncer(self._commit_search, debounce_ms)

    @property
    def url(self) -> str:
        return f"?{urlencode(self.query)}" if self.query else ""

    @property
    def criteria(self) -> FilterCriteria:
        return decode_criteria(self.query)

    @property
    def saved_only(self) -> bool:
        return self._saved.show_saved_only if self._saved is not None else False

    async def navigate(self, query: Mapping[str, str]) -> Optional[MarketplacePage]:
        """Push ``query`` as the new URL and refetch.

        Returns the page, or None when a newer navigation superseded this one.
        """
        self._seq += 1
        seq = self._seq
        self.query = dict(query)
        self.history.append(self.url)
        self.state = SessionState.URL_UPDATED

        self.state = SessionState.REFETCHING
        page = await self._fetch_page(self.query, self.saved_only)

        if seq != self._seq:
            logger.debug("Discarding superseded refetch", extra={"request_seq": seq})
            return None

        self.page = page
        self.state = SessionState.IDLE
        return page

    async def refresh(self) -> Optional[MarketplacePage]:
        return await self.navigate(self.query)

    async def apply_filters(self, criteria: FilterCriteria) -> Optional[MarketplacePage]:
        """Replace all filters with ``criteria`` and return to page 1."""
        self.state = SessionState.FILTER_CHANGED
        return await self.navigate(merge_criteria(self.query, criteria))

    async def remove_filter(self, keys: Iterable[str]) -> Optional[MarketplacePage]:
        """Remove one filter chip."""
        self.state = SessionState.FILTER_CHANGED
        return await self.navigate(remove_filter_keys(self.query, keys))

    async def clear_filters(self) -> Optional[MarketplacePage]:
        return await self.apply_filters(FilterCriteria(search=self.criteria.search))

    async def go_to_page(self, page: int) -> Optional[MarketplacePage]:
        if self.page is not None and (page < 1 or page > self.page.pages):
            return self.page
        query = dict(self.query)
        query[PAGE_KEY] = str(page)
        return await self.navigate(query)

    async def set_limit(self, limit: int) -> Optional[MarketplacePage]:
        query = dict(self.query)
        query[LIMIT_KEY] = str(limit)
        query[PAGE_KEY] = "1"
        return await self.navigate(query)

    def type_search(self, text: str) -> None:
        """Feed a search-box keystroke; the URL updates after the debounce delay."""
        self._debouncer.submit(text)

    async def wait_for_search(self) -> None:
        await self._debouncer.wait()

    async def _commit_search(self, text: str) -> None:
        current = self.criteria
        updated = FilterCriteria(**{**current.model_dump(), "search": text})
        new_query = merge_criteria(self.query, updated)
        if new_query == self.query:
            return
        self.state = SessionState.FILTER_CHANGED
        await self.navigate(new_query)

    async def set_saved_only(self, show: bool) -> Optional[MarketplacePage]:
        if self._saved is None:
            return self.page
        self._saved.show_saved_only = show
        return await self.refresh()

    async def toggle_saved(self, deal_id: str) -> ToggleOutcome:
        """Toggle a heart; the rest of the view is kept even if the toggle fails."""
        if self._saved is None:
            return ToggleOutcome(deal_id=deal_id, saved=False, error="Saved listings are not available.")

        outcome = await self._saved.toggle(deal_id)
        if self._saved.show_saved_only:
            await self.refresh()
        elif self.page is not None:
            for card in self.page.items:
                if card.id == deal_id:
                    card.is_saved = outcome.saved
            self.page.saved_count = len(self._saved.ids)
        return outcome
