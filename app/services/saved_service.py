"""Saved-deal service — a viewer's favorited deal ids and the "saved only" overlay.

Membership is keyed by deal id only, so it is independent of whichever
filtered or paginated view the viewer was looking at when they toggled.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Set

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import SavedListingError
from app.core.logging import get_logger
from app.models.saved_listing_model import SavedListing
from app.schemas.deal_schema import DealRecord

logger = get_logger(__name__)


class SavedListingStore(Protocol):
    """Persistence for saved deal ids, keyed by viewer."""

    async def list_saved(self, viewer_id: str) -> Set[str]: ...

    async def toggle(self, viewer_id: str, deal_id: str) -> bool:
        """Add or remove ``deal_id``; returns True when it is now saved."""
        ...


def toggle_membership(saved_ids: Iterable[str], deal_id: str) -> Set[str]:
    """Pure add-or-remove of ``deal_id``."""
    result = set(saved_ids)
    if deal_id in result:
        result.discard(deal_id)
    else:
        result.add(deal_id)
    return result


def restrict_to_saved(
    deals: Sequence[DealRecord],
    saved_ids: Iterable[str],
    show_saved_only: bool,
) -> List[DealRecord]:
    """Keep only saved deals when ``show_saved_only`` is set; order is preserved."""
    if not show_saved_only:
        return list(deals)
    saved = set(saved_ids)
    return [deal for deal in deals if deal.id in saved]


class InMemorySavedStore:
    """Process-local store, used in tests and for anonymous previews."""

    def __init__(self, initial: Optional[Dict[str, Iterable[str]]] = None):
        self._saved: Dict[str, Set[str]] = {
            viewer_id: set(ids) for viewer_id, ids in (initial or {}).items()
        }

    async def list_saved(self, viewer_id: str) -> Set[str]:
        return set(self._saved.get(viewer_id, set()))

    async def toggle(self, viewer_id: str, deal_id: str) -> bool:
        updated = toggle_membership(self._saved.get(viewer_id, set()), deal_id)
        self._saved[viewer_id] = updated
        return deal_id in updated


class SqlSavedStore:
    """Saved listings in the ``saved_listings`` table."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def list_saved(self, viewer_id: str) -> Set[str]:
        try:
            result = await self._db.execute(
                select(SavedListing.deal_id).where(SavedListing.user_id == viewer_id)
            )
        except SQLAlchemyError as e:
            raise SavedListingError(f"Could not load saved listings for {viewer_id}", str(e)) from e
        return set(result.scalars().all())

    async def toggle(self, viewer_id: str, deal_id: str) -> bool:
        try:
            existing = (await self._db.execute(
                select(SavedListing).where(
                    SavedListing.user_id == viewer_id,
                    SavedListing.deal_id == deal_id,
                )
            )).scalar_one_or_none()

            if existing is not None:
                await self._db.execute(
                    delete(SavedListing).where(SavedListing.id == existing.id)
                )
                await self._db.flush()
                return False

            self._db.add(SavedListing(user_id=viewer_id, deal_id=deal_id))
            await self._db.flush()
            return True
        except SQLAlchemyError as e:
            raise SavedListingError(f"Could not toggle saved listing {deal_id}", str(e)) from e


@dataclass
class ToggleOutcome:
    deal_id: str
    saved: bool
    error: Optional[str] = None


class SavedDeals:
    """Client-side saved overlay with optimistic toggles.

    A toggle flips local membership immediately, then confirms with the
    store. If the store fails, only that deal's membership is flipped back
    and the failure is returned as a message; nothing is raised.
    """

    def __init__(self, store: SavedListingStore, viewer_id: str):
        self._store = store
        self._viewer_id = viewer_id
        self._ids: Set[str] = set()
        self.show_saved_only = False

    @property
    def ids(self) -> Set[str]:
        return set(self._ids)

    def is_saved(self, deal_id: str) -> bool:
        return deal_id in self._ids

    async def load(self) -> Optional[str]:
        """Load saved ids from the store. Returns an error message on failure."""
        try:
            self._ids = await self._store.list_saved(self._viewer_id)
        except Exception as e:
            logger.warning(
                "Could not load saved listings: %s", str(e),
                extra={"viewer_id": self._viewer_id},
            )
            return "Saved listings are unavailable right now."
        return None

    async def toggle(self, deal_id: str) -> ToggleOutcome:
        optimistic = deal_id not in self._ids
        self._ids = toggle_membership(self._ids, deal_id)

        try:
            saved = await self._store.toggle(self._viewer_id, deal_id)
        except Exception as e:
            if (deal_id in self._ids) == optimistic:
                self._ids = toggle_membership(self._ids, deal_id)
            logger.warning(
                "Saved listing toggle failed, reverted: %s", str(e),
                extra={"viewer_id": self._viewer_id, "deal_id": deal_id},
            )
            return ToggleOutcome(
                deal_id=deal_id,
                saved=deal_id in self._ids,
                error="Could not update saved listings. Please try again.",
            )

        if saved:
            self._ids.add(deal_id)
        else:
            self._ids.discard(deal_id)
        return ToggleOutcome(deal_id=deal_id, saved=saved)

    def restrict(self, deals: Sequence[DealRecord]) -> List[DealRecord]:
        return restrict_to_saved(deals, self._ids, self.show_saved_only)
