"""Visibility service — which deals a given viewer may see before any filter runs.

A deal is visible when its status is public, when the viewer created it,
or when the viewer holds the admin role. The predicate is built per request
and handed to the discovery service; the filter engine itself knows nothing
about roles.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, FrozenSet, Iterable, Optional

from app.config import settings
from app.schemas.deal_schema import DealRecord, DealStatus


class Role(str, Enum):
    ADMIN = "admin"
    INVESTOR = "investor"
    WHOLESALER = "wholesaler"
    CONTRACTOR = "contractor"
    VENDOR = "vendor"
    SERVICE = "service"


# contractor and vendor are interchangeable
_ROLE_ALIASES = {
    Role.CONTRACTOR: {Role.CONTRACTOR, Role.VENDOR},
    Role.VENDOR: {Role.VENDOR, Role.CONTRACTOR},
}

ELEVATED_ROLES = frozenset({Role.ADMIN})

VisibilityPredicate = Callable[[DealRecord], bool]


def parse_roles(raw: Iterable[str], fallback: Role = Role.INVESTOR) -> FrozenSet[Role]:
    """Known roles from ``raw``; unknown names are skipped."""
    roles = set()
    for name in raw:
        try:
            roles.add(Role(str(name).strip().lower()))
        except ValueError:
            continue
    return frozenset(roles or {fallback})


@dataclass(frozen=True)
class ViewerContext:
    viewer_id: Optional[str]
    roles: FrozenSet[Role] = field(default_factory=lambda: frozenset({Role.INVESTOR}))

    def has_role(self, role: Role) -> bool:
        return bool(self.roles & _ROLE_ALIASES.get(role, {role}))

    @property
    def is_elevated(self) -> bool:
        return bool(self.roles & ELEVATED_ROLES)


def public_statuses(raw: Optional[Iterable[str]] = None) -> FrozenSet[DealStatus]:
    statuses = set()
    for name in (raw if raw is not None else settings.public_deal_statuses):
        try:
            statuses.add(DealStatus(str(name).strip().lower()))
        except ValueError:
            continue
    return frozenset(statuses)


def build_visibility_predicate(
    viewer: ViewerContext,
    statuses: Optional[FrozenSet[DealStatus]] = None,
) -> VisibilityPredicate:
    """Predicate deciding whether ``viewer`` may see a deal."""
    visible_statuses = statuses if statuses is not None else public_statuses()

    if viewer.is_elevated:
        return lambda deal: True

    def is_visible(deal: DealRecord) -> bool:
        if deal.status in visible_statuses:
            return True
        return viewer.viewer_id is not None and deal.owner_id == viewer.viewer_id

    return is_visible
