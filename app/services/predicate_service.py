"""Predicate service — decides whether a deal satisfies a FilterCriteria.

Criteria are conjunctive: a deal must satisfy every criterion that is set,
and an unset criterion never excludes anything. A set numeric criterion
always requires the deal to carry a readable value for that facet, so a
deal with a missing or unparseable facet fails the filter.
"""
from typing import Callable, List, Optional, Sequence

from app.config import settings
from app.schemas.deal_schema import DealRecord, DealType
from app.schemas.filter_schema import FilterCriteria, RangeCriterion, ThresholdCriterion
from app.services.mapper_service import normalize_text, parse_number


def matches_threshold(value: Optional[float], criterion: ThresholdCriterion, epsilon: float = 0.0) -> bool:
    if value is None:
        return False
    if criterion.exact:
        return abs(value - criterion.value) <= epsilon
    return value >= criterion.value


def matches_range(value: Optional[float], criterion: RangeCriterion) -> bool:
    if value is None:
        return False
    if criterion.min is not None and value < criterion.min:
        return False
    if criterion.max is not None and value > criterion.max:
        return False
    return True


def _same_text(value, expected: str) -> bool:
    text = normalize_text(value)
    return text is not None and text.casefold() == expected.casefold()


def matches_keyword(deal: DealRecord, keyword: str) -> bool:
    """Case-insensitive substring match on title, address or city."""
    needle = keyword.strip().casefold()
    for field in (deal.title, deal.property_address, deal.property_city):
        if field and needle in field.casefold():
            return True
    return False


def _checks(criteria: FilterCriteria) -> List[Callable[[DealRecord], bool]]:
    """Build one check per set criterion."""
    checks: List[Callable[[DealRecord], bool]] = []

    if criteria.search:
        checks.append(lambda d: matches_keyword(d, criteria.search))
    if criteria.bedrooms is not None:
        checks.append(lambda d: matches_threshold(parse_number(d.bedrooms), criteria.bedrooms))
    if criteria.bathrooms is not None:
        checks.append(lambda d: matches_threshold(
            parse_number(d.bathrooms), criteria.bathrooms, settings.bathroom_epsilon
        ))
    if criteria.square_feet is not None:
        checks.append(lambda d: matches_range(parse_number(d.square_feet), criteria.square_feet))
    if criteria.lot_size is not None:
        checks.append(lambda d: matches_range(parse_number(d.lot_size_acres), criteria.lot_size))
    if criteria.deal_type is not None:
        checks.append(lambda d: DealType.lookup(d.deal_type) == criteria.deal_type)
    if criteria.entry_price is not None:
        checks.append(lambda d: matches_range(d.entry_cost, criteria.entry_price))
    if criteria.city:
        checks.append(lambda d: _same_text(d.property_city, criteria.city))
    if criteria.zipcode:
        checks.append(lambda d: _same_text(d.property_zip, criteria.zipcode))

    return checks


def matches(deal: DealRecord, criteria: FilterCriteria) -> bool:
    """True when ``deal`` satisfies every set criterion."""
    return all(check(deal) for check in _checks(criteria))


def filter_deals(deals: Sequence[DealRecord], criteria: FilterCriteria) -> List[DealRecord]:
    """Keep the deals matching ``criteria``, in their original order."""
    checks = _checks(criteria)
    if not checks:
        return list(deals)
    return [deal for deal in deals if all(check(deal) for check in checks)]
