"""Codec service — maps FilterCriteria to and from the shareable URL query.

Key scheme (bookmarked URLs depend on it, do not rename keys):

    bedrooms, exactBedrooms        threshold
    bathrooms, exactBathrooms      threshold
    minSqFt, maxSqFt               range
    minLotSize, maxLotSize         range
    dealType                       exact match
    minEntryPrice, maxEntryPrice   range
    city, zipcode                  exact match
    search                         keyword
    page, limit                    pagination

Decoding never fails: a missing, malformed, negative or out-of-enum value
simply leaves that criterion unset. Encoding omits unset criteria, so an
empty FilterCriteria encodes to an empty query.
"""
from typing import Dict, Iterable, List, Mapping, Optional
from urllib.parse import urlencode

from app.config import settings
from app.schemas.deal_schema import DEAL_TYPE_LABELS, DealType
from app.schemas.filter_schema import (
    FilterCriteria,
    FilterTag,
    PageRequest,
    RangeCriterion,
    ThresholdCriterion,
)
from app.services.mapper_service import normalize_text, parse_bool, parse_int, parse_number

# (criteria field, value key, exact key)
THRESHOLD_KEYS = (
    ("bedrooms", "bedrooms", "exactBedrooms"),
    ("bathrooms", "bathrooms", "exactBathrooms"),
)

# (criteria field, min key, max key)
RANGE_KEYS = (
    ("square_feet", "minSqFt", "maxSqFt"),
    ("lot_size", "minLotSize", "maxLotSize"),
    ("entry_price", "minEntryPrice", "maxEntryPrice"),
)

PAGE_KEY = "page"
LIMIT_KEY = "limit"

FILTER_KEYS = (
    "bedrooms", "exactBedrooms",
    "bathrooms", "exactBathrooms",
    "minSqFt", "maxSqFt",
    "minLotSize", "maxLotSize",
    "dealType",
    "minEntryPrice", "maxEntryPrice",
    "city", "zipcode",
    "search",
)


def _non_negative(raw: Optional[str]) -> Optional[float]:
    value = parse_number(raw)
    if value is None or value < 0:
        return None
    return value


def format_number(value: float) -> str:
    """Render a number without a trailing '.0' for whole values."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _decode_threshold(query: Mapping[str, str], key: str, exact_key: str, whole: bool) -> Optional[ThresholdCriterion]:
    value = _non_negative(query.get(key))
    if value is None:
        return None
    if whole:
        value = float(int(value))
    return ThresholdCriterion(value=value, exact=parse_bool(query.get(exact_key)) is True)


def _decode_range(query: Mapping[str, str], min_key: str, max_key: str) -> Optional[RangeCriterion]:
    low = _non_negative(query.get(min_key))
    high = _non_negative(query.get(max_key))
    if low is None and high is None:
        return None
    return RangeCriterion(min=low, max=high)


def decode_criteria(query: Mapping[str, str]) -> FilterCriteria:
    """Read FilterCriteria from a flat query mapping. Unknown keys are ignored."""
    fields = {}
    for name, key, exact_key in THRESHOLD_KEYS:
        fields[name] = _decode_threshold(query, key, exact_key, whole=(name == "bedrooms"))
    for name, min_key, max_key in RANGE_KEYS:
        fields[name] = _decode_range(query, min_key, max_key)

    fields["deal_type"] = DealType.lookup(query.get("dealType"))
    fields["city"] = normalize_text(query.get("city"))
    fields["zipcode"] = normalize_text(query.get("zipcode"))
    fields["search"] = normalize_text(query.get("search"))
    return FilterCriteria(**fields)


def encode_criteria(criteria: FilterCriteria) -> Dict[str, str]:
    """Write FilterCriteria as a flat query mapping, in canonical key order."""
    query: Dict[str, str] = {}

    for name, key, exact_key in THRESHOLD_KEYS:
        threshold: Optional[ThresholdCriterion] = getattr(criteria, name)
        if threshold is not None:
            query[key] = format_number(threshold.value)
            query[exact_key] = "true" if threshold.exact else "false"

    for name, min_key, max_key in RANGE_KEYS[:2]:
        _encode_range(query, getattr(criteria, name), min_key, max_key)

    if criteria.deal_type is not None:
        query["dealType"] = criteria.deal_type.value

    _encode_range(query, criteria.entry_price, "minEntryPrice", "maxEntryPrice")

    if criteria.city:
        query["city"] = criteria.city
    if criteria.zipcode:
        query["zipcode"] = criteria.zipcode
    if criteria.search:
        query["search"] = criteria.search
    return query


def _encode_range(query: Dict[str, str], criterion: Optional[RangeCriterion], min_key: str, max_key: str) -> None:
    if criterion is None:
        return
    if criterion.min is not None:
        query[min_key] = format_number(criterion.min)
    if criterion.max is not None:
        query[max_key] = format_number(criterion.max)


def decode_page_request(query: Mapping[str, str], default_limit: Optional[int] = None) -> PageRequest:
    """Read page/limit; malformed values fall back to page 1 and the default limit."""
    default_limit = default_limit or settings.default_page_limit
    page = parse_int(query.get(PAGE_KEY))
    limit = parse_int(query.get(LIMIT_KEY))
    return PageRequest(
        page=page if page is not None else 1,
        limit=limit if limit is not None else default_limit,
    )


def encode_page_request(request: PageRequest, default_limit: Optional[int] = None) -> Dict[str, str]:
    """Write page/limit, omitting values equal to the defaults."""
    default_limit = default_limit or settings.default_page_limit
    query: Dict[str, str] = {}
    if request.page != 1:
        query[PAGE_KEY] = str(request.page)
    if request.limit != default_limit:
        query[LIMIT_KEY] = str(request.limit)
    return query


def build_query_string(criteria: FilterCriteria, page_request: Optional[PageRequest] = None) -> str:
    """Canonical shareable query string (without the leading '?')."""
    query = encode_criteria(criteria)
    if page_request is not None:
        query.update(encode_page_request(page_request))
    return urlencode(query)


def merge_criteria(query: Mapping[str, str], criteria: FilterCriteria) -> Dict[str, str]:
    """Replace every filter key of ``query`` with ``criteria``.

    Unrelated keys and the page size survive; the page number is dropped
    because a new filter always starts from page 1.
    """
    merged = {
        key: value
        for key, value in query.items()
        if key not in FILTER_KEYS and key != PAGE_KEY
    }
    merged.update(encode_criteria(criteria))
    return merged


def remove_filter_keys(query: Mapping[str, str], keys: Iterable[str]) -> Dict[str, str]:
    """Drop ``keys`` (one filter chip) from the query and reset to page 1."""
    dropped = set(keys) | {PAGE_KEY}
    return {key: value for key, value in query.items() if key not in dropped}


def _grouped(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,}"


def _range_text(criterion: RangeCriterion, render, suffix: str = "") -> str:
    if criterion.min is not None and criterion.max is not None:
        return f"{render(criterion.min)}-{render(criterion.max)}{suffix}"
    if criterion.min is not None:
        return f"{render(criterion.min)}+{suffix}"
    return f"Up to {render(criterion.max)}{suffix}"


def active_filter_tags(criteria: FilterCriteria) -> List[FilterTag]:
    """Describe active filters as removable chips, in sidebar order."""
    tags: List[FilterTag] = []

    if criteria.bedrooms is not None:
        value = format_number(criteria.bedrooms.value)
        tags.append(FilterTag(
            key="bedrooms",
            label="Bedrooms",
            value=value if criteria.bedrooms.exact else f"{value}+",
            remove_keys=["bedrooms", "exactBedrooms"],
        ))
    if criteria.bathrooms is not None:
        value = format_number(criteria.bathrooms.value)
        tags.append(FilterTag(
            key="bathrooms",
            label="Bathrooms",
            value=value if criteria.bathrooms.exact else f"{value}+",
            remove_keys=["bathrooms", "exactBathrooms"],
        ))
    if criteria.square_feet is not None:
        tags.append(FilterTag(
            key="sqft",
            label="Sq Ft",
            value=_range_text(criteria.square_feet, _grouped),
            remove_keys=["minSqFt", "maxSqFt"],
        ))
    if criteria.lot_size is not None:
        tags.append(FilterTag(
            key="lotsize",
            label="Lot Size",
            value=_range_text(criteria.lot_size, format_number, " acres"),
            remove_keys=["minLotSize", "maxLotSize"],
        ))
    if criteria.deal_type is not None:
        tags.append(FilterTag(
            key="dealType",
            label="Deal Type",
            value=DEAL_TYPE_LABELS[criteria.deal_type],
            remove_keys=["dealType"],
        ))
    if criteria.entry_price is not None:
        tags.append(FilterTag(
            key="entryprice",
            label="Entry Price",
            value=_range_text(criteria.entry_price, lambda v: f"${_grouped(v)}"),
            remove_keys=["minEntryPrice", "maxEntryPrice"],
        ))
    if criteria.city:
        tags.append(FilterTag(key="city", label="City", value=criteria.city, remove_keys=["city"]))
    if criteria.zipcode:
        tags.append(FilterTag(key="zipcode", label="Zipcode", value=criteria.zipcode, remove_keys=["zipcode"]))

    return tags
