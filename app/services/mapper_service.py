"""Mapper service — coerces stored deal values into the engine's canonical shapes.

Handles:
- Number parsing: 1850, "1850", " 1,850 ", "$85,000" → 1850.0 / 85000.0
- Integer parsing with truncation: "3", "3.0", "3.7" → 3
- Boolean flags: "true"/"1"/"yes" → True
- Date parsing: "2026-03-01" → date(2026, 3, 1)
- ORM Deal row → plain payload for DealRecord

Anything that cannot be read as a finite number is treated as absent (None),
never as zero.
"""
import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from app.core.logging import get_logger

logger = get_logger(__name__)


_NUMBER_NOISE = re.compile(r"[\s,$]")


def parse_number(raw: Any) -> Optional[float]:
    """Parse a numeric facet value stored as a number or as text."""
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float, Decimal)):
        try:
            value = float(raw)
        except (InvalidOperation, ValueError):
            return None
        return value if math.isfinite(value) else None

    if not isinstance(raw, str):
        return None

    num_str = _NUMBER_NOISE.sub("", raw)
    if not num_str:
        return None

    try:
        value = float(num_str)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_int(raw: Any) -> Optional[int]:
    """Parse an integer facet, truncating any fractional part."""
    value = parse_number(raw)
    if value is None:
        return None
    return int(value)


def parse_bool(raw: Any) -> Optional[bool]:
    """Map 'true'/'1'/'yes' to True and 'false'/'0'/'no' to False."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return raw
    raw_lower = str(raw).strip().lower()
    if raw_lower in ("true", "1", "yes", "on"):
        return True
    if raw_lower in ("false", "0", "no", "off"):
        return False
    return None


_DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%m/%d/%Y",
]


def parse_date(raw: Any) -> Optional[date]:
    """Parse a calendar date from a date, datetime or string."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(str(raw).strip(), fmt).date()
        except ValueError:
            continue
    logger.warning("Failed to parse date: '%s'", raw)
    return None


def normalize_text(raw: Any) -> Optional[str]:
    """Strip a text value; empty strings become None."""
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def deal_to_payload(deal: Any) -> Dict[str, Any]:
    """Convert a Deal ORM row (with its wholesaler profile) to a DealRecord payload."""
    owner = getattr(deal, "wholesaler", None)
    return {
        "id": deal.id,
        "title": deal.title,
        "description": deal.description,
        "property_address": deal.property_address,
        "property_city": deal.property_city,
        "property_state": deal.property_state,
        "property_zip": deal.property_zip,
        "property_type": deal.property_type,
        "asking_price": deal.asking_price,
        "buyer_entry_cost": deal.buyer_entry_cost,
        "arv": deal.arv,
        "repair_estimate": deal.repair_estimate,
        "deal_type": deal.deal_type,
        "bedrooms": deal.bedrooms,
        "bathrooms": deal.bathrooms,
        "square_feet": deal.square_feet,
        "lot_size_acres": deal.lot_size_acres,
        "status": deal.status,
        "disposition_status": deal.disposition_status,
        "expected_closing_date": deal.expected_closing_date,
        "owner_id": deal.wholesaler_id,
        "owner_name": owner.display_name if owner else None,
        "created_at": deal.created_at,
        "updated_at": deal.updated_at,
    }
