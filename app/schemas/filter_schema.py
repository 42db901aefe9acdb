"""Pydantic schemas for marketplace search state: filters, paging and sorting."""
import math
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.deal_schema import DealType


class ThresholdCriterion(BaseModel):
    """Minimum value, or exact value when ``exact`` is set."""
    model_config = ConfigDict(frozen=True)

    value: float = Field(..., ge=0)
    exact: bool = False


class RangeCriterion(BaseModel):
    """Independent optional lower and upper bounds (inclusive)."""
    model_config = ConfigDict(frozen=True)

    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)

    @property
    def is_empty(self) -> bool:
        return self.min is None and self.max is None


class FilterCriteria(BaseModel):
    """User-chosen marketplace filters. Every field is optional.

    Text is stripped and empty values collapse to None, as do ranges with
    no bounds, so two criteria that filter the same way compare equal.
    """
    model_config = ConfigDict(frozen=True)

    bedrooms: Optional[ThresholdCriterion] = None
    bathrooms: Optional[ThresholdCriterion] = None
    square_feet: Optional[RangeCriterion] = None
    lot_size: Optional[RangeCriterion] = None
    entry_price: Optional[RangeCriterion] = None
    deal_type: Optional[DealType] = None
    city: Optional[str] = None
    zipcode: Optional[str] = None
    search: Optional[str] = None

    @field_validator("city", "zipcode", "search", mode="before")
    @classmethod
    def _strip_text(cls, v):
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("bedrooms")
    @classmethod
    def _whole_bedrooms(cls, v: Optional[ThresholdCriterion]):
        if v is not None and v.value != math.floor(v.value):
            raise ValueError("bedrooms threshold must be a whole number")
        return v

    @field_validator("square_feet", "lot_size", "entry_price", mode="before")
    @classmethod
    def _drop_empty_range(cls, v):
        if isinstance(v, RangeCriterion) and v.is_empty:
            return None
        if isinstance(v, dict) and v.get("min") is None and v.get("max") is None:
            return None
        return v

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in type(self).model_fields)


class PageRequest(BaseModel):
    """1-based page number and page size, as read from the URL."""
    model_config = ConfigDict(frozen=True)

    page: int = 1
    limit: int = 25

    def clamped(self, min_limit: int) -> "PageRequest":
        return PageRequest(page=max(1, self.page), limit=max(min_limit, self.limit))


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortKey(str, Enum):
    TITLE = "title"
    PROPERTY_ADDRESS = "property_address"
    PROPERTY_CITY = "property_city"
    PROPERTY_ZIP = "property_zip"
    ASKING_PRICE = "asking_price"
    BUYER_ENTRY_COST = "buyer_entry_cost"
    ARV = "arv"
    BEDROOMS = "bedrooms"
    BATHROOMS = "bathrooms"
    SQUARE_FEET = "square_feet"
    LOT_SIZE_ACRES = "lot_size_acres"
    DEAL_TYPE = "deal_type"
    STATUS = "status"
    DISPOSITION_STATUS = "disposition_status"
    EXPECTED_CLOSING_DATE = "expected_closing_date"
    CREATED_AT = "created_at"
    WHOLESALER = "wholesaler"


class SortState(BaseModel):
    """Active column sort in the admin table."""
    model_config = ConfigDict(frozen=True)

    key: SortKey
    direction: SortDirection = SortDirection.ASC


class FilterTag(BaseModel):
    """A removable chip describing one active filter."""
    key: str
    label: str
    value: str
    remove_keys: List[str]
