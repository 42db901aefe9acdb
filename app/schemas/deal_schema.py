"""Pydantic schemas for deals: the engine's in-memory record and API payloads."""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from app.config import settings
from app.services.mapper_service import (
    normalize_text,
    parse_date,
    parse_int,
    parse_number,
)


class DealType(str, Enum):
    CASH_DEAL = "cash_deal"
    SELLER_FINANCE = "seller_finance"
    MORTGAGE_TAKEOVER = "mortgage_takeover"
    TRUST_ACQUISITION = "trust_acquisition"

    @classmethod
    def lookup(cls, raw: Any) -> Optional["DealType"]:
        """Case-insensitive lookup; unknown values return None."""
        if isinstance(raw, cls):
            return raw
        text = normalize_text(raw)
        if text is None:
            return None
        try:
            return cls(text.lower())
        except ValueError:
            return None


DEAL_TYPE_LABELS = {
    DealType.CASH_DEAL: "Cash Deal",
    DealType.SELLER_FINANCE: "Seller Finance",
    DealType.MORTGAGE_TAKEOVER: "Mortgage Takeover",
    DealType.TRUST_ACQUISITION: "Trust Acquisition",
}


class DealStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CLOSED = "closed"


class DispositionStatus(str, Enum):
    NEW = "new"
    MARKETING = "marketing"
    NEGOTIATING = "negotiating"
    UNDER_CONTRACT = "under_contract"
    CLOSED = "closed"
    DEAD = "dead"


_FLOAT_FACETS = (
    "asking_price",
    "buyer_entry_cost",
    "arv",
    "repair_estimate",
    "bathrooms",
    "lot_size_acres",
)
_INT_FACETS = ("bedrooms", "square_feet")


class DealRecord(BaseModel):
    """A deal as seen by the discovery engine.

    Numeric facets arrive from the store as numbers or as text. They are
    coerced on construction; values that are not finite numbers become None
    so that filters treat them as missing rather than as zero.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    property_address: Optional[str] = None
    property_city: Optional[str] = None
    property_state: Optional[str] = None
    property_zip: Optional[str] = None
    property_type: Optional[str] = None

    asking_price: Optional[float] = None
    buyer_entry_cost: Optional[float] = None
    arv: Optional[float] = None
    repair_estimate: Optional[float] = None
    deal_type: Optional[DealType] = None

    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    square_feet: Optional[int] = None
    lot_size_acres: Optional[float] = None

    status: Optional[DealStatus] = None
    disposition_status: Optional[DispositionStatus] = None
    expected_closing_date: Optional[date] = None

    owner_id: Optional[str] = None
    owner_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(*_FLOAT_FACETS, mode="before")
    @classmethod
    def _coerce_float(cls, v):
        return parse_number(v)

    @field_validator(*_INT_FACETS, mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return parse_int(v)

    @field_validator("deal_type", mode="before")
    @classmethod
    def _coerce_deal_type(cls, v):
        return DealType.lookup(v)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v):
        text = normalize_text(v)
        if text is None:
            return None
        try:
            return DealStatus(text.lower())
        except ValueError:
            return None

    @field_validator("disposition_status", mode="before")
    @classmethod
    def _coerce_disposition(cls, v):
        text = normalize_text(v)
        if text is None:
            return None
        try:
            return DispositionStatus(text.lower())
        except ValueError:
            return None

    @field_validator("expected_closing_date", mode="before")
    @classmethod
    def _coerce_closing_date(cls, v):
        return parse_date(v)

    @property
    def entry_cost(self) -> Optional[float]:
        """Buyer entry cost, falling back to a share of the asking price."""
        cost = parse_number(self.buyer_entry_cost)
        if cost is not None:
            return cost
        asking = parse_number(self.asking_price)
        if asking is not None:
            return asking * settings.entry_cost_ratio
        return None

    @property
    def pipeline_stage(self) -> DispositionStatus:
        return self.disposition_status or DispositionStatus.NEW


class DealBase(BaseModel):
    """Shared fields for create and read."""
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    property_address: str = Field(..., min_length=1, max_length=500)
    property_city: Optional[str] = None
    property_state: Optional[str] = None
    property_zip: Optional[str] = None
    property_type: Optional[str] = None

    asking_price: Decimal = Field(..., gt=0)
    buyer_entry_cost: Optional[Decimal] = Field(None, gt=0)
    arv: Optional[Decimal] = Field(None, ge=0)
    repair_estimate: Optional[Decimal] = Field(None, ge=0)
    deal_type: Optional[DealType] = None

    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0, multiple_of=0.5)
    square_feet: Optional[int] = Field(None, gt=0)
    lot_size_acres: Optional[float] = Field(None, gt=0)

    disposition_status: Optional[DispositionStatus] = None
    expected_closing_date: Optional[date] = None


class DealCreate(DealBase):
    """Schema for creating a new deal."""
    wholesaler_id: str
    status: DealStatus = DealStatus.PENDING


class DealUpdate(BaseModel):
    """Schema for partial deal updates (all fields optional)."""
    model_config = ConfigDict(use_enum_values=True)

    title: Optional[str] = None
    description: Optional[str] = None
    property_address: Optional[str] = None
    property_city: Optional[str] = None
    property_state: Optional[str] = None
    property_zip: Optional[str] = None
    property_type: Optional[str] = None
    asking_price: Optional[Decimal] = Field(None, gt=0)
    buyer_entry_cost: Optional[Decimal] = Field(None, gt=0)
    arv: Optional[Decimal] = None
    repair_estimate: Optional[Decimal] = None
    deal_type: Optional[DealType] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0, multiple_of=0.5)
    square_feet: Optional[int] = Field(None, gt=0)
    lot_size_acres: Optional[float] = Field(None, gt=0)
    status: Optional[DealStatus] = None
    disposition_status: Optional[DispositionStatus] = None
    expected_closing_date: Optional[date] = None

    @field_validator("title", "property_address", "asking_price", mode="before")
    @classmethod
    def _reject_null(cls, v):
        # required columns may be left out of a patch, never cleared
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class DealRead(DealBase):
    """Schema for single-deal responses."""
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: str
    wholesaler_id: str
    status: DealStatus
    created_at: datetime
    updated_at: datetime


class DealCard(BaseModel):
    """Marketplace grid card."""
    id: str
    title: Optional[str] = None
    property_address: Optional[str] = None
    property_city: Optional[str] = None
    property_state: Optional[str] = None
    property_zip: Optional[str] = None
    asking_price: Optional[float] = None
    entry_cost: Optional[float] = None
    deal_type: Optional[DealType] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    square_feet: Optional[int] = None
    lot_size_acres: Optional[float] = None
    status: Optional[DealStatus] = None
    owner_name: Optional[str] = None
    created_at: Optional[datetime] = None
    is_saved: bool = False

    @computed_field
    @property
    def deal_type_label(self) -> Optional[str]:
        return DEAL_TYPE_LABELS.get(self.deal_type) if self.deal_type else None

    @classmethod
    def from_record(cls, record: DealRecord, is_saved: bool = False) -> "DealCard":
        return cls(
            id=record.id,
            title=record.title,
            property_address=record.property_address,
            property_city=record.property_city,
            property_state=record.property_state,
            property_zip=record.property_zip,
            asking_price=record.asking_price,
            entry_cost=record.entry_cost,
            deal_type=record.deal_type,
            bedrooms=record.bedrooms,
            bathrooms=record.bathrooms,
            square_feet=record.square_feet,
            lot_size_acres=record.lot_size_acres,
            status=record.status,
            owner_name=record.owner_name,
            created_at=record.created_at,
            is_saved=is_saved,
        )


class AdminDealRow(BaseModel):
    """Row in the admin CRM table."""
    id: str
    title: Optional[str] = None
    property_address: Optional[str] = None
    property_city: Optional[str] = None
    property_state: Optional[str] = None
    property_zip: Optional[str] = None
    asking_price: Optional[float] = None
    arv: Optional[float] = None
    repair_estimate: Optional[float] = None
    status: Optional[DealStatus] = None
    disposition_status: DispositionStatus
    expected_closing_date: Optional[date] = None
    wholesaler: Optional[str] = None

    @classmethod
    def from_record(cls, record: DealRecord) -> "AdminDealRow":
        return cls(
            id=record.id,
            title=record.title,
            property_address=record.property_address,
            property_city=record.property_city,
            property_state=record.property_state,
            property_zip=record.property_zip,
            asking_price=record.asking_price,
            arv=record.arv,
            repair_estimate=record.repair_estimate,
            status=record.status,
            disposition_status=record.pipeline_stage,
            expected_closing_date=record.expected_closing_date,
            wholesaler=record.owner_name,
        )
