"""
Energy offer model - a standing listing of energy for sale.
"""

from sqlmodel import SQLModel, Field
from pydantic import StrictBool
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum

from energy_market.models.common import ApiModel, DecimalString, new_id
from energy_market.utils.time import utc_now


class EnergyType(str, Enum):
    """Source of the traded energy."""
    SOLAR = "solar"
    WIND = "wind"
    HYDRO = "hydro"
    OTHER = "other"


class EnergyOfferBase(SQLModel):
    """Base energy offer schema."""
    seller_id: str = Field(..., foreign_key="users.id", index=True)
    energy_amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Energy for sale in kWh")
    price_per_kwh: Decimal = Field(..., ge=0, max_digits=10, decimal_places=6)
    energy_type: EnergyType
    location: Optional[str] = Field(default=None)


class EnergyOffer(EnergyOfferBase, table=True):
    """Energy offer database table."""
    __tablename__ = "energy_offers"

    id: str = Field(default_factory=new_id, primary_key=True)
    is_active: bool = Field(default=True, index=True)
    contract_address: Optional[str] = Field(default=None)
    transaction_hash: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, index=True)


class EnergyOfferCreate(ApiModel, EnergyOfferBase):
    """Schema for creating an offer. A supplied isActive is accepted and ignored."""
    is_active: Optional[bool] = None


class EnergyOfferRead(ApiModel):
    """Schema for reading an offer."""
    id: str
    seller_id: str
    energy_amount: DecimalString
    price_per_kwh: DecimalString
    energy_type: EnergyType
    location: Optional[str] = None
    is_active: bool
    contract_address: Optional[str] = None
    transaction_hash: Optional[str] = None
    created_at: Optional[datetime] = None


class OfferStatusUpdate(ApiModel):
    is_active: StrictBool


class OfferResponse(ApiModel):
    offer: EnergyOfferRead


class OfferListResponse(ApiModel):
    offers: List[EnergyOfferRead]
