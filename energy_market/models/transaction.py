"""
Energy transaction model - one purchase against an offer.
"""

from sqlmodel import SQLModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum

from energy_market.models.common import ApiModel, DecimalString, new_id
from energy_market.models.offer import EnergyOfferRead
from energy_market.utils.time import utc_now


class TransactionStatus(str, Enum):
    """Transaction status lifecycle."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class EnergyTransactionBase(SQLModel):
    """Base energy transaction schema."""
    offer_id: str = Field(..., foreign_key="energy_offers.id", index=True)
    buyer_id: str = Field(..., foreign_key="users.id", index=True)
    seller_id: str = Field(..., foreign_key="users.id", index=True)
    energy_amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    total_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=6)
    transaction_hash: Optional[str] = Field(default=None)
    block_number: Optional[int] = Field(default=None, ge=0)


class EnergyTransaction(EnergyTransactionBase, table=True):
    """Energy transaction database table."""
    __tablename__ = "energy_transactions"

    id: str = Field(default_factory=new_id, primary_key=True)
    status: TransactionStatus = Field(default=TransactionStatus.PENDING)
    created_at: datetime = Field(default_factory=utc_now, index=True)


class EnergyTransactionCreate(ApiModel, EnergyTransactionBase):
    """Schema for creating a transaction. A supplied status is ignored."""
    status: Optional[TransactionStatus] = None


class EnergyTransactionRead(ApiModel):
    """Schema for reading a transaction."""
    id: str
    offer_id: str
    buyer_id: str
    seller_id: str
    energy_amount: DecimalString
    total_price: DecimalString
    status: TransactionStatus
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    created_at: Optional[datetime] = None


class TransactionStatusUpdate(ApiModel):
    """Status change; omitted hash/block number keep their stored values."""
    status: TransactionStatus
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = Field(default=None, ge=0)


class PurchaseRequest(ApiModel):
    """Purchase against an offer; energyAmount defaults to everything remaining."""
    buyer_id: str = Field(..., min_length=1)
    energy_amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)


class TransactionResponse(ApiModel):
    transaction: EnergyTransactionRead


class TransactionListResponse(ApiModel):
    transactions: List[EnergyTransactionRead]


class PurchaseResponse(ApiModel):
    transaction: EnergyTransactionRead
    offer: EnergyOfferRead
