"""
User model - marketplace participants (prosumers and consumers).
"""

from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from energy_market.models.common import ApiModel, new_id
from energy_market.utils.time import utc_now


class UserType(str, Enum):
    """Marketplace role."""
    PROSUMER = "prosumer"
    CONSUMER = "consumer"


class UserBase(SQLModel):
    """Base user schema."""
    username: str = Field(..., min_length=1, max_length=64, index=True, unique=True)
    wallet_address: Optional[str] = Field(default=None, unique=True, description="Blockchain wallet address")
    user_type: UserType = Field(default=UserType.CONSUMER)


class User(UserBase, table=True):
    """User database table."""
    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True)
    password: str = Field(..., description="Salted password hash")
    created_at: datetime = Field(default_factory=utc_now)


class UserCreate(ApiModel, UserBase):
    """Registration payload; password is plaintext here and hashed before storage."""
    password: str = Field(..., min_length=1)


class UserRead(ApiModel):
    """Public view of a user (never includes the password hash)."""
    id: str
    username: str
    user_type: UserType
    wallet_address: Optional[str] = None
    created_at: Optional[datetime] = None


class LoginRequest(ApiModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class WalletConnectRequest(ApiModel):
    wallet_address: str = Field(..., min_length=1)


class AuthResponse(ApiModel):
    user: UserRead
    token: Optional[str] = None


class UserResponse(ApiModel):
    user: UserRead
