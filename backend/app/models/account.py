from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field

from app.models.order import utcnow


class Role(str, Enum):
    CUSTOMER = "customer"
    SHOP_OWNER = "shop_owner"
    ADMIN = "admin"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    phone: Optional[str] = Field(default=None, max_length=20, unique=True)
    email: Optional[str] = Field(default=None, max_length=255, unique=True)
    name: Optional[str] = Field(default=None, max_length=255)
    role: str = Field(default=Role.CUSTOMER.value)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Shop(SQLModel, table=True):
    __tablename__ = "shops"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="users.id", index=True)
    name: str = Field(max_length=255)
    address: str
    phone: str = Field(max_length=20)
    email: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    is_active: bool = Field(default=True, index=True)
    rating: float = Field(default=0.0)
    allows_offline_orders: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
