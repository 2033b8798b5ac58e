from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, Enum):
    RECEIVED = "received"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderType(str, Enum):
    UPLOADED_FILES = "uploaded-files"
    WALK_IN = "walk-in"


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    # UF000001 / WI000001
    id: str = Field(primary_key=True, max_length=20)
    shop_id: Optional[int] = Field(default=None, foreign_key="shops.id", index=True)
    customer_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)
    customer_name: Optional[str] = Field(default=None, max_length=255)
    customer_phone: Optional[str] = Field(default=None, max_length=20)
    order_type: str = Field(default=OrderType.UPLOADED_FILES.value)
    description: Optional[str] = None
    status: str = Field(default=OrderStatus.RECEIVED.value, index=True)
    is_urgent: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class OrderFile(SQLModel, table=True):
    __tablename__ = "files"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: str = Field(foreign_key="orders.id", index=True)
    # name on disk, unique per upload
    filename: str
    original_name: str
    file_path: str
    file_size: int
    mime_type: str
    created_at: datetime = Field(default_factory=utcnow)
