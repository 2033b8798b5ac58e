from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.account import Shop, User
from app.models.message import Message
from app.models.order import Order, OrderFile


class _Body(BaseModel):
    # accept both camelCase (front end) and snake_case keys
    model_config = ConfigDict(populate_by_name=True)


class StatusUpdate(_Body):
    status: str
    expected_status: Optional[str] = Field(None, alias="expectedStatus")


class AdvanceRequest(_Body):
    expected_status: Optional[str] = Field(None, alias="expectedStatus")


class SendMessage(_Body):
    message: Optional[str] = None
    recipient_id: Optional[int] = Field(None, alias="recipientId")


class ProfileUpdate(_Body):
    name: Optional[str] = None
    email: Optional[str] = None


class AdminUserUpdate(_Body):
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = Field(None, alias="isActive")


class ShopCreate(_Body):
    owner_id: int = Field(..., alias="ownerId")
    name: str
    address: str
    phone: str
    email: Optional[str] = None
    description: Optional[str] = None
    rating: float = 0.0
    allows_offline_orders: bool = Field(True, alias="allowsOfflineOrders")


class ShopUpdate(_Body):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    rating: Optional[float] = None
    is_active: Optional[bool] = Field(None, alias="isActive")
    allows_offline_orders: Optional[bool] = Field(None, alias="allowsOfflineOrders")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def file_out(f: OrderFile) -> dict:
    return {
        "id": f.id,
        "order_id": f.order_id,
        "name": f.original_name,
        "mime_type": f.mime_type,
        "size": f.file_size,
        "url": f"/files/download/{f.id}",
        "created_at": _iso(f.created_at),
    }


def order_out(o: Order, files: Iterable[OrderFile] = ()) -> dict:
    return {
        "id": o.id,
        "shop_id": o.shop_id,
        "customer_id": o.customer_id,
        "customer_name": o.customer_name,
        "customer_phone": o.customer_phone,
        "order_type": o.order_type,
        "description": o.description,
        "status": o.status,
        "is_urgent": o.is_urgent,
        "created_at": _iso(o.created_at),
        "updated_at": _iso(o.updated_at),
        "files": [file_out(f) for f in files],
    }


def message_out(m: Message) -> dict:
    return {
        "id": m.id,
        "order_id": m.order_id,
        "sender_id": m.sender_id,
        "recipient_id": m.recipient_id,
        "message": m.message,
        "is_read": m.is_read,
        "created_at": _iso(m.created_at),
    }


def user_out(u: User) -> dict:
    return {
        "id": u.id,
        "name": u.name,
        "phone": u.phone,
        "email": u.email,
        "role": u.role,
        "is_active": u.is_active,
        "created_at": _iso(u.created_at),
    }


def shop_out(s: Shop) -> dict:
    return {
        "id": s.id,
        "owner_id": s.owner_id,
        "name": s.name,
        "address": s.address,
        "phone": s.phone,
        "email": s.email,
        "description": s.description,
        "is_active": s.is_active,
        "rating": s.rating,
        "allows_offline_orders": s.allows_offline_orders,
    }
