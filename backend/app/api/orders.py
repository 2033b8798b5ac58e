import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlmodel import Session

from app.api.deps import current_user
from app.api.schemas import AdvanceRequest, StatusUpdate, order_out
from app.db.session import get_db
from app.models.account import User
from app.services.orders import OrderService

logger = logging.getLogger(__name__)
router = APIRouter()


def _full(service: OrderService, order) -> dict:
    return order_out(order, service.files(order.id))


@router.post("", status_code=201)
async def create_order(
    shop_id: int = Form(..., alias="shopId"),
    order_type: Optional[str] = Form(None, alias="orderType"),
    customer_name: Optional[str] = Form(None, alias="customerName"),
    customer_phone: Optional[str] = Form(None, alias="customerPhone"),
    description: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    user: User = Depends(current_user),
    session: Session = Depends(get_db),
):
    """Place an order at a shop, with any uploaded print files attached."""
    logger.info("Received order request: shop_id=%s type=%s files=%s", shop_id, order_type, len(files or []))
    uploads = [(f.filename, f.content_type, await f.read()) for f in files or []]
    service = OrderService(session)
    order = service.create_order(
        user,
        shop_id,
        order_type=order_type,
        customer_name=customer_name,
        customer_phone=customer_phone,
        description=description,
        uploads=uploads,
    )
    return _full(service, order)


@router.get("")
def list_orders(
    status: Optional[str] = None,
    order_type: Optional[str] = Query(None, alias="orderType"),
    urgent: Optional[bool] = None,
    user: User = Depends(current_user),
    session: Session = Depends(get_db),
):
    service = OrderService(session)
    orders = service.list_for(user, status=status, order_type=order_type, urgent=urgent)
    return [_full(service, o) for o in orders]


@router.get("/{order_id}")
def get_order(order_id: str, user: User = Depends(current_user), session: Session = Depends(get_db)):
    service = OrderService(session)
    return _full(service, service.get_for(order_id, user))


@router.patch("/{order_id}/status")
def update_status(
    order_id: str,
    upd: StatusUpdate,
    user: User = Depends(current_user),
    session: Session = Depends(get_db),
):
    service = OrderService(session)
    order = service.set_status(order_id, user, upd.status, expected=upd.expected_status)
    return _full(service, order)


@router.post("/{order_id}/advance")
def advance_order(
    order_id: str,
    req: Optional[AdvanceRequest] = None,
    user: User = Depends(current_user),
    session: Session = Depends(get_db),
):
    service = OrderService(session)
    order = service.advance(order_id, user, expected=req.expected_status if req else None)
    return _full(service, order)


@router.post("/{order_id}/cancel")
def cancel_order(order_id: str, user: User = Depends(current_user), session: Session = Depends(get_db)):
    service = OrderService(session)
    return _full(service, service.cancel(order_id, user))


@router.patch("/{order_id}/urgency")
def toggle_urgency(order_id: str, user: User = Depends(current_user), session: Session = Depends(get_db)):
    service = OrderService(session)
    return _full(service, service.toggle_urgency(order_id, user))


@router.get("/{order_id}/actions")
def order_actions(order_id: str, user: User = Depends(current_user), session: Session = Depends(get_db)):
    return OrderService(session).actions_for(order_id, user).as_dict()
