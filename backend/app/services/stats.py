from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from sqlmodel import Session, select, func

from app.models.account import Shop, User
from app.models.order import Order, OrderStatus
from app.services.lifecycle import TERMINAL

_OPEN = [s.value for s in OrderStatus if s not in TERMINAL]


def _count(session: Session, model, *conditions) -> int:
    stmt = select(func.count()).select_from(model)
    for cond in conditions:
        stmt = stmt.where(cond)
    total = session.exec(stmt).one()
    if isinstance(total, tuple):
        total = total[0]
    return int(total or 0)


def _by_status(session: Session, shop_ids: Optional[Iterable[int]] = None) -> Dict[str, int]:
    stmt = select(Order.status, func.count()).group_by(Order.status)
    if shop_ids is not None:
        stmt = stmt.where(Order.shop_id.in_(list(shop_ids)))
    counts = {s.value: 0 for s in OrderStatus}
    for status, n in session.exec(stmt).all():
        counts[status or "unknown"] = int(n)
    return counts


def admin_stats(session: Session) -> Dict[str, Any]:
    return {
        "total_users": _count(session, User),
        "total_shops": _count(session, Shop),
        "total_orders": _count(session, Order),
        "active_users": _count(session, User, User.is_active == True),  # noqa: E712
        "active_shops": _count(session, Shop, Shop.is_active == True),  # noqa: E712
        "orders_by_status": _by_status(session),
        "urgent_open_orders": _count(session, Order, Order.is_urgent == True, Order.status.in_(_OPEN)),  # noqa: E712
    }


def shop_summary(session: Session, shop_ids: Iterable[int]) -> Dict[str, Any]:
    shop_ids = list(shop_ids)
    midnight = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    in_shop = Order.shop_id.in_(shop_ids)
    return {
        "total_orders": _count(session, Order, in_shop),
        "by_status": _by_status(session, shop_ids),
        "urgent_open": _count(session, Order, in_shop, Order.is_urgent == True, Order.status.in_(_OPEN)),  # noqa: E712
        "today": _count(session, Order, in_shop, Order.created_at >= midnight),
    }
