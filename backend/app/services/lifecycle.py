"""Order status lifecycle and order-card actions.

Canonical statuses: received -> started -> completed, plus cancelled which can
be reached from any non-terminal status. Older vocabularies
(new/confirmed/processing/ready, digital/walkin) are accepted on input and
folded into the canonical ones.
"""
from dataclasses import dataclass
from typing import Optional, Union

from app.models.account import Role
from app.models.order import OrderStatus, OrderType
from app.services.errors import InvalidTransition

_NEXT = {
    OrderStatus.RECEIVED: OrderStatus.STARTED,
    OrderStatus.STARTED: OrderStatus.COMPLETED,
}

_ADVANCE_LABELS = {
    OrderStatus.RECEIVED: "Start",
    OrderStatus.STARTED: "Complete",
}

TERMINAL = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

_LEGACY_STATUS = {
    "new": OrderStatus.RECEIVED,
    "confirmed": OrderStatus.RECEIVED,
    "processing": OrderStatus.STARTED,
    "ready": OrderStatus.STARTED,
}

_LEGACY_ORDER_TYPE = {
    "digital": OrderType.UPLOADED_FILES,
    "walkin": OrderType.WALK_IN,
}

StatusLike = Union[OrderStatus, str]


def normalize_status(value: StatusLike) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    key = (value or "").strip().lower()
    try:
        return OrderStatus(key)
    except ValueError:
        pass
    if key in _LEGACY_STATUS:
        return _LEGACY_STATUS[key]
    raise ValueError(f"unknown order status: {value!r}")


def normalize_order_type(value: Union[OrderType, str, None]) -> OrderType:
    if isinstance(value, OrderType):
        return value
    if value is None:
        return OrderType.UPLOADED_FILES
    key = value.strip().lower()
    try:
        return OrderType(key)
    except ValueError:
        pass
    if key in _LEGACY_ORDER_TYPE:
        return _LEGACY_ORDER_TYPE[key]
    raise ValueError(f"unknown order type: {value!r}")


def is_terminal(status: StatusLike) -> bool:
    return normalize_status(status) in TERMINAL


def next_status(status: StatusLike) -> Optional[OrderStatus]:
    """Status an advance moves to, or None when there is nothing to advance to."""
    return _NEXT.get(normalize_status(status))


def advance_label(status: StatusLike) -> Optional[str]:
    return _ADVANCE_LABELS.get(normalize_status(status))


def can_cancel(status: StatusLike) -> bool:
    return not is_terminal(status)


def check_transition(current: StatusLike, target: StatusLike) -> OrderStatus:
    """Validate a move from `current` to `target` and return the canonical target.

    Only the single forward step, or cancellation of a non-terminal order, is
    allowed.
    """
    current = normalize_status(current)
    target = normalize_status(target)
    if current in TERMINAL:
        raise InvalidTransition(f"order is already {current.value}")
    if target == OrderStatus.CANCELLED or target == _NEXT.get(current):
        return target
    raise InvalidTransition(f"cannot move order from {current.value} to {target.value}")


def toggled(is_urgent: Optional[bool]) -> bool:
    return not bool(is_urgent)


def tel_link(phone: Optional[str]) -> Optional[str]:
    # no format validation, the number is dialled as stored
    if not phone:
        return None
    return f"tel:{phone}"


@dataclass
class CardActions:
    advance_to: Optional[OrderStatus]
    advance_label: Optional[str]
    can_cancel: bool
    can_toggle_urgency: bool
    call_link: Optional[str]
    can_chat: bool

    def as_dict(self) -> dict:
        return {
            "advance_to": self.advance_to.value if self.advance_to else None,
            "advance_label": self.advance_label,
            "can_cancel": self.can_cancel,
            "can_toggle_urgency": self.can_toggle_urgency,
            "call_link": self.call_link,
            "can_chat": self.can_chat,
        }


def card_actions(order, role: str, shop_phone: Optional[str] = None) -> CardActions:
    """Actions an order card offers to a viewer with the given role.

    Shop owners and admins manage the order; customers can only call the shop
    and chat.
    """
    status = normalize_status(order.status)
    manages = role in (Role.SHOP_OWNER.value, Role.ADMIN.value)
    if manages:
        phone = order.customer_phone
    else:
        phone = shop_phone
    return CardActions(
        advance_to=next_status(status) if manages else None,
        advance_label=advance_label(status) if manages else None,
        can_cancel=manages and can_cancel(status),
        can_toggle_urgency=manages,
        call_link=tel_link(phone),
        can_chat=True,
    )
