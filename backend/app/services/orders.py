import logging
from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, func

from app.models.account import Role, Shop, User
from app.models.order import Order, OrderFile, OrderStatus, OrderType, utcnow
from app.services import lifecycle
from app.services.errors import AccessDenied, Conflict, InvalidTransition, NotFound, StaleStatus, ValidationFailed
from app.services.files import FileStore, Upload

logger = logging.getLogger(__name__)

ID_ATTEMPTS = 5

ID_PREFIX = {
    OrderType.UPLOADED_FILES: "UF",
    OrderType.WALK_IN: "WI",
}


def _owns_shop(session: Session, user: User, shop_id: Optional[int]) -> bool:
    if shop_id is None:
        return False
    shop = session.get(Shop, shop_id)
    return shop is not None and shop.owner_id == user.id


def can_view(session: Session, order: Order, user: User) -> bool:
    if user.role == Role.ADMIN.value:
        return True
    if order.customer_id == user.id:
        return True
    return user.role == Role.SHOP_OWNER.value and _owns_shop(session, user, order.shop_id)


def can_manage(session: Session, order: Order, user: User) -> bool:
    if user.role == Role.ADMIN.value:
        return True
    return user.role == Role.SHOP_OWNER.value and _owns_shop(session, user, order.shop_id)


class OrderService:
    """Order creation, role-scoped listing and the shop-owner actions."""

    def __init__(self, session: Session):
        self.session = session

    def _next_id(self, order_type: OrderType) -> str:
        prefix = ID_PREFIX[order_type]
        last = self.session.exec(select(func.max(Order.id)).where(Order.id.like(f"{prefix}%"))).one()
        if isinstance(last, tuple):
            last = last[0]
        seq = int(last[len(prefix):]) if last and last[len(prefix):].isdigit() else 0
        return f"{prefix}{seq + 1:06d}"

    def create_order(
        self,
        user: User,
        shop_id: int,
        order_type: Optional[str] = None,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        description: Optional[str] = None,
        uploads: Iterable[Upload] = (),
    ) -> Order:
        """Create an order and its attached files in one commit.

        Ids are allocated as the next number after the highest existing one
        with the same prefix; a clash with a concurrent create is retried.
        """
        try:
            kind = lifecycle.normalize_order_type(order_type)
        except ValueError as e:
            raise ValidationFailed(str(e))

        shop = self.session.get(Shop, shop_id)
        if shop is None or not shop.is_active:
            raise NotFound("Shop not found")
        if kind == OrderType.WALK_IN and not shop.allows_offline_orders:
            raise ValidationFailed("This shop does not accept walk-in orders")

        shop_id, user_id = shop.id, user.id
        name, phone = customer_name or user.name, customer_phone or user.phone
        store = FileStore(self.session)
        stored = store.write(uploads)
        try:
            for attempt in range(1, ID_ATTEMPTS + 1):
                order_id = self._next_id(kind)
                order = Order(
                    id=order_id,
                    shop_id=shop_id,
                    customer_id=user_id,
                    customer_name=name,
                    customer_phone=phone,
                    order_type=kind.value,
                    description=description,
                    status=OrderStatus.RECEIVED.value,
                )
                self.session.add(order)
                for f in stored:
                    store.record(order_id, f)
                try:
                    self.session.commit()
                except IntegrityError:
                    self.session.rollback()
                    logger.warning("Order id %s already taken (attempt %s), retrying", order_id, attempt)
                    continue
                self.session.refresh(order)
                logger.info("Created order id=%s shop_id=%s type=%s files=%s", order.id, shop_id, kind.value, len(stored))
                return order
        except Exception:
            self.session.rollback()
            store.discard(stored)
            raise
        store.discard(stored)
        raise Conflict("Could not allocate an order id, please retry")

    def get(self, order_id: str) -> Order:
        order = self.session.get(Order, order_id)
        if order is None:
            raise NotFound("Order not found")
        return order

    def get_for(self, order_id: str, user: User) -> Order:
        order = self.get(order_id)
        if not can_view(self.session, order, user):
            raise AccessDenied("Access denied")
        return order

    def _get_managed(self, order_id: str, user: User) -> Order:
        order = self.get(order_id)
        if not can_manage(self.session, order, user):
            raise AccessDenied("Only the shop owner can change this order")
        return order

    def list_for(
        self,
        user: User,
        status: Optional[str] = None,
        order_type: Optional[str] = None,
        urgent: Optional[bool] = None,
    ) -> List[Order]:
        stmt = select(Order)
        if user.role == Role.CUSTOMER.value:
            stmt = stmt.where(Order.customer_id == user.id).order_by(Order.created_at.desc(), Order.id.desc())
        elif user.role == Role.SHOP_OWNER.value:
            shop_ids = [s.id for s in self.session.exec(select(Shop).where(Shop.owner_id == user.id)).all()]
            if not shop_ids:
                raise NotFound("Shop not found")
            stmt = stmt.where(Order.shop_id.in_(shop_ids)).order_by(
                Order.is_urgent.desc(), Order.created_at.desc(), Order.id.desc()
            )
        else:
            stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc())

        try:
            if status:
                stmt = stmt.where(Order.status == lifecycle.normalize_status(status).value)
            if order_type:
                stmt = stmt.where(Order.order_type == lifecycle.normalize_order_type(order_type).value)
        except ValueError as e:
            raise ValidationFailed(str(e))
        if urgent is not None:
            stmt = stmt.where(Order.is_urgent == urgent)
        return list(self.session.exec(stmt).all())

    def files(self, order_id: str) -> List[OrderFile]:
        rows = self.session.exec(
            select(OrderFile).where(OrderFile.order_id == order_id).order_by(OrderFile.created_at, OrderFile.id)
        ).all()
        return list(rows)

    def set_status(self, order_id: str, user: User, target: str, expected: Optional[str] = None) -> Order:
        """Move an order to `target`, optionally only if it is still at `expected`.

        The write is a compare-and-set on the stored status, so of two
        concurrent requests from the same starting status only one applies.
        """
        order = self._get_managed(order_id, user)
        try:
            current = lifecycle.normalize_status(order.status)
            if expected is not None and lifecycle.normalize_status(expected) != current:
                raise StaleStatus(f"order is {current.value}, not {expected}")
            new_status = lifecycle.check_transition(current, target)
        except ValueError as e:
            raise InvalidTransition(str(e))

        result = self.session.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == current.value)
            .values(status=new_status.value, updated_at=utcnow())
        )
        if result.rowcount == 0:
            self.session.rollback()
            raise StaleStatus("order status changed concurrently")
        self.session.commit()
        self.session.refresh(order)
        logger.info("Order status updated order_id=%s %s->%s", order.id, current.value, new_status.value)
        return order

    def advance(self, order_id: str, user: User, expected: Optional[str] = None) -> Order:
        order = self._get_managed(order_id, user)
        target = lifecycle.next_status(order.status)
        if target is None:
            raise StaleStatus(f"order is already {order.status}")
        return self.set_status(order_id, user, target.value, expected=expected or order.status)

    def cancel(self, order_id: str, user: User) -> Order:
        order = self._get_managed(order_id, user)
        if lifecycle.is_terminal(order.status):
            raise StaleStatus(f"order is already {order.status}")
        return self.set_status(order_id, user, OrderStatus.CANCELLED.value, expected=order.status)

    def toggle_urgency(self, order_id: str, user: User) -> Order:
        order = self._get_managed(order_id, user)
        order.is_urgent = lifecycle.toggled(order.is_urgent)
        order.updated_at = utcnow()
        self.session.add(order)
        self.session.commit()
        self.session.refresh(order)
        logger.info("Order urgency toggled order_id=%s is_urgent=%s", order.id, order.is_urgent)
        return order

    def actions_for(self, order_id: str, user: User) -> lifecycle.CardActions:
        order = self.get_for(order_id, user)
        shop = self.session.get(Shop, order.shop_id) if order.shop_id is not None else None
        role = user.role
        if role == Role.SHOP_OWNER.value and not can_manage(self.session, order, user):
            # a shop owner looking at an order they placed elsewhere acts as a customer
            role = Role.CUSTOMER.value
        return lifecycle.card_actions(order, role, shop_phone=shop.phone if shop else None)
