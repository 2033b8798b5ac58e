import logging
from typing import List, Optional

from sqlmodel import Session, select, func

from app.models.account import User
from app.models.message import Message
from app.services.errors import AccessDenied, NotFound, ValidationFailed
from app.services.orders import OrderService

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000


class ChatService:
    """Per-order messages between a customer and the shop."""

    def __init__(self, session: Session):
        self.session = session
        self.orders = OrderService(session)

    def list_messages(self, order_id: str, user: User) -> List[Message]:
        self.orders.get_for(order_id, user)
        rows = self.session.exec(
            select(Message).where(Message.order_id == order_id).order_by(Message.created_at, Message.id)
        ).all()
        return list(rows)

    def send_message(self, order_id: str, user: User, text: Optional[str], recipient_id: Optional[int]) -> Message:
        body = (text or "").strip()
        if not body:
            raise ValidationFailed("Message must not be empty")
        if len(body) > MAX_MESSAGE_LENGTH:
            raise ValidationFailed(f"Message must be at most {MAX_MESSAGE_LENGTH} characters")
        if recipient_id is None:
            raise ValidationFailed("recipientId is required")

        self.orders.get_for(order_id, user)
        if self.session.get(User, recipient_id) is None:
            raise ValidationFailed("Recipient does not exist")

        msg = Message(order_id=order_id, sender_id=user.id, recipient_id=recipient_id, message=body)
        self.session.add(msg)
        self.session.commit()
        self.session.refresh(msg)
        logger.info("Message sent id=%s order_id=%s sender_id=%s", msg.id, order_id, user.id)
        return msg

    def unread_count(self, user: User) -> int:
        total = self.session.exec(
            select(func.count()).select_from(Message).where(
                Message.recipient_id == user.id, Message.is_read == False  # noqa: E712
            )
        ).one()
        return int(total or 0)

    def mark_read(self, message_id: int, user: User) -> Message:
        msg = self.session.get(Message, message_id)
        if msg is None:
            raise NotFound("Message not found")
        if msg.recipient_id != user.id:
            raise AccessDenied("Only the recipient can mark a message as read")
        if not msg.is_read:
            msg.is_read = True
            self.session.add(msg)
            self.session.commit()
            self.session.refresh(msg)
        return msg
