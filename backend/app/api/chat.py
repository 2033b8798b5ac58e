from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.api.deps import current_user
from app.api.schemas import SendMessage, message_out
from app.db.session import get_db
from app.models.account import User
from app.services.chat import ChatService

router = APIRouter()


@router.get("/orders/{order_id}/messages")
def list_messages(order_id: str, user: User = Depends(current_user), session: Session = Depends(get_db)):
    return [message_out(m) for m in ChatService(session).list_messages(order_id, user)]


@router.post("/orders/{order_id}/messages", status_code=201)
def send_message(
    order_id: str,
    body: SendMessage,
    user: User = Depends(current_user),
    session: Session = Depends(get_db),
):
    msg = ChatService(session).send_message(order_id, user, body.message, body.recipient_id)
    return message_out(msg)


@router.get("/chat/unread-count")
def unread_count(user: User = Depends(current_user), session: Session = Depends(get_db)):
    return {"unreadCount": ChatService(session).unread_count(user)}


@router.patch("/chat/messages/{message_id}/read")
def mark_read(message_id: int, user: User = Depends(current_user), session: Session = Depends(get_db)):
    return message_out(ChatService(session).mark_read(message_id, user))
