from typing import Optional

from fastapi import Depends, Header
from sqlmodel import Session

from app.db.session import get_db
from app.models.account import User
from app.services.accounts import UserService
from app.services.errors import AccessDenied


def current_user(
    x_user_id: Optional[int] = Header(None),
    session: Session = Depends(get_db),
) -> User:
    """Resolve the caller from the X-User-Id header set by the auth gateway."""
    return UserService(session).authenticate(x_user_id)


def require_role(*roles: str):
    def dependency(user: User = Depends(current_user)) -> User:
        if user.role not in roles:
            raise AccessDenied("Insufficient permissions")
        return user

    return dependency
