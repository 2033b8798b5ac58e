from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.api.deps import current_user
from app.api.schemas import ProfileUpdate, user_out
from app.db.session import get_db
from app.models.account import User
from app.services.accounts import UserService

router = APIRouter()


def _me(user: User) -> dict:
    data = user_out(user)
    # only drives the name prompt; nothing else is gated on it
    data["needs_name"] = not (user.name or "").strip()
    return data


@router.get("/me")
def me(user: User = Depends(current_user)):
    return _me(user)


@router.put("/profile")
def update_profile(upd: ProfileUpdate, user: User = Depends(current_user), session: Session = Depends(get_db)):
    user = UserService(session).update_profile(user, name=upd.name, email=upd.email)
    return _me(user)
