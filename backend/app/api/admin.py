import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.api.deps import require_role
from app.api.schemas import AdminUserUpdate, ShopCreate, ShopUpdate, shop_out, user_out
from app.db.session import get_db
from app.models.account import Role, User
from app.services import stats
from app.services.accounts import ShopService, UserService

logger = logging.getLogger(__name__)
router = APIRouter()

admin_only = require_role(Role.ADMIN.value)


@router.get("/stats")
def admin_stats(user: User = Depends(admin_only), session: Session = Depends(get_db)):
    try:
        return stats.admin_stats(session)
    except Exception as e:
        logger.exception("Failed to compute admin stats: %s", e)
        raise HTTPException(status_code=500, detail="Failed to get statistics")


@router.get("/users")
def list_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    active: Optional[bool] = None,
    page: int = 1,
    limit: int = 50,
    user: User = Depends(admin_only),
    session: Session = Depends(get_db),
):
    users, total = UserService(session).list_users(search=search, role=role, active=active, page=page, limit=limit)
    return {"users": [user_out(u) for u in users], "total": total, "page": max(page, 1)}


@router.put("/users/{user_id}")
def update_user(
    user_id: int,
    upd: AdminUserUpdate,
    user: User = Depends(admin_only),
    session: Session = Depends(get_db),
):
    updated = UserService(session).admin_update(user_id, upd.model_dump())
    return user_out(updated)


@router.get("/shops")
def list_shops(user: User = Depends(admin_only), session: Session = Depends(get_db)):
    return [shop_out(s) for s in ShopService(session).list_all()]


@router.post("/shops", status_code=201)
def create_shop(body: ShopCreate, user: User = Depends(admin_only), session: Session = Depends(get_db)):
    return shop_out(ShopService(session).create(body.model_dump()))


@router.put("/shops/{shop_id}")
def update_shop(
    shop_id: int,
    upd: ShopUpdate,
    user: User = Depends(admin_only),
    session: Session = Depends(get_db),
):
    return shop_out(ShopService(session).update(shop_id, upd.model_dump()))
