from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.api.schemas import shop_out
from app.db.session import get_db
from app.services.accounts import ShopService

router = APIRouter()


@router.get("")
def list_shops(session: Session = Depends(get_db)):
    return [shop_out(s) for s in ShopService(session).list_active()]


@router.get("/{shop_id}")
def get_shop(shop_id: int, session: Session = Depends(get_db)):
    return shop_out(ShopService(session).get(shop_id))
