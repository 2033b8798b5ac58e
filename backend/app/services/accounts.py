import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, func, or_

from app.models.account import Role, Shop, User
from app.models.order import utcnow
from app.services.errors import NotAuthenticated, NotFound, ValidationFailed

logger = logging.getLogger(__name__)

ROLES = {r.value for r in Role}


def _check_name(name: Optional[str]) -> None:
    if name is not None and not (2 <= len(name.strip()) <= 255):
        raise ValidationFailed("name must be between 2 and 255 characters")


def _check_email(email: Optional[str]) -> None:
    if email is not None and ("@" not in email or email.startswith("@") or email.endswith("@")):
        raise ValidationFailed("invalid email address")


class UserService:
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def authenticate(self, user_id: Optional[int]) -> User:
        if user_id is None:
            raise NotAuthenticated("Missing user identity")
        user = self.session.get(User, user_id)
        if user is None or not user.is_active:
            raise NotAuthenticated("Unknown or inactive user")
        return user

    def _save(self, user: User) -> None:
        user_id = user.id
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.info("Rejected duplicate email for user_id=%s: %s", user_id, e.orig)
            raise ValidationFailed("email already in use")
        self.session.refresh(user)

    def update_profile(self, user: User, name: Optional[str] = None, email: Optional[str] = None) -> User:
        _check_name(name)
        _check_email(email)
        if name is not None:
            user.name = name.strip()
        if email is not None:
            user.email = email
        user.updated_at = utcnow()
        self._save(user)
        logger.info("Profile updated user_id=%s", user.id)
        return user

    def list_users(
        self,
        search: Optional[str] = None,
        role: Optional[str] = None,
        active: Optional[bool] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[User], int]:
        stmt = select(User)
        count_stmt = select(func.count()).select_from(User)
        conditions = []
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(or_(
                func.lower(User.name).like(pattern),
                func.lower(User.email).like(pattern),
                User.phone.like(f"%{search}%"),
            ))
        if role and role != "all":
            conditions.append(User.role == role)
        if active is not None:
            conditions.append(User.is_active == active)
        for cond in conditions:
            stmt = stmt.where(cond)
            count_stmt = count_stmt.where(cond)

        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        total = self.session.exec(count_stmt).one()
        rows = self.session.exec(
            stmt.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit)
        ).all()
        return list(rows), int(total or 0)

    def admin_update(self, user_id: int, changes: Dict[str, Any]) -> User:
        user = self.get(user_id)
        _check_name(changes.get("name"))
        _check_email(changes.get("email"))
        role = changes.get("role")
        if role is not None and role not in ROLES:
            raise ValidationFailed(f"unknown role: {role}")
        for key in ("name", "email", "role", "is_active"):
            if changes.get(key) is not None:
                setattr(user, key, changes[key])
        user.updated_at = utcnow()
        self._save(user)
        logger.info("Admin updated user_id=%s fields=%s", user_id, sorted(k for k, v in changes.items() if v is not None))
        return user


class ShopService:
    def __init__(self, session: Session):
        self.session = session

    def get(self, shop_id: int) -> Shop:
        shop = self.session.get(Shop, shop_id)
        if shop is None:
            raise NotFound("Shop not found")
        return shop

    def list_active(self) -> List[Shop]:
        rows = self.session.exec(
            select(Shop).where(Shop.is_active == True).order_by(Shop.rating.desc(), Shop.name)  # noqa: E712
        ).all()
        return list(rows)

    def list_all(self) -> List[Shop]:
        return list(self.session.exec(select(Shop).order_by(Shop.id)).all())

    def owned_by(self, user: User) -> List[Shop]:
        return list(self.session.exec(select(Shop).where(Shop.owner_id == user.id)).all())

    def _validate(self, fields: Dict[str, Any]) -> None:
        name = fields.get("name")
        if name is not None and not (2 <= len(name.strip()) <= 255):
            raise ValidationFailed("shop name must be between 2 and 255 characters")
        for key in ("address", "phone"):
            if key in fields and fields[key] is not None and not fields[key].strip():
                raise ValidationFailed(f"shop {key} must not be empty")
        rating = fields.get("rating")
        if rating is not None and not (0 <= rating <= 5):
            raise ValidationFailed("rating must be between 0 and 5")
        _check_email(fields.get("email"))

    def create(self, fields: Dict[str, Any]) -> Shop:
        self._validate(fields)
        owner = self.session.get(User, fields["owner_id"])
        if owner is None:
            raise ValidationFailed("shop owner does not exist")
        if owner.role == Role.CUSTOMER.value:
            # owning a shop makes the user a shop owner
            owner.role = Role.SHOP_OWNER.value
            self.session.add(owner)
        shop = Shop(**fields)
        self.session.add(shop)
        self.session.commit()
        self.session.refresh(shop)
        logger.info("Created shop id=%s owner_id=%s", shop.id, shop.owner_id)
        return shop

    def update(self, shop_id: int, changes: Dict[str, Any]) -> Shop:
        shop = self.get(shop_id)
        changes = {k: v for k, v in changes.items() if v is not None}
        self._validate(changes)
        for key, value in changes.items():
            setattr(shop, key, value)
        shop.updated_at = utcnow()
        self.session.add(shop)
        self.session.commit()
        self.session.refresh(shop)
        logger.info("Updated shop id=%s fields=%s", shop_id, sorted(changes))
        return shop
