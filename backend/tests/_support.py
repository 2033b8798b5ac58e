"""Shared setup for API tests: in-memory SQLite behind the real app."""
from __future__ import annotations

import unittest

from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.db.session import get_db
from app.main import app
from app.models.account import Role, Shop, User


def make_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


class ApiTestCase(unittest.TestCase):
    """Seeds a customer, a shop owner with two shops, an admin and a second customer."""

    def setUp(self):
        self.engine = make_engine()

        def _db():
            with Session(self.engine) as session:
                yield session

        app.dependency_overrides[get_db] = _db
        self.client = TestClient(app)
        self._seed()

    def tearDown(self):
        app.dependency_overrides.clear()
        self.engine.dispose()

    def _seed(self):
        with Session(self.engine) as s:
            customer = User(name="Asha", phone="9000000001", role=Role.CUSTOMER.value)
            owner = User(name="Ravi", phone="9000000002", email="ravi@example.com", role=Role.SHOP_OWNER.value)
            admin = User(name="Admin", email="admin@example.com", role=Role.ADMIN.value)
            other = User(name="Meera", phone="9000000003", role=Role.CUSTOMER.value)
            nameless = User(phone="9000000004", role=Role.CUSTOMER.value)
            s.add_all([customer, owner, admin, other, nameless])
            s.commit()
            for u in (customer, owner, admin, other, nameless):
                s.refresh(u)

            shop = Shop(owner_id=owner.id, name="Copy Corner", address="12 Market Road", phone="9000000100", rating=4.5)
            online_only = Shop(
                owner_id=owner.id,
                name="Bright Prints",
                address="4 Station Lane",
                phone="9000000200",
                rating=3.0,
                allows_offline_orders=False,
            )
            s.add_all([shop, online_only])
            s.commit()
            s.refresh(shop)
            s.refresh(online_only)

            self.customer_id = customer.id
            self.owner_id = owner.id
            self.admin_id = admin.id
            self.other_id = other.id
            self.nameless_id = nameless.id
            self.shop_id = shop.id
            self.online_only_shop_id = online_only.id

    def headers(self, user_id: int) -> dict:
        return {"X-User-Id": str(user_id)}

    def place_order(self, user_id: int = None, files=None, **form) -> dict:
        data = {"shopId": str(self.shop_id)}
        data.update({k: str(v) for k, v in form.items()})
        resp = self.client.post(
            "/orders",
            data=data,
            files=files,
            headers=self.headers(user_id or self.customer_id),
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()
