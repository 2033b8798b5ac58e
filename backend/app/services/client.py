"""HTTP client for the order API, as used by front ends and scripts.

Every call catches its own failure: the error is logged, a short notice is
queued on ``client.notifications`` and the call returns None, leaving local
state as it was. Nothing is retried.
"""
import logging
import os
import threading
from collections import deque
from typing import Any, Dict, List, Optional

import requests

from app.services import lifecycle

logger = logging.getLogger(__name__)

DEFAULT_API = os.getenv("PRINTSHOP_API_URL", "http://localhost:8000")
DEFAULT_TIMEOUT = float(os.getenv("PRINTSHOP_HTTP_TIMEOUT", "10"))


class OrderClient:
    def __init__(
        self,
        user_id: int,
        base_url: str = None,
        timeout: float = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or DEFAULT_API).rstrip("/")
        self.timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
        self.http = session or requests.Session()
        self.http.headers.update({"X-User-Id": str(user_id)})
        self.notifications: deque = deque(maxlen=20)
        self._in_flight = set()
        self._lock = threading.Lock()
        logger.debug("OrderClient initialized with base_url=%s user_id=%s", self.base_url, user_id)

    def _notify(self, text: str) -> None:
        self.notifications.append(text)

    def _request(self, method: str, path: str, failure: str, **kwargs) -> Optional[Any]:
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.request(method, url, timeout=self.timeout, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            self._notify(failure)
            return None
        except ValueError as e:
            logger.warning("%s %s returned invalid JSON: %s", method, url, e)
            self._notify(failure)
            return None

    def list_orders(self, **filters) -> Optional[List[Dict[str, Any]]]:
        params = {k: v for k, v in filters.items() if v is not None}
        return self._request("GET", "/orders", "Failed to load orders", params=params)

    def advance(self, order: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Advance an order one step.

        No request is made when the order is terminal or an advance for the
        same order is still in flight.
        """
        if lifecycle.next_status(order["status"]) is None:
            return None
        order_id = order["id"]
        with self._lock:
            if order_id in self._in_flight:
                logger.debug("Advance already in flight for order_id=%s", order_id)
                return None
            self._in_flight.add(order_id)
        try:
            return self._request(
                "POST",
                f"/orders/{order_id}/advance",
                "Failed to update order status",
                json={"expectedStatus": order["status"]},
            )
        finally:
            with self._lock:
                self._in_flight.discard(order_id)

    def cancel(self, order_id: str) -> Optional[Dict[str, Any]]:
        return self._request("POST", f"/orders/{order_id}/cancel", "Failed to cancel order")

    def toggle_urgency(self, order_id: str) -> Optional[Dict[str, Any]]:
        return self._request("PATCH", f"/orders/{order_id}/urgency", "Failed to update urgency")

    def messages(self, order_id: str) -> Optional[List[Dict[str, Any]]]:
        return self._request("GET", f"/orders/{order_id}/messages", "Failed to load messages")

    def send_message(self, order_id: str, text: str, recipient_id: int) -> Optional[Dict[str, Any]]:
        body = (text or "").strip()
        if not body:
            return None
        return self._request(
            "POST",
            f"/orders/{order_id}/messages",
            "Failed to send message",
            json={"message": body, "recipientId": recipient_id},
        )


class OrderBoard:
    """Order list with loading/error state, refreshed on demand."""

    def __init__(self, client: OrderClient, **filters):
        self.client = client
        self.filters = filters
        self.orders: List[Dict[str, Any]] = []
        self.loading = False
        self.error: Optional[str] = None

    def refresh(self) -> List[Dict[str, Any]]:
        self.loading = True
        try:
            rows = self.client.list_orders(**self.filters)
        finally:
            self.loading = False
        if rows is None:
            self.error = "Failed to load orders"
        else:
            self.error = None
            self.orders = rows
        return self.orders

    def _replace(self, updated: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if updated is not None:
            self.orders = [updated if o["id"] == updated["id"] else o for o in self.orders]
        return updated

    def advance(self, order_id: str) -> Optional[Dict[str, Any]]:
        order = next((o for o in self.orders if o["id"] == order_id), None)
        if order is None:
            return None
        return self._replace(self.client.advance(order))

    def toggle_urgency(self, order_id: str) -> Optional[Dict[str, Any]]:
        return self._replace(self.client.toggle_urgency(order_id))

    def cancel(self, order_id: str) -> Optional[Dict[str, Any]]:
        return self._replace(self.client.cancel(order_id))


class ChatThread:
    """Messages of one order. Sent messages are appended as the server confirms them."""

    def __init__(self, client: OrderClient, order_id: str):
        self.client = client
        self.order_id = order_id
        self.messages: List[Dict[str, Any]] = []

    def load(self) -> List[Dict[str, Any]]:
        rows = self.client.messages(self.order_id)
        if rows is not None:
            self.messages = list(rows)
        return self.messages

    def send(self, text: str, recipient_id: int) -> Optional[Dict[str, Any]]:
        msg = self.client.send_message(self.order_id, text, recipient_id)
        if msg is not None and all(m.get("id") != msg.get("id") for m in self.messages):
            self.messages.append(msg)
        return msg
