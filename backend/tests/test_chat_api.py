"""
API tests for per-order chat: ordering, validation, access, unread count
and read marking.
"""
from __future__ import annotations

import unittest

from _support import ApiTestCase


class TestChat(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.order = self.place_order()
        self.url = f"/orders/{self.order['id']}/messages"

    def _send(self, user_id, text, recipient_id):
        return self.client.post(
            self.url,
            json={"message": text, "recipientId": recipient_id},
            headers=self.headers(user_id),
        )

    def test_send_and_list_oldest_first(self):
        first = self._send(self.customer_id, "  Is it ready?  ", self.owner_id)
        self.assertEqual(first.status_code, 201, first.text)
        self.assertEqual(first.json()["message"], "Is it ready?")
        self.assertFalse(first.json()["is_read"])
        self._send(self.owner_id, "In ten minutes", self.customer_id)

        resp = self.client.get(self.url, headers=self.headers(self.customer_id))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([m["message"] for m in resp.json()], ["Is it ready?", "In ten minutes"])
        self.assertEqual(resp.json()[1]["sender_id"], self.owner_id)

    def test_blank_message_rejected(self):
        for text in ("", "   ", None):
            resp = self._send(self.customer_id, text, self.owner_id)
            self.assertEqual(resp.status_code, 400)
        listed = self.client.get(self.url, headers=self.headers(self.customer_id)).json()
        self.assertEqual(listed, [])

    def test_too_long_message_rejected(self):
        resp = self._send(self.customer_id, "x" * 1001, self.owner_id)
        self.assertEqual(resp.status_code, 400)

    def test_recipient_required(self):
        resp = self.client.post(self.url, json={"message": "hello"}, headers=self.headers(self.customer_id))
        self.assertEqual(resp.status_code, 400)

    def test_outsider_cannot_read_or_send(self):
        self.assertEqual(self.client.get(self.url, headers=self.headers(self.other_id)).status_code, 403)
        self.assertEqual(self._send(self.other_id, "hi", self.owner_id).status_code, 403)

    def test_unread_count_and_mark_read(self):
        sent = self._send(self.customer_id, "Please use glossy paper", self.owner_id).json()
        self._send(self.customer_id, "And staple them", self.owner_id)

        count = self.client.get("/chat/unread-count", headers=self.headers(self.owner_id)).json()
        self.assertEqual(count, {"unreadCount": 2})
        self.assertEqual(
            self.client.get("/chat/unread-count", headers=self.headers(self.customer_id)).json(),
            {"unreadCount": 0},
        )

        denied = self.client.patch(f"/chat/messages/{sent['id']}/read", headers=self.headers(self.customer_id))
        self.assertEqual(denied.status_code, 403)

        resp = self.client.patch(f"/chat/messages/{sent['id']}/read", headers=self.headers(self.owner_id))
        self.assertTrue(resp.json()["is_read"])
        count = self.client.get("/chat/unread-count", headers=self.headers(self.owner_id)).json()
        self.assertEqual(count, {"unreadCount": 1})

    def test_mark_missing_message(self):
        resp = self.client.patch("/chat/messages/404/read", headers=self.headers(self.owner_id))
        self.assertEqual(resp.status_code, 404)


if __name__ == "__main__":
    unittest.main()
