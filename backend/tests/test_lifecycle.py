"""
Unit tests for the order status lifecycle: transitions, advance labels,
legacy vocabularies and order-card actions.
"""
from __future__ import annotations

import unittest
from types import SimpleNamespace

from app.models.order import OrderStatus, OrderType
from app.services import lifecycle
from app.services.errors import InvalidTransition


def _order(**kwargs):
    defaults = {"status": "received", "is_urgent": False, "customer_phone": "9000000001"}
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class TestNextStatus(unittest.TestCase):
    def test_three_state_chain(self):
        status = "received"
        seen = []
        while lifecycle.next_status(status) is not None:
            status = lifecycle.next_status(status)
            seen.append(status)
        self.assertEqual(seen, [OrderStatus.STARTED, OrderStatus.COMPLETED])

    def test_terminal_statuses_have_no_advance(self):
        for status in ("completed", "cancelled"):
            self.assertIsNone(lifecycle.next_status(status))
            self.assertIsNone(lifecycle.advance_label(status))
            self.assertFalse(lifecycle.can_cancel(status))

    def test_labels(self):
        self.assertEqual(lifecycle.advance_label("received"), "Start")
        self.assertEqual(lifecycle.advance_label(OrderStatus.STARTED), "Complete")

    def test_legacy_statuses_fold_into_canonical(self):
        self.assertEqual(lifecycle.normalize_status("new"), OrderStatus.RECEIVED)
        self.assertEqual(lifecycle.normalize_status("confirmed"), OrderStatus.RECEIVED)
        self.assertEqual(lifecycle.normalize_status("Processing"), OrderStatus.STARTED)
        self.assertEqual(lifecycle.normalize_status("ready"), OrderStatus.STARTED)
        self.assertEqual(lifecycle.normalize_status(" completed "), OrderStatus.COMPLETED)

    def test_legacy_terminal_statuses_never_advance(self):
        for status in ("new", "confirmed", "processing", "ready", "completed", "cancelled"):
            terminal = status in ("completed", "cancelled")
            self.assertEqual(lifecycle.next_status(status) is None, terminal, status)

    def test_unknown_status_raises(self):
        with self.assertRaises(ValueError):
            lifecycle.normalize_status("shipped")
        with self.assertRaises(ValueError):
            lifecycle.normalize_status("")


class TestCheckTransition(unittest.TestCase):
    def test_forward_step_allowed(self):
        self.assertEqual(lifecycle.check_transition("received", "started"), OrderStatus.STARTED)
        self.assertEqual(lifecycle.check_transition("started", "completed"), OrderStatus.COMPLETED)

    def test_cancel_from_any_open_status(self):
        for status in ("received", "started", "new", "ready"):
            self.assertEqual(lifecycle.check_transition(status, "cancelled"), OrderStatus.CANCELLED)

    def test_skipping_and_backward_rejected(self):
        with self.assertRaises(InvalidTransition):
            lifecycle.check_transition("received", "completed")
        with self.assertRaises(InvalidTransition):
            lifecycle.check_transition("started", "received")

    def test_terminal_cannot_move(self):
        with self.assertRaises(InvalidTransition):
            lifecycle.check_transition("completed", "cancelled")
        with self.assertRaises(InvalidTransition):
            lifecycle.check_transition("cancelled", "received")


class TestOrderType(unittest.TestCase):
    def test_canonical_and_legacy(self):
        self.assertEqual(lifecycle.normalize_order_type("walk-in"), OrderType.WALK_IN)
        self.assertEqual(lifecycle.normalize_order_type("walkin"), OrderType.WALK_IN)
        self.assertEqual(lifecycle.normalize_order_type("digital"), OrderType.UPLOADED_FILES)
        self.assertEqual(lifecycle.normalize_order_type(None), OrderType.UPLOADED_FILES)

    def test_unknown_type_raises(self):
        with self.assertRaises(ValueError):
            lifecycle.normalize_order_type("fax")


class TestUrgencyAndContact(unittest.TestCase):
    def test_toggle_twice_restores(self):
        for start in (False, True):
            self.assertEqual(lifecycle.toggled(lifecycle.toggled(start)), start)
        self.assertTrue(lifecycle.toggled(None))

    def test_tel_link(self):
        self.assertEqual(lifecycle.tel_link("+91 90000 00001"), "tel:+91 90000 00001")
        self.assertIsNone(lifecycle.tel_link(""))
        self.assertIsNone(lifecycle.tel_link(None))


class TestCardActions(unittest.TestCase):
    def test_shop_owner_on_open_order(self):
        actions = lifecycle.card_actions(_order(status="received"), "shop_owner", shop_phone="123")
        self.assertEqual(actions.advance_to, OrderStatus.STARTED)
        self.assertEqual(actions.advance_label, "Start")
        self.assertTrue(actions.can_cancel)
        self.assertTrue(actions.can_toggle_urgency)
        self.assertEqual(actions.call_link, "tel:9000000001")

    def test_shop_owner_on_completed_order(self):
        actions = lifecycle.card_actions(_order(status="completed"), "shop_owner")
        self.assertIsNone(actions.advance_to)
        self.assertIsNone(actions.advance_label)
        self.assertFalse(actions.can_cancel)

    def test_customer_only_calls_and_chats(self):
        actions = lifecycle.card_actions(_order(status="started"), "customer", shop_phone="9000000100")
        self.assertIsNone(actions.advance_to)
        self.assertFalse(actions.can_cancel)
        self.assertFalse(actions.can_toggle_urgency)
        self.assertEqual(actions.call_link, "tel:9000000100")
        self.assertTrue(actions.can_chat)

    def test_as_dict_uses_plain_values(self):
        data = lifecycle.card_actions(_order(status="started"), "admin").as_dict()
        self.assertEqual(data["advance_to"], "completed")
        self.assertEqual(data["advance_label"], "Complete")


if __name__ == "__main__":
    unittest.main()
