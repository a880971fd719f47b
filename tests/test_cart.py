import os
import tempfile
import unittest
from dataclasses import replace

from helpers import make_product

from jamstore.core.cart import CART_KEY, CartEngine, subtotal_of
from jamstore.core.notify import Notifier, ToastRecorder
from jamstore.db.models import CartLine
from jamstore.utils.local_store import LocalStore


class CartEngineTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.store = LocalStore(os.path.join(self.temp_dir.name, "store.json"))
        self.toasts = ToastRecorder()
        self.cart = CartEngine(self.store, Notifier(self.toasts))
        self.p1 = make_product("p1", price=1200)
        self.p2 = make_product("p2", price=500)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_repeated_add_increments_single_line(self):
        self.cart.add_item(self.p1, "M")
        lines = self.cart.add_item(self.p1, "M", 2)
        self.assertEqual(len(lines), 1)
        self.assertEqual(lines[0].quantity, 3)
        self.assertEqual(
            self.toasts.messages,
            [f"{self.p1.name} (M) added to bag", f"Updated quantity of {self.p1.name} in cart"],
        )

    def test_sizes_are_separate_lines(self):
        self.cart.add_item(self.p1, "M")
        lines = self.cart.add_item(self.p1, "L")
        self.assertEqual([line.key for line in lines], [("p1", "M"), ("p1", "L")])

    def test_keys_stay_unique_over_any_sequence(self):
        adds = [(self.p1, "M"), (self.p2, "S"), (self.p1, "M"), (self.p1, "L"), (self.p2, "S")]
        for product, size in adds:
            self.cart.add_item(product, size)
        keys = [line.key for line in self.cart.snapshot()]
        self.assertEqual(len(keys), len(set(keys)))
        self.assertEqual(self.cart.total_quantity(), 5)

    def test_price_is_copied_at_add_time(self):
        self.cart.add_item(self.p1, "M")
        repriced = replace(self.p1, price=9999, name="Renamed")
        lines = self.cart.add_item(repriced, "M")
        self.assertEqual(lines[0].unit_price, 1200)
        self.assertEqual(lines[0].product_name, self.p1.name)
        self.assertEqual(self.cart.subtotal(), 2400)

    def test_update_quantity_floor(self):
        self.cart.add_item(self.p1, "M", 2)
        self.cart.update_quantity("p1", "M", 0)
        self.cart.update_quantity("p1", "M", -3)
        self.assertEqual(self.cart.get_line("p1", "M").quantity, 2)

        self.cart.update_quantity("p1", "M", 5)
        self.assertEqual(self.cart.get_line("p1", "M").quantity, 5)

        # unknown line is a no-op
        self.assertEqual(len(self.cart.update_quantity("p1", "XL", 4)), 1)

    def test_add_with_non_positive_quantity_is_noop(self):
        self.assertEqual(self.cart.add_item(self.p1, "M", 0), ())
        self.assertEqual(self.toasts.toasts, [])

    def test_remove_and_clear(self):
        self.cart.add_item(self.p1, "M")
        self.cart.add_item(self.p2, "S")
        self.cart.remove_item("p1", "M")
        self.assertEqual(self.toasts.messages[-1], "Item removed from bag")
        self.cart.remove_item("p1", "M")
        self.assertEqual([line.key for line in self.cart.snapshot()], [("p2", "S")])

        self.cart.clear()
        self.assertTrue(self.cart.is_empty())
        self.assertEqual(self.cart.subtotal(), 0)

    def test_snapshot_is_detached(self):
        self.cart.add_item(self.p1, "M")
        snap = self.cart.snapshot()
        self.cart.add_item(self.p1, "M")
        self.cart.clear()
        self.assertEqual(snap[0].quantity, 1)

    def test_write_through_and_load(self):
        self.cart.add_item(self.p1, "M", 2)
        self.cart.add_item(self.p2, "L")

        reloaded = CartEngine(LocalStore(self.store.path))
        lines = reloaded.load()
        self.assertEqual(lines, self.cart.snapshot())

    def test_load_repairs_bad_entries(self):
        good = {
            "product_id": "p1",
            "product_name": "Jersey p1",
            "unit_price": 1200,
            "quantity": 1,
            "image": "",
            "size": "M",
        }
        self.store.set(
            CART_KEY,
            [good, dict(good, quantity=2), dict(good, quantity=0), {"junk": True}, "str"],
        )
        lines = self.cart.load()
        self.assertEqual(len(lines), 1)
        self.assertEqual(lines[0].quantity, 3)

        self.store.set(CART_KEY, {"not": "a list"})
        self.assertEqual(self.cart.load(), ())

    def test_subtotal_of(self):
        self.cart.add_item(self.p1, "M", 2)
        self.cart.add_item(self.p2, "S", 3)
        self.assertEqual(subtotal_of(self.cart.snapshot()), 3900)
        self.assertEqual(subtotal_of([]), 0)

    def test_line_from_json_form(self):
        raw = {"product_id": 7, "product_name": "Kit", "unit_price": "950"}
        line = CartLine.from_dict(dict(raw, quantity="2", size="L"))
        self.assertEqual(line, CartLine("7", "Kit", 950.0, 2, "", "L"))
        with self.assertRaises(KeyError):
            CartLine.from_dict({"product_id": "7"})
