import asyncio
import re
import unittest
from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

from helpers import TempDbTestCase, make_identity, make_product

from jamstore.core.cart import CartEngine
from jamstore.core.notify import Notifier, ToastRecorder
from jamstore.core.orders import (
    INITIAL_STATUS,
    OrderPipeline,
    build_order,
    check_status,
    is_terminal,
    new_order_id,
)
from jamstore.db import crud
from jamstore.db.errors import DataServiceError
from jamstore.db.models import GeoPoint


class OrderHelpersTestCase(unittest.TestCase):
    def test_new_order_id(self):
        now = datetime(2025, 11, 1, tzinfo=timezone.utc)
        a, b = new_order_id(now), new_order_id(now)
        self.assertRegex(a, r"^ORD-\d+-[0-9A-F]{6}$")
        self.assertNotEqual(a, b)
        self.assertIn(str(int(now.timestamp() * 1000)), a)

    def test_check_status(self):
        # any known status in any direction
        for status in ("DELIVERED", "PENDING", "CANCELLED", "PROCESSING"):
            self.assertEqual(check_status(status), status)
        with self.assertRaises(ValueError):
            check_status("LOST")
        self.assertTrue(is_terminal("CANCELLED"))
        self.assertFalse(is_terminal("SHIPPED"))

    def test_build_order_freezes_snapshot(self):
        cart = CartEngine()
        cart.add_item(make_product("p1", price=1200), "M", 2)
        order = build_order(
            "Aizawl", "123", cart.snapshot(), make_identity(), GeoPoint(23.7, 92.7)
        )
        self.assertEqual(order.status, INITIAL_STATUS)
        self.assertEqual(order.total_amount, 2400)
        self.assertEqual((order.latitude, order.longitude), (23.7, 92.7))
        self.assertIsInstance(order.items, tuple)

        cart.update_quantity("p1", "M", 9)
        self.assertEqual(order.items[0].quantity, 2)
        with self.assertRaises(FrozenInstanceError):
            order.status = "SHIPPED"


class OrderPipelineTestCase(TempDbTestCase):
    def setUp(self):
        super().setUp()
        self.toasts = ToastRecorder()
        self.notifier = Notifier(self.toasts)
        self.cart = CartEngine(self.make_store(), self.notifier)
        self.placed = []
        self.pipeline = OrderPipeline(self.cart, self.notifier, on_placed=self.placed.append)
        self.identity = make_identity()

    def fill_cart(self):
        self.cart.add_item(make_product("p1", price=1200), "M", 2)
        self.cart.add_item(make_product("p2", price=500), "L")
        return self.cart.snapshot()

    async def test_success_stores_order_and_clears_cart(self):
        snapshot = self.fill_cart()
        order = await self.pipeline.place_order("Aizawl", "987", snapshot, self.identity)

        self.assertIsNotNone(order)
        self.assertEqual(order.items, snapshot)
        self.assertEqual(order.total_amount, 2900)
        self.assertEqual(order.user_id, self.identity.id)
        self.assertTrue(self.cart.is_empty())
        self.assertEqual(self.placed, [order])
        self.assertEqual(self.toasts.last().message, "Order placed successfully!")
        self.assertFalse(self.pipeline.in_flight)

        stored = await crud.get_order(order.id)
        self.assertEqual(stored.items, snapshot)
        self.assertEqual(stored.total_amount, 2900)

    async def test_failure_keeps_cart(self):
        async def failing_submit(_order):
            raise DataServiceError("connection reset")

        pipeline = OrderPipeline(self.cart, self.notifier, submit=failing_submit)
        snapshot = self.fill_cart()
        self.assertIsNone(await pipeline.place_order("Aizawl", "987", snapshot, self.identity))
        self.assertEqual(self.cart.snapshot(), snapshot)
        self.assertEqual(self.toasts.last().message, "Error placing order. Please try again.")
        self.assertEqual(self.toasts.last().severity, "error")
        self.assertFalse(pipeline.in_flight)

    async def test_unexpected_error_keeps_cart(self):
        async def broken_submit(_order):
            raise RuntimeError("bug")

        pipeline = OrderPipeline(self.cart, self.notifier, submit=broken_submit)
        snapshot = self.fill_cart()
        self.assertIsNone(await pipeline.place_order("Aizawl", "987", snapshot, self.identity))
        self.assertEqual(self.cart.snapshot(), snapshot)

    async def test_second_submit_while_in_flight_is_refused(self):
        release = asyncio.Event()
        submitted = []

        async def slow_submit(order):
            submitted.append(order)
            await release.wait()

        pipeline = OrderPipeline(self.cart, self.notifier, submit=slow_submit)
        snapshot = self.fill_cart()
        first = asyncio.create_task(
            pipeline.place_order("Aizawl", "987", snapshot, self.identity)
        )
        await asyncio.sleep(0)
        self.assertTrue(pipeline.in_flight)

        second = await pipeline.place_order("Aizawl", "987", snapshot, self.identity)
        self.assertIsNone(second)
        self.assertEqual(self.toasts.last().severity, "warning")

        release.set()
        self.assertIsNotNone(await first)
        self.assertEqual(len(submitted), 1)

    async def test_refuses_guest_and_empty_cart(self):
        snapshot = self.fill_cart()
        self.assertIsNone(await self.pipeline.place_order("A", "1", snapshot, None))
        self.assertEqual(self.toasts.last().message, "Please log in to place an order.")
        self.assertEqual(self.cart.snapshot(), snapshot)

        self.assertIsNone(await self.pipeline.place_order("A", "1", (), self.identity))
        self.assertEqual(self.toasts.last().message, "Your bag is empty.")

    async def test_order_ids_unique_for_rapid_checkouts(self):
        ids = set()
        for _ in range(5):
            snapshot = self.fill_cart()
            order = await self.pipeline.place_order("A", "1", snapshot, self.identity)
            ids.add(order.id)
        self.assertEqual(len(ids), 5)
        self.assertTrue(all(re.match(r"^ORD-", i) for i in ids))

    async def test_failing_local_update_after_commit_still_reports_success(self):
        def broken_on_placed(_order):
            raise RuntimeError("list gone")

        pipeline = OrderPipeline(self.cart, self.notifier, on_placed=broken_on_placed)
        snapshot = self.fill_cart()
        order = await pipeline.place_order("Aizawl", "987", snapshot, self.identity)

        self.assertIsNotNone(order)
        self.assertTrue(self.cart.is_empty())
        self.assertEqual(self.toasts.last().message, "Order placed successfully!")
        self.assertIsNotNone(await crud.get_order(order.id))
