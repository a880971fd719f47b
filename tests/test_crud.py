import os
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from helpers import TempDbTestCase, make_product

from jamstore.db import crud
from jamstore.db import database as db_database
from jamstore.db.errors import AssetPolicyError, DataServiceError
from jamstore.db.models import CartLine, HeroSlide, Order, Review, SiteSettings


def _order(oid: str, user_id: str = "u1", created_at=None, total: float = 2400) -> Order:
    line = CartLine("1", "Mizoram Home Jersey 2024", 1200, 2, "img", "M")
    return Order(
        id=oid,
        user_id=user_id,
        user_name="Mami",
        user_email="mami@example.com",
        user_phone="9876543210",
        items=(line,),
        total_amount=total,
        status="PENDING",
        created_at=created_at or datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc),
        shipping_address="Chanmari, Aizawl",
    )


class CrudTestCase(TempDbTestCase):
    async def asyncSetUp(self):
        # Touch initialization by opening a connection
        async with db_database.connect() as conn:
            cur = await conn.execute("SELECT name FROM sqlite_master WHERE type='table';")
            await cur.fetchall()
            await cur.close()

    # ---------- Products ----------

    async def test_seeded_products_sorted_by_name(self):
        products = await crud.list_products()
        self.assertEqual([p.id for p in products], ["2", "4", "1", "3"])

        prod = await crud.get_product("1")
        self.assertEqual(prod.name, "Mizoram Home Jersey 2024")
        self.assertEqual(prod.price, 1200)
        self.assertEqual(prod.sizes, ("S", "M", "L", "XL"))
        self.assertEqual(prod.category, "INTERNATIONAL")
        self.assertIsNone(await crud.get_product("nope"))

    async def test_add_update_delete_product(self):
        p = make_product("p9", sizes=("M", "XL"))
        await crud.add_product(p)
        self.assertEqual(await crud.get_product("p9"), p)

        changed = replace(p, price=999, status="ON_SALE", sizes=("XL",))
        self.assertTrue(await crud.update_product(changed))
        self.assertEqual(await crud.get_product("p9"), changed)

        self.assertFalse(await crud.update_product(make_product("missing")))
        self.assertTrue(await crud.delete_product("p9"))
        self.assertFalse(await crud.delete_product("p9"))

    async def test_duplicate_product_id_is_a_service_error(self):
        with self.assertRaises(DataServiceError):
            await crud.add_product(make_product("1"))

    # ---------- Orders ----------

    async def test_create_and_read_order(self):
        order = _order("ORD-1", total=2400)
        await crud.create_order(order)

        got = await crud.get_order("ORD-1")
        self.assertEqual(got.items, order.items)
        self.assertEqual(got.total_amount, 2400)
        self.assertEqual(got.created_at, order.created_at)
        self.assertFalse(got.has_location)
        self.assertIsNone(await crud.get_order("ORD-404"))

    async def test_stored_total_is_never_recomputed(self):
        # total deliberately differs from the items sum
        await crud.create_order(_order("ORD-T", total=1000))
        self.assertEqual((await crud.get_order("ORD-T")).total_amount, 1000)

    async def test_orders_by_user_newest_first(self):
        base = datetime(2025, 11, 1, tzinfo=timezone.utc)
        await crud.create_order(_order("A", "u1", base))
        await crud.create_order(_order("B", "u2", base + timedelta(hours=1)))
        await crud.create_order(_order("C", "u1", base + timedelta(hours=2)))

        self.assertEqual([o.id for o in await crud.get_orders_by_user("u1")], ["C", "A"])
        self.assertEqual([o.id for o in await crud.get_orders_all()], ["C", "B", "A"])
        self.assertEqual(await crud.get_orders_by_user("nobody"), [])

    async def test_order_location_roundtrip(self):
        order = replace(_order("ORD-L"), latitude=23.7271, longitude=92.7176)
        await crud.create_order(order)
        got = await crud.get_order("ORD-L")
        self.assertTrue(got.has_location)
        self.assertAlmostEqual(got.latitude, 23.7271)

    async def test_order_status_and_delete(self):
        await crud.create_order(_order("ORD-S"))
        self.assertTrue(await crud.update_order_status("ORD-S", "SHIPPED"))
        self.assertEqual((await crud.get_order("ORD-S")).status, "SHIPPED")
        self.assertFalse(await crud.update_order_status("ORD-404", "SHIPPED"))

        self.assertTrue(await crud.delete_order("ORD-S"))
        self.assertIsNone(await crud.get_order("ORD-S"))

    async def test_row_defaults_for_sparse_orders(self):
        async with db_database.connect() as conn:
            await conn.execute(
                """
                INSERT INTO orders(id, user_id, user_name, user_email, items,
                                   total_amount, created_at, shipping_address)
                VALUES ('ORD-X', 'u1', '', '', '[]', 0, 'garbage', '');
                """
            )
            await conn.commit()
        got = await crud.get_order("ORD-X")
        self.assertEqual(got.user_name, "Guest User")
        self.assertEqual(got.user_email, "No Email")
        self.assertEqual(got.shipping_address, "No address provided")
        self.assertEqual(got.items, ())

    # ---------- Reviews ----------

    async def test_reviews(self):
        now = datetime(2025, 11, 2, tzinfo=timezone.utc)
        await crud.add_review(Review("r1", "1", "u1", "Mami", 5, "Great fit", now))
        await crud.add_review(
            Review("r2", "3", "u1", "Mami", 3, "Runs small", now + timedelta(days=1))
        )

        self.assertEqual([r.id for r in await crud.list_reviews()], ["r2", "r1"])
        only = await crud.list_reviews("1")
        self.assertEqual(len(only), 1)
        self.assertEqual(only[0].rating, 5)

        with self.assertRaises(DataServiceError):
            await crud.add_review(Review("r3", "1", "u1", "Mami", 6, "", now))

    # ---------- Hero slides ----------

    async def test_hero_slides_upsert_and_delete(self):
        slides = await crud.list_hero_slides()
        self.assertEqual([s.id for s in slides], ["hero-1", "hero-2"])

        await crud.save_hero_slide(HeroSlide("hero-0", "Drop", "First", "desc", display_order=0))
        await crud.save_hero_slide(replace(slides[1], title="Renamed"))
        slides = await crud.list_hero_slides()
        self.assertEqual([s.id for s in slides], ["hero-0", "hero-1", "hero-2"])
        self.assertEqual(slides[2].title, "Renamed")

        self.assertTrue(await crud.delete_hero_slide("hero-0"))
        self.assertFalse(await crud.delete_hero_slide("hero-0"))

    # ---------- Settings ----------

    async def test_site_settings(self):
        settings = await crud.get_site_settings()
        self.assertEqual(settings.upi_id, "jam@upi")
        self.assertIsNone(settings.gpay_number)

        await crud.update_site_settings(replace(settings, gpay_number="9999988888"))
        self.assertEqual((await crud.get_site_settings()).gpay_number, "9999988888")

    async def test_site_settings_defaults_when_missing(self):
        async with db_database.connect() as conn:
            await conn.execute("DELETE FROM site_settings;")
            await conn.commit()
        self.assertEqual(await crud.get_site_settings(), SiteSettings())

    # ---------- Assets ----------

    async def test_upload_asset(self):
        orig_dir = crud.ASSET_DIR
        crud.ASSET_DIR = os.path.join(self.temp_dir.name, "assets")
        try:
            src = os.path.join(self.temp_dir.name, "kit.png")
            with open(src, "wb") as f:
                f.write(b"\x89PNG fake")
            url = await crud.upload_asset(src)
            self.assertTrue(url.startswith("file://"))
            self.assertTrue(os.path.exists(url.removeprefix("file://")))
        finally:
            crud.ASSET_DIR = orig_dir

    async def test_upload_asset_policy(self):
        txt = os.path.join(self.temp_dir.name, "notes.txt")
        with open(txt, "w") as f:
            f.write("hi")
        with self.assertRaises(AssetPolicyError):
            await crud.upload_asset(txt)

        orig_max = crud.ASSET_MAX_BYTES
        crud.ASSET_MAX_BYTES = 4
        try:
            big = os.path.join(self.temp_dir.name, "big.jpg")
            with open(big, "wb") as f:
                f.write(b"0123456789")
            with self.assertRaises(AssetPolicyError):
                await crud.upload_asset(big)
        finally:
            crud.ASSET_MAX_BYTES = orig_max

        # a missing file is a plain service error, not a policy rejection
        with self.assertRaises(DataServiceError) as ctx:
            await crud.upload_asset(os.path.join(self.temp_dir.name, "gone.png"))
        self.assertNotIsInstance(ctx.exception, AssetPolicyError)

    # ---------- tiny helper coverage ----------

    def test__to_float_helper(self):
        self.assertEqual(crud._to_float("3.5"), 3.5)
        self.assertIsNone(crud._to_float(None))
        self.assertIsNone(crud._to_float("x"))
