# src/jamstore/db/crud.py
from __future__ import annotations

import json
import os
import shutil
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from typing import List, Optional

from jamstore.db import models
from jamstore.db.database import connect
from jamstore.db.errors import AssetPolicyError, DataServiceError
from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)

ASSET_DIR = os.getenv("JAMSTORE_ASSET_DIR", "data/assets")
ASSET_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}
ASSET_MAX_BYTES = 5 * 1024 * 1024

_PRODUCT_COLS = (
    "id, name, team, price, image, images, description, stock, status, category, sizes"
)
_ORDER_COLS = (
    "id, user_id, user_name, user_email, user_phone, items, total_amount, status, "
    "created_at, shipping_address, latitude, longitude"
)


def _to_datetime(val) -> datetime:
    if isinstance(val, datetime):
        return val
    try:
        return datetime.fromisoformat(str(val))
    except (TypeError, ValueError):
        return datetime.fromtimestamp(0, tz=timezone.utc)


def _to_float(val) -> Optional[float]:
    try:
        return float(val)
    except (TypeError, ValueError):
        return None


def _row_to_product(row) -> models.Product:
    return models.Product(
        id=row["id"],
        name=row["name"],
        team=row["team"],
        price=float(row["price"]),
        image=row["image"],
        images=tuple(json.loads(row["images"] or "[]")),
        description=row["description"],
        stock=int(row["stock"]),
        status=row["status"],
        category=row["category"],
        sizes=tuple(json.loads(row["sizes"] or "[]")),
    )


def _row_to_order(row) -> models.Order:
    items = tuple(
        models.CartLine.from_dict(d) for d in json.loads(row["items"] or "[]")
    )
    return models.Order(
        id=row["id"],
        user_id=row["user_id"],
        user_name=row["user_name"] or "Guest User",
        user_email=row["user_email"] or "No Email",
        user_phone=row["user_phone"] or "",
        items=items,
        total_amount=float(row["total_amount"] or 0),
        status=row["status"] or "PENDING",
        created_at=_to_datetime(row["created_at"]),
        shipping_address=row["shipping_address"] or "No address provided",
        latitude=_to_float(row["latitude"]),
        longitude=_to_float(row["longitude"]),
    )


# ---------------------------
# Products
# ---------------------------


async def list_products() -> List[models.Product]:
    """All products ordered by name."""
    async with connect() as conn:
        cur = await conn.execute(f"SELECT {_PRODUCT_COLS} FROM products ORDER BY name;")
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_product(row) for row in rows]


async def get_product(product_id: str) -> Optional[models.Product]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_PRODUCT_COLS} FROM products WHERE id = ?;", (product_id,)
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return _row_to_product(row)


def _product_params(p: models.Product) -> tuple:
    return (
        p.name,
        p.team,
        p.price,
        p.image,
        json.dumps(list(p.images)),
        p.description,
        p.stock,
        p.status,
        p.category,
        json.dumps(list(p.sizes)),
        p.id,
    )


async def add_product(product: models.Product) -> None:
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO products(name, team, price, image, images, description,
                                 stock, status, category, sizes, id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            _product_params(product),
        )
        await conn.commit()


async def update_product(product: models.Product) -> bool:
    """Overwrite every column of the product. Returns False if it does not exist."""
    async with connect() as conn:
        res = await conn.execute(
            """
            UPDATE products
            SET name = ?, team = ?, price = ?, image = ?, images = ?, description = ?,
                stock = ?, status = ?, category = ?, sizes = ?
            WHERE id = ?;
            """,
            _product_params(product),
        )
        await conn.commit()
        return res.rowcount > 0


async def delete_product(product_id: str) -> bool:
    async with connect() as conn:
        res = await conn.execute("DELETE FROM products WHERE id = ?;", (product_id,))
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Orders
# ---------------------------


async def get_orders_all() -> List[models.Order]:
    """Every order, newest first. Admin only."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_ORDER_COLS} FROM orders ORDER BY created_at DESC;"
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_order(row) for row in rows]


async def get_orders_by_user(user_id: str) -> List[models.Order]:
    """A shopper's orders, newest first."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_ORDER_COLS} FROM orders WHERE user_id = ? ORDER BY created_at DESC;",
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_order(row) for row in rows]


async def get_order(order_id: str) -> Optional[models.Order]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_ORDER_COLS} FROM orders WHERE id = ?;", (order_id,)
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return _row_to_order(row)


async def create_order(order: models.Order) -> None:
    """
    Insert the order as given. Items are written as a JSON copy of the lines,
    the total is stored as passed and never recomputed.
    """
    async with connect() as conn:
        await conn.execute(
            f"""
            INSERT INTO orders({_ORDER_COLS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                order.id,
                order.user_id,
                order.user_name,
                order.user_email,
                order.user_phone,
                json.dumps([asdict(line) for line in order.items]),
                order.total_amount,
                order.status,
                order.created_at.isoformat(),
                order.shipping_address,
                order.latitude,
                order.longitude,
            ),
        )
        await conn.commit()


async def update_order_status(order_id: str, status: str) -> bool:
    async with connect() as conn:
        res = await conn.execute(
            "UPDATE orders SET status = ? WHERE id = ?;", (status, order_id)
        )
        await conn.commit()
        return res.rowcount > 0


async def delete_order(order_id: str) -> bool:
    async with connect() as conn:
        res = await conn.execute("DELETE FROM orders WHERE id = ?;", (order_id,))
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Reviews
# ---------------------------


async def list_reviews(product_id: Optional[str] = None) -> List[models.Review]:
    """All reviews, or only those of one product, newest first."""
    sql = "SELECT id, product_id, user_id, user_name, rating, comment, created_at FROM reviews"
    params: tuple = ()
    if product_id is not None:
        sql += " WHERE product_id = ?"
        params = (product_id,)
    async with connect() as conn:
        cur = await conn.execute(sql + " ORDER BY created_at DESC;", params)
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.Review(
            id=row[0],
            product_id=row[1],
            user_id=row[2],
            user_name=row[3],
            rating=int(row[4]),
            comment=row[5],
            created_at=_to_datetime(row[6]),
        )
        for row in rows
    ]


async def add_review(review: models.Review) -> None:
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO reviews(id, product_id, user_id, user_name, rating, comment, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?);
            """,
            (
                review.id,
                review.product_id,
                review.user_id,
                review.user_name,
                review.rating,
                review.comment,
                review.created_at.isoformat(),
            ),
        )
        await conn.commit()


# ---------------------------
# Hero slides
# ---------------------------


async def list_hero_slides() -> List[models.HeroSlide]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, badge, title, description, button_text, accent_color, display_order
            FROM hero_slides
            ORDER BY display_order, id;
            """
        )
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.HeroSlide(
            id=row[0],
            badge=row[1],
            title=row[2],
            description=row[3],
            button_text=row[4],
            accent_color=row[5],
            display_order=int(row[6]),
        )
        for row in rows
    ]


async def save_hero_slide(slide: models.HeroSlide) -> None:
    """Insert the slide, or replace the one with the same id."""
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO hero_slides(id, badge, title, description, button_text,
                                    accent_color, display_order)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                badge = excluded.badge,
                title = excluded.title,
                description = excluded.description,
                button_text = excluded.button_text,
                accent_color = excluded.accent_color,
                display_order = excluded.display_order;
            """,
            (
                slide.id,
                slide.badge,
                slide.title,
                slide.description,
                slide.button_text,
                slide.accent_color,
                slide.display_order,
            ),
        )
        await conn.commit()


async def delete_hero_slide(slide_id: str) -> bool:
    async with connect() as conn:
        res = await conn.execute("DELETE FROM hero_slides WHERE id = ?;", (slide_id,))
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Site settings
# ---------------------------


async def get_site_settings() -> models.SiteSettings:
    """The single settings row; defaults if it was never written."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, about_us, instagram_handle, whatsapp_number, footer_tagline,
                   payment_qr_code, upi_id, gpay_number, paytm_number
            FROM site_settings
            WHERE id = 'global';
            """
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return models.SiteSettings()
    return models.SiteSettings(**{k: row[k] for k in row.keys()})


async def update_site_settings(settings: models.SiteSettings) -> None:
    values = asdict(settings)
    cols = ", ".join(values)
    marks = ", ".join("?" for _ in values)
    updates = ", ".join(f"{k} = excluded.{k}" for k in values if k != "id")
    async with connect() as conn:
        await conn.execute(
            f"""
            INSERT INTO site_settings({cols}) VALUES ({marks})
            ON CONFLICT(id) DO UPDATE SET {updates};
            """,
            tuple(values.values()),
        )
        await conn.commit()


# ---------------------------
# Assets
# ---------------------------


async def upload_asset(path: str) -> str:
    """
    Copy a local image into the asset store under a unique name and return its url.
    Raises AssetPolicyError when the file type or size is not allowed,
    DataServiceError when the copy itself fails.
    """
    ext = os.path.splitext(path)[1].lower()
    if ext not in ASSET_EXTENSIONS:
        raise AssetPolicyError(
            f"Storage policy rejected '{os.path.basename(path)}': "
            f"only {', '.join(sorted(ASSET_EXTENSIONS))} files are allowed."
        )
    try:
        size = os.path.getsize(path)
    except OSError as e:
        raise DataServiceError(f"Cannot read {path}: {e}") from e
    if size > ASSET_MAX_BYTES:
        raise AssetPolicyError(
            f"Storage policy rejected '{os.path.basename(path)}': "
            f"file is larger than {ASSET_MAX_BYTES // (1024 * 1024)} MB."
        )

    stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    name = f"{stamp}-{uuid.uuid4().hex[:7]}{ext}"
    dest_dir = os.path.join(ASSET_DIR, "products")
    try:
        os.makedirs(dest_dir, exist_ok=True)
        dest = os.path.join(dest_dir, name)
        shutil.copyfile(path, dest)
    except OSError as e:
        _logger.error(f"Asset upload failed for {path}: {e}")
        raise DataServiceError(f"Upload failed: {e}") from e
    _logger.info(f"Uploaded asset {name}")
    return "file://" + os.path.abspath(dest)
