import os
import tempfile
import unittest
from datetime import datetime, timezone

from jamstore.db import database as db_database
from jamstore.db.models import Identity, Product
from jamstore.utils.local_store import LocalStore


class TempDbTestCase(unittest.IsolatedAsyncioTestCase):
    """Points the database and the local store at a fresh temp directory."""

    def setUp(self):
        # Point the DB to a temporary file and force re-initialization
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        db_database.DB_PATH = self.db_path
        db_database._initialized = False
        self.store_path = os.path.join(self.temp_dir.name, "local_store.json")

    def tearDown(self):
        self.temp_dir.cleanup()

    def make_store(self) -> LocalStore:
        return LocalStore(self.store_path)


def make_product(
    pid: str = "p1",
    price: float = 1200,
    sizes=("S", "M", "L"),
    status: str = "AVAILABLE",
    **kwargs,
) -> Product:
    fields = dict(
        id=pid,
        name=f"Jersey {pid}",
        team="Aizawl FC",
        price=price,
        image=f"https://img.example/{pid}.png",
        description="A jersey.",
        stock=10,
        status=status,
        category="OTHER",
        sizes=tuple(sizes),
        images=(),
    )
    fields.update(kwargs)
    return Product(**fields)


def make_identity(uid: str = "u1", role: str = "shopper") -> Identity:
    return Identity(
        id=uid,
        name="Lalremruati",
        email=f"{uid}@example.com",
        phone="9876543210",
        address="Zarkawt, Aizawl",
        role=role,
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
