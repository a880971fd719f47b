# manages connection to db, provides helper methods internal to db package
import asyncio
import os
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from jamstore.db.errors import DataServiceError
from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)

_HERE = os.path.dirname(os.path.abspath(__file__))

DB_PATH = os.getenv("JAMSTORE_DB", "data/jamstore.sqlite")
DB_INIT_SCRIPTS = [
    os.path.join(_HERE, "schema.sql"),
    os.path.join(_HERE, "seed.sql"),
]

_initialized = False
_init_lock = asyncio.Lock()


async def _init_db(conn: aiosqlite.Connection) -> None:
    for script in DB_INIT_SCRIPTS:
        if not os.path.exists(script) or os.path.getsize(script) == 0:
            continue
        _logger.info(f"Running init script {os.path.basename(script)}...")
        with open(script, "r", encoding="utf-8") as f:
            await conn.executescript(f.read())
    await conn.commit()


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection with FK enabled.

    Creates the tables and seed rows on first use. Any sqlite error raised
    inside the block surfaces as DataServiceError.
    """
    global _initialized
    try:
        db_dir = os.path.dirname(DB_PATH)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        conn = await aiosqlite.connect(DB_PATH)
    except (aiosqlite.Error, OSError) as e:
        raise DataServiceError(f"Cannot open database at {DB_PATH}: {e}") from e

    try:
        conn.row_factory = Row
        await conn.execute("PRAGMA foreign_keys = ON;")

        if not _initialized:
            async with _init_lock:
                if not _initialized:
                    if not await _table_exists(conn, "products"):
                        _logger.info("Initializing database...")
                        await _init_db(conn)
                    _initialized = True
        yield conn
    except aiosqlite.Error as e:
        _logger.error(f"Database error: {e}")
        raise DataServiceError(str(e)) from e
    finally:
        await conn.close()
