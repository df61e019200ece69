# manages connection to the journal db, provides helpers internal to db package
import asyncio
import os
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = "data/journal.sqlite"
DB_INIT_SCRIPT = os.path.join(os.path.dirname(__file__), "journal.sql")

_initialized = False
_init_lock = asyncio.Lock()


def configure(db_path: str) -> None:
    """Point the journal at another file; the schema is re-checked on next use."""
    global DB_PATH, _initialized
    DB_PATH = db_path
    _initialized = False


async def _init_db(conn: aiosqlite.Connection) -> None:
    _logger.info(f"Initializing journal at {DB_PATH}...")
    with open(DB_INIT_SCRIPT, "r", encoding="utf-8") as f:
        await conn.executescript(f.read())
    await conn.commit()


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection with FK enabled.

    Creates the journal file and tables on first use.
    """
    global _initialized
    db_dir = os.path.dirname(DB_PATH)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)
    try:
        conn.row_factory = Row
        await conn.execute("PRAGMA foreign_keys = ON;")

        if not _initialized:
            async with _init_lock:
                if not _initialized:
                    await _init_db(conn)
                    _initialized = True
        yield conn
    finally:
        await conn.close()
