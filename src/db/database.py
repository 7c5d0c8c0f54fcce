# connection helper for the local membership mirror (never authoritative)
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from sqlite3 import Row

import aiosqlite

from utils.logger import get_logger
from utils.settings import Settings

_logger = get_logger(__name__)

DB_PATH: Path = Settings.MIRROR_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS memberships (
    owner      TEXT NOT NULL,
    kind       TEXT NOT NULL CHECK (kind IN ('wishlist', 'cart')),
    product_id TEXT NOT NULL,
    PRIMARY KEY (owner, kind, product_id)
);
"""

_initialized = False
_init_lock = asyncio.Lock()


async def _init_db(conn: aiosqlite.Connection) -> None:
    _logger.info(f"Initializing mirror database at {DB_PATH}...")
    await conn.executescript(SCHEMA)
    await conn.commit()


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection.

    Creates the parent directory and the schema on first use.
    """
    global _initialized
    path = Path(DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(path)
    conn.row_factory = Row

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                await _init_db(conn)
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()
