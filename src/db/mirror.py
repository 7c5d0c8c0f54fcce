# best-effort local copy of wishlist/cart membership, keyed by the logged-in user
from __future__ import annotations

from typing import Iterable, Literal, Set

import aiosqlite

from db.database import connect
from utils.logger import get_logger

_logger = get_logger(__name__)

Kind = Literal["wishlist", "cart"]


async def load_ids(owner: str, kind: Kind) -> Set[str]:
    """Last mirrored ids, or an empty set if the mirror can't be read."""
    try:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT product_id FROM memberships WHERE owner = ? AND kind = ?;",
                (owner, kind),
            )
            rows = await cur.fetchall()
            await cur.close()
    except aiosqlite.Error as e:
        _logger.warning(f"could not read {kind} mirror: {e}")
        return set()
    return {row[0] for row in rows}


async def save_ids(owner: str, kind: Kind, ids: Iterable[str]) -> None:
    """Replace the mirrored ids for (owner, kind). Failures are logged only."""
    try:
        async with connect() as conn:
            await conn.execute(
                "DELETE FROM memberships WHERE owner = ? AND kind = ?;",
                (owner, kind),
            )
            await conn.executemany(
                "INSERT INTO memberships(owner, kind, product_id) VALUES (?, ?, ?);",
                [(owner, kind, pid) for pid in set(ids)],
            )
            await conn.commit()
    except aiosqlite.Error as e:
        _logger.warning(f"could not write {kind} mirror: {e}")

