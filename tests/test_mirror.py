import os
import sys
import tempfile
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db import database as db_database  # noqa: E402
from db import mirror  # noqa: E402


class MirrorTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        # Point the DB to a temporary file and force re-initialization
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "nested", "mirror.sqlite")
        db_database.DB_PATH = self.db_path
        db_database._initialized = False

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_schema_created_on_first_connect(self):
        async with db_database.connect() as conn:
            cur = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table';"
            )
            tables = [row["name"] for row in await cur.fetchall()]
            await cur.close()
        self.assertIn("memberships", tables)
        self.assertTrue(os.path.exists(self.db_path))

    async def test_save_replaces_previous_ids(self):
        await mirror.save_ids("u1", "wishlist", ["a", "b", "a"])
        self.assertEqual(await mirror.load_ids("u1", "wishlist"), {"a", "b"})
        await mirror.save_ids("u1", "wishlist", ["c"])
        self.assertEqual(await mirror.load_ids("u1", "wishlist"), {"c"})

    async def test_kinds_and_owners_are_separate(self):
        await mirror.save_ids("u1", "wishlist", ["a"])
        await mirror.save_ids("u1", "cart", ["b"])
        await mirror.save_ids("u2", "cart", ["c"])
        self.assertEqual(await mirror.load_ids("u1", "cart"), {"b"})
        self.assertEqual(await mirror.load_ids("u2", "wishlist"), set())

    async def test_unknown_kind_is_logged_not_raised(self):
        # CHECK constraint rejects it; the mirror only logs
        await mirror.save_ids("u1", "basket", ["a"])
        self.assertEqual(await mirror.load_ids("u1", "basket"), set())


if __name__ == "__main__":
    unittest.main()
