import logging
import os
import sys
import unittest
from unittest import mock

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from utils.logger import CenteredFormatter, get_logger  # noqa: E402
from utils.settings import Settings, _env_url  # noqa: E402


class SettingsTestCase(unittest.TestCase):
    def test_env_url_adds_trailing_slash(self):
        with mock.patch.dict(os.environ, {"X_URL": "http://svc:9000/api"}):
            self.assertEqual(_env_url("X_URL", "http://d/"), "http://svc:9000/api/")
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(_env_url("X_URL", "http://d"), "http://d/")

    def test_defaults(self):
        for url in (Settings.PROFILE_URL, Settings.CATALOG_URL, Settings.ORDER_URL):
            self.assertTrue(url.endswith("/"))
        self.assertEqual(Settings.PAGE_SIZE, 5)
        self.assertIn("Electronics", Settings.CATEGORIES)
        self.assertEqual(Settings.INITIAL_ORDER_STATUS, "pending")


class LoggerTestCase(unittest.TestCase):
    def test_get_logger_is_idempotent(self):
        a = get_logger("cybermart.test")
        b = get_logger("cybermart.test")
        self.assertIs(a, b)
        self.assertEqual(len(a.handlers), len(b.handlers))
        self.assertFalse(a.propagate)

    def test_centered_formatter_leaves_record_name(self):
        fmt = CenteredFormatter("[%(name)s] %(message)s", initial_width=10)
        record = logging.LogRecord("api", logging.INFO, __file__, 1, "hi", None, None)
        self.assertEqual(fmt.format(record), "[   api    ] hi")
        self.assertEqual(record.name, "api")


if __name__ == "__main__":
    unittest.main()
