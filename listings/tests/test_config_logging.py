import logging
import unittest
from unittest.mock import patch

from listings import dependencies
from listings.config import Settings
from listings.logging_config import setup_logging


class SettingsTests(unittest.TestCase):
    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.api_prefix, "/api")
        self.assertIsNone(settings.mongodb_url)
        self.assertEqual(settings.port, 5000)
        self.assertFalse(settings.use_in_memory_backends)

    def test_environment_overrides(self):
        env = {
            "MONGODB_URL": "mongodb://db:27017",
            "PORT": "8080",
            "USE_IN_MEMORY_BACKENDS": "true",
        }
        with patch.dict("os.environ", env, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.mongodb_url, "mongodb://db:27017")
        self.assertEqual(settings.port, 8080)
        self.assertTrue(settings.use_in_memory_backends)


class DependencyTests(unittest.TestCase):
    def tearDown(self):
        dependencies._connection = None
        dependencies._storage = None

    @patch("listings.dependencies.get_settings")
    def test_memory_only_without_url(self, mock_settings):
        mock_settings.return_value = Settings(_env_file=None, mongodb_url=None)
        dependencies._connection = None
        dependencies._storage = None
        self.assertIsNone(dependencies.get_connection())
        storage = dependencies.get_storage()
        self.assertIsNone(storage.persistent)
        self.assertIs(dependencies.get_storage(), storage)

    @patch("listings.dependencies.MongoConnection")
    @patch("listings.dependencies.get_settings")
    def test_mongo_wiring(self, mock_settings, mock_connection):
        mock_settings.return_value = Settings(
            _env_file=None, mongodb_url="mongodb://db:27017", use_in_memory_backends=False
        )
        dependencies._connection = None
        dependencies._storage = None
        storage = dependencies.get_storage()
        connection = mock_connection.return_value
        self.assertIsNotNone(storage.persistent)
        connection.is_ready.return_value = False
        self.assertEqual(storage.active_backend_name(), "memory")

        dependencies.close_connection()
        connection.close.assert_called_once()
        self.assertIsNone(dependencies._storage)


class LoggingTests(unittest.TestCase):
    def setUp(self):
        self._root_level = logging.getLogger().level

    def tearDown(self):
        logging.getLogger().handlers.clear()
        logging.getLogger().setLevel(self._root_level)

    def test_setup_logging_sets_level(self):
        setup_logging("debug")
        self.assertEqual(logging.getLogger().level, logging.DEBUG)
        self.assertEqual(len(logging.getLogger().handlers), 1)

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("chatty")
        self.assertEqual(logging.getLogger().level, logging.INFO)

    def test_driver_heartbeats_are_quiet(self):
        setup_logging("debug")
        self.assertEqual(logging.getLogger("pymongo").level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
