import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from quotedesk.config.settings import DEFAULT_WATCHLIST, Settings, is_usable_api_key


class TestQuoteSettings(unittest.TestCase):
    def test_defaults_without_env(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.QUOTE_PROVIDER, "alphavantage")
        self.assertIsNone(settings.QUOTE_API_KEY)
        self.assertEqual(settings.QUOTE_DAILY_QUOTA, 25)
        self.assertEqual(settings.QUOTE_CACHE_TTL_SEC, 180)
        self.assertEqual(settings.QUOTE_CACHE_CAPACITY, 100)
        self.assertEqual(settings.QUOTE_COOLDOWN_SEC, 60)
        self.assertEqual(settings.QUOTE_BATCH_DELAY_SEC, 2.0)
        self.assertEqual(settings.QUOTE_HTTP_TIMEOUT_SEC, 15.0)
        self.assertEqual(settings.QUOTE_WATCHLIST, DEFAULT_WATCHLIST)

    def test_env_overrides(self):
        env = {
            "QUOTE_PROVIDER": "fmp",
            "QUOTE_API_KEY": "secret",
            "QUOTE_DAILY_QUOTA": "100",
            "QUOTE_BATCH_DELAY_SEC": "0.5",
            "QUOTE_STATE_PATH": "/tmp/state.json",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.QUOTE_PROVIDER, "fmp")
        self.assertEqual(settings.QUOTE_API_KEY, "secret")
        self.assertEqual(settings.QUOTE_DAILY_QUOTA, 100)
        self.assertEqual(settings.QUOTE_BATCH_DELAY_SEC, 0.5)
        self.assertEqual(settings.QUOTE_STATE_PATH, "/tmp/state.json")

    def test_watchlist_parses_comma_separated_values(self):
        with patch.dict(os.environ, {"QUOTE_WATCHLIST": " nvda, AAPL , ,msft "}, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.QUOTE_WATCHLIST, ["NVDA", "AAPL", "MSFT"])

    def test_unknown_provider_fails_validation(self):
        with patch.dict(os.environ, {"QUOTE_PROVIDER": "bloomberg"}, clear=True):
            with self.assertRaises(ValidationError):
                Settings.from_env()

    def test_zero_quota_fails_validation(self):
        with patch.dict(os.environ, {"QUOTE_DAILY_QUOTA": "0"}, clear=True):
            with self.assertRaises(ValidationError):
                Settings.from_env()

    def test_placeholder_keys_are_not_usable(self):
        self.assertFalse(is_usable_api_key(None))
        self.assertFalse(is_usable_api_key("  "))
        self.assertFalse(is_usable_api_key("DEMO_KEY"))
        self.assertFalse(is_usable_api_key("ENTER_YOUR_KEY_HERE"))
        self.assertTrue(is_usable_api_key("ABC123"))


if __name__ == "__main__":
    unittest.main()
