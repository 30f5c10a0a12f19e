import os
import unittest

from hydrowatch.config import Settings


class TestConfig(unittest.TestCase):
    def _with_env(self, name, value):
        previous = os.environ.get(name)
        os.environ[name] = value

        def restore():
            if previous is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = previous

        self.addCleanup(restore)

    def test_settings_defaults(self):
        previous = os.environ.pop("HYDROWATCH_INDIA_WRIS_BASE_URL", None)
        try:
            s = Settings()
            self.assertEqual(s.india_wris_base_url, "https://indiawris.gov.in")
            self.assertEqual(s.upstream_max_attempts, 3)
            self.assertEqual(s.cache_max_age_seconds, 6 * 60 * 60)
            self.assertEqual(s.bulk_chunk_size, 5)
            self.assertEqual(s.default_days, 30)
        finally:
            if previous is not None:
                os.environ["HYDROWATCH_INDIA_WRIS_BASE_URL"] = previous

    def test_base_url_env_override_strips_slash(self):
        self._with_env("HYDROWATCH_INDIA_WRIS_BASE_URL", "http://example.com/")
        self.assertEqual(Settings().india_wris_base_url, "http://example.com")

    def test_thresholds_override_flow_into_classifier_config(self):
        self._with_env("HYDROWATCH_CRITICAL_DEPTH_M", "80")
        self._with_env("HYDROWATCH_TREND_WINDOW", "6")
        cfg = Settings().classifier_config()
        self.assertEqual(cfg.critical_depth, 80.0)
        self.assertEqual(cfg.warning_depth, 30.0)
        self.assertEqual(cfg.trend_window, 6)

    def test_inconsistent_thresholds_rejected(self):
        s = Settings(caution_depth_m=60.0)
        with self.assertRaises(ValueError):
            s.classifier_config()

    def test_cors_origin_list(self):
        s = Settings(cors_origins="http://a.test, http://b.test,")
        self.assertEqual(s.cors_origin_list(), ["http://a.test", "http://b.test"])
        self.assertEqual(Settings(cors_origins="*").cors_origin_list(), ["*"])


if __name__ == "__main__":
    unittest.main()
