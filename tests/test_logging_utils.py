import logging
import unittest

from utils import logging_utils
from utils.logging_utils import build_logging_config, get_tagged_logger, mask_url


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        self.records.append(record)


class TestLoggingUtils(unittest.TestCase):
    def test_build_logging_config_routes_warnings_to_stderr(self):
        cfg = build_logging_config(level="DEBUG", job_name="hydrowatch-proxy")
        self.assertEqual(cfg["root"]["level"], "DEBUG")
        self.assertEqual(cfg["handlers"]["stderr"]["level"], "WARNING")
        self.assertIn("stdout_max_info", cfg["handlers"]["stdout"]["filters"])
        self.assertEqual(cfg["filters"]["job_name"]["job_name"], "hydrowatch-proxy")

    def test_max_level_filter(self):
        f = logging_utils.MaxLevelFilter(logging.INFO)
        info = logging.LogRecord("x", logging.INFO, __file__, 1, "m", None, None)
        warn = logging.LogRecord("x", logging.WARNING, __file__, 1, "m", None, None)
        self.assertTrue(f.filter(info))
        self.assertFalse(f.filter(warn))

    def test_ensure_tag_defaults_to_logger_name_segment(self):
        record = logging.LogRecord("uvicorn.access", logging.INFO, __file__, 1, "m", None, None)
        logging_utils.EnsureTagFilter().filter(record)
        self.assertEqual(record.tag, "access")

    def test_get_tagged_logger_injects_tag(self):
        handler = _ListHandler()
        logger = get_tagged_logger("hydrowatch.test_tagging", tag="upstream/client")
        base_logger = logger.logger
        base_logger.setLevel(logging.DEBUG)
        base_logger.addHandler(handler)
        base_logger.propagate = False
        try:
            logger.info("Requesting station list")
            self.assertEqual(handler.records[-1].tag, "upstream/client")
        finally:
            base_logger.removeHandler(handler)
            base_logger.propagate = True

    def test_get_tagged_logger_default_tag(self):
        logger = get_tagged_logger("hydrowatch.scheduler")
        self.assertEqual(logger.extra["tag"], "scheduler")

    def test_setup_logging_override_applies_filters(self):
        root = logging.getLogger()
        orig_handlers = root.handlers[:]
        orig_level = root.level
        try:
            logging_utils.setup_logging(level="INFO", job_name="jobtest", override_existing=True)
            self.assertTrue(
                any(
                    any(f.__class__.__name__ == "JobNameFilter" for f in h.filters)
                    for h in root.handlers
                )
            )
        finally:
            root.handlers = orig_handlers
            root.setLevel(orig_level)
            logging_utils._CONFIGURED = False  # reset for other tests


class TestMaskUrl(unittest.TestCase):
    def test_masks_redis_password(self):
        self.assertEqual(mask_url("redis://:secret@cache:6379/0"), "redis://:***@cache:6379/0")

    def test_masks_user_and_password(self):
        self.assertEqual(mask_url("redis://user:pw@h/0"), "redis://***:***@h/0")

    def test_masks_secret_query_params(self):
        masked = mask_url("https://api.test/x?token=abc&state=KA")
        self.assertEqual(masked, "https://api.test/x?token=%2A%2A%2A&state=KA")

    def test_leaves_plain_urls(self):
        self.assertEqual(mask_url("https://indiawris.gov.in"), "https://indiawris.gov.in")
        self.assertEqual(mask_url("not a url"), "not a url")


if __name__ == "__main__":
    unittest.main()
