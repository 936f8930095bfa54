import unittest
import logging
import os
import sys
import tempfile
from pathlib import Path

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from svg_to_ico.logger import setup_logging


class TestLogSetup(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root_logger = logging.getLogger()
        self.saved_handlers = self.root_logger.handlers[:]
        self.saved_level = self.root_logger.level

    def tearDown(self):
        for handler in self.root_logger.handlers[:]:
            self.root_logger.removeHandler(handler)
            handler.close()
        for handler in self.saved_handlers:
            self.root_logger.addHandler(handler)
        self.root_logger.setLevel(self.saved_level)
        self.tmp.cleanup()

    def test_file_and_console_handlers(self):
        log_dir = Path(self.tmp.name) / "logs"
        old_log = log_dir / "run_20200101_000000.log"
        log_dir.mkdir()
        old_log.write_text("old run")

        logger, log_filepath = setup_logging(log_dir)
        logging.getLogger("svg_to_ico.test").info("hello")
        for handler in logger.handlers:
            handler.flush()

        self.assertEqual(len(logger.handlers), 2)
        self.assertTrue((log_dir / "archive" / old_log.name).exists())
        self.assertFalse(old_log.exists())
        self.assertIn("hello", log_filepath.read_text(encoding="utf-8"))
        self.assertEqual(logging.getLogger("PIL").level, logging.WARNING)

    def test_console_only(self):
        logger, log_filepath = setup_logging(None, level=logging.DEBUG)

        self.assertIsNone(log_filepath)
        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.handlers[0].level, logging.DEBUG)


if __name__ == '__main__':
    unittest.main()
