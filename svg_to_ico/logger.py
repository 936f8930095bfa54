"""
Logging setup for the svg-to-ico command line.

Library modules only create module-level loggers; this module is what the
command line uses to route them:
- Writes all records to a timestamped log file (optional)
- Archives old logs to a folder
- Echoes INFO and above to the console
"""

import logging
import shutil
from datetime import datetime
from pathlib import Path


class LogSetup:
    """Sets up logging for the application with file and console handlers."""

    def __init__(self, log_dir="logs", archive_dir=None):
        """
        Initialize logging setup.

        Args:
            log_dir: Directory to store current logs, or None for console only
            archive_dir: Directory to store archived logs (default: <log_dir>/archive/)
        """
        self.log_dir = Path(log_dir) if log_dir else None
        self.archive_dir = None

        if self.log_dir is not None:
            self.archive_dir = Path(archive_dir) if archive_dir else self.log_dir / "archive"
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self.archive_dir.mkdir(parents=True, exist_ok=True)

    def setup_logging(self, level=logging.INFO):
        """
        Configure logging with console and, when a log directory is set, file output.

        Args:
            level: Console log level

        Returns:
            tuple: (logging.Logger, log file path or None)
        """
        logger = logging.getLogger()
        logger.setLevel(logging.DEBUG)

        # Remove any existing handlers to avoid duplicates
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

        formatter = logging.Formatter(
            fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        log_filepath = None
        if self.log_dir is not None:
            self._archive_existing_logs()

            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_filepath = self.log_dir / f"run_{timestamp}.log"

            file_handler = logging.FileHandler(log_filepath, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        # Pillow logs every PNG chunk at DEBUG.
        for noisy_logger in ("PIL", "cairosvg"):
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)

        return logger, log_filepath

    def _archive_existing_logs(self):
        """
        Move old log files from the log directory to the archive directory.
        Keeps only the current session's logs in the main directory.
        """
        for log_file in self.log_dir.glob("run_*.log"):
            if log_file.is_file():
                try:
                    shutil.move(str(log_file), str(self.archive_dir / log_file.name))
                except OSError as e:
                    logging.getLogger(__name__).warning(
                        f"Could not archive log file {log_file.name}: {e}"
                    )


def setup_logging(log_dir="logs", archive_dir=None, level=logging.INFO):
    """
    Convenience function to set up logging.

    Args:
        log_dir: Directory to store current logs, or None to skip the log file
        archive_dir: Directory to store archived logs
        level: Console log level

    Returns:
        tuple: (logger, log_filepath)
    """
    log_setup = LogSetup(log_dir, archive_dir)
    return log_setup.setup_logging(level)
