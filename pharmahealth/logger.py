import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from . import settings

PACKAGE_LOGGER = "pharmahealth"


class ReportTypeFilter(logging.Filter):
    """Stamps every record with the report the run is producing."""

    def __init__(self, report_type: str):
        super().__init__()
        self.report_type = report_type

    def filter(self, record: logging.LogRecord) -> bool:
        record.report_type = self.report_type
        return True


def setup_logger(
    report_type: str = "inventory_health",
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Configures the package logger for one report run: a bare console stream
    and a rotating `<report_type>.log` under LOG_DIR whose lines carry the
    report type. Call it once from an entry point; library modules only use
    logging.getLogger(__name__).
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(log_level)

    # Only our own handlers count; a handler on the root logger must not stop setup
    if logger.handlers:
        return logger

    report_filter = ReportTypeFilter(report_type)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.addFilter(report_filter)
    logger.addHandler(console_handler)

    log_dir = log_dir or settings.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / f"{report_type}.log", maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s [%(report_type)s] %(levelname)s %(name)s: %(message)s")
    )
    file_handler.addFilter(report_filter)
    logger.addHandler(file_handler)

    return logger
