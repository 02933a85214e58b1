from __future__ import annotations
import logging, sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_NAME = "logostamp"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

BANNER = "=" * 72

def build_logger(level: int = logging.INFO, log_file: Optional[Path] = None,
                 name: str = LOGGER_NAME) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    fmt = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(exist_ok=True, parents=True)
        fh = RotatingFileHandler(log_file, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
        fh.setFormatter(fmt)
        fh.setLevel(level)
        logger.addHandler(fh)

    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(fmt)
    sh.setLevel(level)
    logger.addHandler(sh)
    return logger

class log_section:
    def __init__(self, title: str, logger: logging.Logger):
        self.title = title
        self.logger = logger

    def __enter__(self):
        self.logger.info("\n%s\n%s\n%s", BANNER, self.title, BANNER)

    def __exit__(self, exc_type, exc, tb):
        return False
