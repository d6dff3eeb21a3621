import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .paths import LOG_FILE, ensure_data_dir

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(data_dir: Optional[Path] = None, level: int = logging.INFO) -> None:
    """Set up console logging, plus a rotating log file when a data dir is given."""
    handlers = [logging.StreamHandler()]

    if data_dir is not None and ensure_data_dir(data_dir):
        try:
            handlers.append(
                RotatingFileHandler(data_dir / LOG_FILE, maxBytes=1_000_000, backupCount=2, encoding="utf-8")
            )
        except OSError:
            pass  # console only

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)
