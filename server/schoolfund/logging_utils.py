"""
Logging setup shared by the API process and the scripts.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(name)s %(levelname)s %(asctime)s %(message)s"
DATE_FORMAT = "%m/%d/%Y %I:%M:%S %p"


def configure_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """
    Configure root logging once per process.

    When `log_dir` is given, everything is also appended to `combined.log`
    and errors to `error.log` inside it.
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, datefmt=DATE_FORMAT)
    if not log_dir:
        return

    os.makedirs(log_dir, exist_ok=True)
    root = logging.getLogger()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    existing = {
        getattr(handler, "baseFilename", None) for handler in root.handlers
    }
    for filename, handler_level in (("combined.log", logging.NOTSET), ("error.log", logging.ERROR)):
        path = os.path.abspath(os.path.join(log_dir, filename))
        if path in existing:
            continue
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(handler_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)
