"""
Logging configuration for the contacts service.

``setup_logging`` attaches a console handler, and optionally a file
handler, to the root logger.  Every module logs through
``logging.getLogger(__name__)`` so the output carries the dotted module
path (``contacts_api.app.services.directory_service`` and so on).
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger exactly once.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``).  Unknown names fall back
        to ``INFO``.
    logfile : Optional[str]
        Path of a file to append log records to.  Resolved relative to
        the current working directory.
    """
    root = logging.getLogger()
    if root.handlers:
        # Already configured, e.g. by pytest or a second create_app() call.
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
