"""
Logging configuration for the User Directory API.

``setup_logging`` attaches a console handler and, when ``LOG_FILE`` is
set, a file handler to the root logger.  Services log through
``logging.getLogger(__name__)`` so every record carries the module it
came from (``user_directory_api.app.services.user_service`` and so
on).

Handlers installed here are named, which lets ``setup_logging``
recognise its own work and stay idempotent even when other code (the
test runner, uvicorn) has already attached handlers of its own.
"""

import logging
from pathlib import Path
from typing import Optional

HANDLER_PREFIX = "user_directory"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _installed(logger: logging.Logger) -> bool:
    return any((handler.get_name() or "").startswith(HANDLER_PREFIX) for handler in logger.handlers)


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger once.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive; unknown names fall back to ``INFO``.
    logfile : Optional[str]
        Path of a file to append log records to.  Missing parent
        directories are created.  If omitted, only the console is used.
    """
    logger = logging.getLogger()
    if _installed(logger):
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.set_name(f"{HANDLER_PREFIX}.console")
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.set_name(f"{HANDLER_PREFIX}.file")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # One line per request is noise outside of debugging.
    if numeric_level > logging.DEBUG:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
