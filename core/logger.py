# core/logger.py
"""
Logging for the inventory console and its stores.

Configured once from the environment on first use:

    LOG_LEVEL       INFO
    LOG_TO_STDOUT   true
    LOG_TO_FILE     false    rotating file at LOG_FILE
    LOG_FILE        /data/inventory.log
    LOG_MAX_BYTES   2 MiB
    LOG_BACKUPS     3

Handlers already installed on the root logger (pytest, an embedding app)
are left in place and nothing is added.
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_LOG_FILE = "/data/inventory.log"

_configured = False


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


def _file_handler(path: str, level: int) -> logging.Handler:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=int(os.getenv("LOG_MAX_BYTES", str(2 * 1024 * 1024))),
        backupCount=int(os.getenv("LOG_BACKUPS", "3")),
    )
    handler.setLevel(level)
    return handler


def setup_logging():
    global _configured
    if _configured:
        return
    _configured = True

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    handlers = []
    if _env_flag("LOG_TO_STDOUT", "true"):
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(level)
        handlers.append(console)

    if _env_flag("LOG_TO_FILE", "false"):
        log_file = os.getenv("LOG_FILE", DEFAULT_LOG_FILE)
        try:
            handlers.append(_file_handler(log_file, level))
        except OSError as e:
            root.warning("Inventory log file %s unavailable: %s", log_file, e)

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
