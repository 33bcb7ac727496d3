"""Utilities for logging.

Authors: Ayush Baid, John Lambert
"""

import logging
import socket
import sys
from datetime import datetime, timezone
from logging import LoggerAdapter

from dask import distributed

LOGGER_NAME = "cornerdet"

# Set once per process; avoids a Dask API call for every log statement.
_WORKER_ID_CACHE: str | None = None

# Maps (hostname, port) -> sequential worker number
_WORKER_REGISTRY: dict[tuple[str, str], int] = {}
_NEXT_WORKER_NUM: int = 1


def _detect_worker_id_once() -> str:
    """Detect the identity of the current process.

    Workers get sequential numbers (1, 2, 3...) in the order they are first encountered.

    Returns:
        Worker ID in format "hostname(N)" for Dask workers, or "hostname-main" for the main process.
    """
    global _NEXT_WORKER_NUM

    hostname = socket.gethostname()
    try:
        worker = distributed.get_worker()
    except (ImportError, ValueError, AttributeError):
        return f"{hostname}-main"

    # address format: "tcp://130.207.121.32:40665"
    port = worker.address.split(":")[-1]

    key = (hostname, port)
    if key not in _WORKER_REGISTRY:
        _WORKER_REGISTRY[key] = _NEXT_WORKER_NUM
        _NEXT_WORKER_NUM += 1

    return f"{hostname}({_WORKER_REGISTRY[key]})"


def get_worker_id() -> str:
    """Get the cached worker ID for the current process, e.g. "hornet(1)" or "eagle-main"."""
    global _WORKER_ID_CACHE

    if _WORKER_ID_CACHE is None:
        _WORKER_ID_CACHE = _detect_worker_id_once()

    return _WORKER_ID_CACHE


class WorkerAwareAdapter(LoggerAdapter):
    """LoggerAdapter that injects the worker ID into every LogRecord.

    Worker detection happens lazily at the first log call, since the Dask worker context is not available at import
    time.
    """

    def __init__(self, logger: logging.Logger) -> None:
        super().__init__(logger, {})

    def process(self, msg, kwargs):
        kwargs.setdefault("extra", {})
        kwargs["extra"]["worker_id"] = get_worker_id()
        return msg, kwargs


class UTCFormatter(logging.Formatter):
    """Formatter with UTC timestamps."""

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.strftime("%Y-%m-%d %H:%M:%S")


def get_logger() -> LoggerAdapter:
    """Get the main logger, with automatic Dask worker awareness.

    Log format:
        "2025-10-28 00:00:45 [hornet(1)] [harris.py] INFO: message"

    Returns:
        Configured logger adapter instance.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        fmt = "%(asctime)s [%(worker_id)s] [%(filename)s] %(levelname)s: %(message)s"
        handler.setFormatter(UTCFormatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    return WorkerAwareAdapter(logger)
