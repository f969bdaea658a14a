"""
Logging setup shared by the portal and its command-line tools.

Every line carries the correlation id of the request being served, when
there is one, and a UTC timestamp.
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(trace_str)s%(name)s: %(message)s"

correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


class CorrelationIdFilter(logging.Filter):
    """Sets ``record.trace_str`` to ``"[<id>] "``, or ``""`` outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        cid = correlation_id.get()
        record.trace_str = f"[{cid}] " if cid else ""
        return True


class UTCFormatter(logging.Formatter):
    converter = time.gmtime
    default_msec_format = "%s.%03dZ"


@contextmanager
def scoped_correlation_id(value: str) -> Iterator[None]:
    """
    Tag log lines written inside the block with `value`.

    >>> with scoped_correlation_id("req-123"):
    ...     logger.info("handled")
    """
    token = correlation_id.set(value)
    try:
        yield
    finally:
        correlation_id.reset(token)


def _handler(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(UTCFormatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    return handler


def setup_logging(
    level: int | str = logging.INFO,
    log_file: str | Path | None = None,
    *,
    namespace: str | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 10,
) -> logging.Logger:
    """
    Send log output to stdout and, optionally, a rotating file.

    Configures the root logger, or only `namespace` (which then stops
    propagating). Calling it again replaces the handlers it installed.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(namespace)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.setLevel(level)
    logger.addHandler(_handler(logging.StreamHandler(sys.stdout)))

    if log_file:
        path = Path(log_file).resolve()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            rotating = RotatingFileHandler(
                path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        except OSError as e:
            # Read-only filesystems keep console logging only
            sys.stderr.write(f"Failed to setup log file: {e}\n")
        else:
            logger.addHandler(_handler(rotating))

    if namespace:
        logger.propagate = False
    return logger
