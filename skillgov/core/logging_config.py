"""
Logging setup for the skill governance service.

Imported first by the app entry point and the DB layer. Every other module
only calls `logging.getLogger(...)`; nothing else configures handlers.

Recent records are kept in `log_buffer` as small dicts so the admin API can
filter them by level without re-parsing formatted lines.
"""

import logging
import os
import sys
from collections import deque
from typing import Deque, Dict, List, Optional

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_BUFFER_SIZE = int(os.getenv("LOG_BUFFER_SIZE", "2000"))
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

log_buffer: Deque[Dict[str, str]] = deque(maxlen=LOG_BUFFER_SIZE)


class BufferHandler(logging.Handler):
    """Appends each record to `log_buffer` as {time, logger, level, message}."""

    def emit(self, record):
        try:
            log_buffer.append(
                {
                    "time": self.formatter.formatTime(record, LOG_DATEFMT),
                    "logger": record.name,
                    "level": record.levelname,
                    "message": record.getMessage(),
                }
            )
        except Exception:
            self.handleError(record)


def recent_logs(limit: int = 100, min_level: Optional[str] = None) -> List[Dict[str, str]]:
    entries = list(log_buffer)
    if min_level:
        threshold = logging.getLevelName(min_level.upper())
        entries = [e for e in entries if logging.getLevelName(e["level"]) >= threshold]
    return entries[-limit:]


def setup_logging():
    """Attach the console and buffer handlers to the root logger once."""
    root = logging.getLogger()
    if any(isinstance(h, BufferHandler) for h in root.handlers):
        return

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    root.addHandler(console)
    buffer = BufferHandler()
    buffer.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    root.addHandler(buffer)

    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    # Silence noisy libraries
    for lib in ["httpx", "httpcore", "aiosqlite", "sqlalchemy.engine", "asyncio", "redis"]:
        logging.getLogger(lib).setLevel(logging.WARNING)


setup_logging()
