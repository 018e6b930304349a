import collections
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sylman.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StatusBuffer:
    """Bounded history of user-facing status messages."""

    def __init__(self, max_size: int = 200):
        self.entries = collections.deque(maxlen=max_size)

    def add_record(self, record: logging.LogRecord):
        # Only records explicitly marked as status lines are kept
        if getattr(record, "is_status", False):
            self.entries.append({
                "timestamp": datetime.fromtimestamp(record.created).isoformat(),
                "level": record.levelname,
                "source": record.name,
                "message": record.getMessage(),
            })

    def get_entries(self) -> List[Dict]:
        return list(self.entries)

    def latest(self) -> Optional[Dict]:
        return self.entries[-1] if self.entries else None

    def clear(self):
        self.entries.clear()


# Global instance
status_buffer = StatusBuffer(max_size=get_settings().status_history_size)


class StatusBufferHandler(logging.Handler):
    def emit(self, record):
        if hasattr(record, "_logged_to_status_buffer"):
            return
        record._logged_to_status_buffer = True

        if getattr(record, "is_status", False):
            try:
                status_buffer.add_record(record)
            except Exception:
                self.handleError(record)


def setup_logging(level: Optional[str] = None):
    level_name = (level or get_settings().log_level).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(level_name)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, StatusBufferHandler)
               for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(console)

    if not any(isinstance(h, StatusBufferHandler) for h in root_logger.handlers):
        handler = StatusBufferHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def log_status(message: str, level: int = logging.INFO):
    """Log a user-facing status line to the status buffer."""
    logger = logging.getLogger("sylman.status")
    logger.log(level, message, extra={"is_status": True})
