"""
Logging setup shared by the command line tools.
"""

import datetime
import logging
import sys
import time
from typing import Optional, Set

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class MillisecondFormatter(logging.Formatter):
    """Custom formatter that includes milliseconds in timestamps."""

    def formatTime(self, record, datefmt=None):
        """Override formatTime to include milliseconds."""
        if datefmt:
            return time.strftime(datefmt, self.converter(record.created))
        dt = datetime.datetime.fromtimestamp(record.created)
        return dt.strftime("%H:%M:%S.%f")[:-3]


class DebugLogFilter(logging.Filter):
    """Custom filter for controlling debug message visibility by subsystem."""

    def __init__(self, subsystems: Optional[Set[str]] = None):
        """Initialize filter with allowed subsystems.

        Args:
            subsystems: Logger names to show debug messages for.
                       If None, show all debug messages.
                       If empty set, show no debug messages.
        """
        super().__init__()
        self.subsystems = subsystems

    def filter(self, record):
        """Filter log records based on subsystem and level."""
        if record.levelno != logging.DEBUG:
            return True
        if self.subsystems is None:
            return True
        return record.name in self.subsystems


def setup_logging(level: str = "INFO", debug_subsystems: Optional[Set[str]] = None, stream=None) -> logging.Handler:
    """Install a stderr handler on the root logger and return it."""
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(MillisecondFormatter(LOG_FORMAT))
    handler.addFilter(DebugLogFilter(debug_subsystems))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(handler)
    return handler
