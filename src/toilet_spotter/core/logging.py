"""Loguru logging setup for the API server and the CLI.

The console sink is either a readable one-line format or, with
``json_logs``, one serialized JSON object per record for log shippers.
A rotating file sink is added when a log directory is configured.  The
uvicorn access log is filtered so load-balancer health checks do not
drown out real traffic.
"""

import logging
import sys
from pathlib import Path

from loguru import logger

LOG_FILE_NAME = "toilet-spotter.log"

_CONSOLE_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level:<8}</level> | {name}:{line} | {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"


class HealthCheckFilter(logging.Filter):
    """Drop uvicorn access lines for the health endpoint."""

    def __init__(self, path: str = "/health") -> None:
        super().__init__()
        self.path = path

    def filter(self, record: logging.LogRecord) -> bool:
        return self.path not in record.getMessage()


def _install_access_filter() -> None:
    access_logger = logging.getLogger("uvicorn.access")
    if not any(isinstance(f, HealthCheckFilter) for f in access_logger.filters):
        access_logger.addFilter(HealthCheckFilter())


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, *, json_logs: bool = False) -> None:
    """Replace the Loguru sinks with the configured ones.

    Args:
        log_level: Minimum level emitted by every sink.
        log_dir: Directory for ``toilet-spotter.log``.  Created if missing;
            the file is rotated daily and kept for a week.
        json_logs: Serialize console records as JSON instead of text.
    """
    level = log_level.upper()
    logger.remove()
    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT, colorize=None)

    if log_dir:
        log_path = Path(log_dir).expanduser()
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / LOG_FILE_NAME,
            level=level,
            format=_FILE_FORMAT,
            rotation="1 day",
            retention="7 days",
        )

    _install_access_filter()
