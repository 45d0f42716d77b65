"""
Logging setup for the depth service.
Root level from settings plus a daily rotating file handler.
"""

import os
import logging
from logging.handlers import TimedRotatingFileHandler

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def setup_logging(level: str = "INFO"):
    """Configure root logging level and console format."""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        logger.warning(f"Unknown LOG_LEVEL {level!r}, using INFO")
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

def setup_log_rotation(log_dir: str = ".run") -> bool:
    """Setup daily log rotation for service logs."""
    try:
        os.makedirs(log_dir, exist_ok=True)

        handler = TimedRotatingFileHandler(
            filename=os.path.join(log_dir, "depthboard.log"),
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8"
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

        root_logger = logging.getLogger()
        # Avoid stacking handlers when the app is created more than once
        for existing in root_logger.handlers:
            if isinstance(existing, TimedRotatingFileHandler) and existing.baseFilename == handler.baseFilename:
                handler.close()
                return True
        root_logger.addHandler(handler)

        logger.info("Log rotation configured (daily, keep 7 days)")
        return True

    except OSError as e:
        logger.error(f"Failed to setup log rotation: {e}")
        return False
