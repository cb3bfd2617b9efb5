"""
Streak Engine - Logger
Colored console output plus a rotating file under the log directory.

Modules log through ``logging.getLogger(__name__)``; the ``streak_engine.*``
loggers propagate into the handlers configured here. STREAK_ENGINE_LOG_DIR
and STREAK_ENGINE_LOG_LEVEL move the file and change the threshold.
"""

import logging
import sys
import os
from logging.handlers import RotatingFileHandler

# Log directory can be moved with STREAK_ENGINE_LOG_DIR
LOGS_DIR = os.getenv("STREAK_ENGINE_LOG_DIR", os.path.join(os.getcwd(), "logs"))
LOG_LEVEL = getattr(logging, os.getenv("STREAK_ENGINE_LOG_LEVEL", "INFO").upper(), logging.INFO)

class CustomFormatter(logging.Formatter):
    """Custom formatter with colors for console output"""

    grey = "\x1b[38;20m"
    blue = "\x1b[34;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s (%(filename)s:%(lineno)d)"

    FORMATS = {
        logging.DEBUG: grey + format_str + reset,
        logging.INFO: blue + format_str + reset,
        logging.WARNING: yellow + format_str + reset,
        logging.ERROR: red + format_str + reset,
        logging.CRITICAL: bold_red + format_str + reset
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno)
        formatter = logging.Formatter(log_fmt, datefmt="%Y-%m-%d %H:%M:%S")
        return formatter.format(record)

def setup_logger(name: str = "streak_engine", level: int = LOG_LEVEL, log_dir: str = LOGS_DIR) -> logging.Logger:
    """Configures and returns the engine logger; module loggers named
    streak_engine.* propagate into its handlers."""

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers if function is called multiple times
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(CustomFormatter())
    logger.addHandler(console_handler)

    # 5MB max size per file, keep last 5 backups
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "streak_engine.log")
    file_handler = RotatingFileHandler(log_file, maxBytes=5*1024*1024, backupCount=5, encoding='utf-8')
    file_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(file_formatter)
    logger.addHandler(file_handler)

    return logger

# Global logger instance
logger = setup_logger()
