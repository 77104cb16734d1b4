# rangeblock/core/logging.py
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import ConfigManager, get_config_manager

DEFAULT_LOG_FORMAT = "%(levelname)s - %(asctime)s - %(name)s - %(module)s:%(lineno)d - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(config: Optional[ConfigManager] = None):
    """
    Configures the `rangeblock` logger tree from the `server.log_level` and `logging.*` settings.
    """
    config = config or get_config_manager()
    log_level_str = str(config.get_config("server.log_level", "INFO")).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    log_format = config.get_config("logging.format", DEFAULT_LOG_FORMAT)
    date_format = config.get_config("logging.date_format", DEFAULT_DATE_FORMAT)

    root_logger = logging.getLogger("rangeblock")
    root_logger.setLevel(log_level)
    root_logger.handlers = [] # drop handlers from a previous setup

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    root_logger.addHandler(console_handler)

    # File handler only when a path is configured
    log_file_path_str = config.get_config("logging.file.path")
    if log_file_path_str:
        log_file_path = Path(log_file_path_str)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        max_bytes = config.get_config("logging.file.max_bytes", 1024 * 1024 * 5) # 5MB
        backup_count = config.get_config("logging.file.backup_count", 5)

        file_handler = RotatingFileHandler(
            log_file_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        root_logger.addHandler(file_handler)
        root_logger.info(f"File logging configured at: {log_file_path}")

    logging.getLogger("uvicorn.error").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING if log_level > logging.INFO else log_level)

    root_logger.info(f"Logging setup complete. Application log level set to {log_level_str}.")

# In config/config.yaml:
# logging:
#   format: "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
#   date_format: "%Y-%m-%d %H:%M:%S"
#   file:
#     path: "data/logs/rangeblock.log" # null disables file logging
#     max_bytes: 5242880
#     backup_count: 5
