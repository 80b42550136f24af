# membership_sync/config/logging_config.py
# =============================================================================
# File: membership_sync/config/logging_config.py
# Description: Logging configuration using the Rich framework
#              Rich console on a TTY, JSON lines in production, plain text otherwise
# =============================================================================

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key, '').lower()
    return value in ('true', '1', 'yes', 'on') if value else default


def get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


MEMBERSHIP_SYNC_THEME = Theme({
    "debug": "magenta dim",
    "info": "green",
    "warning": "dark_goldenrod",
    "error": "red",
    "critical": "bold red",
    "timestamp": "grey70",
    "logger_name": "grey35",
    "message": "grey85",
})

PLAIN_FORMAT = "[%(asctime)s] [%(levelname)-8s] [%(name)-40s] %(message)s"
PLAIN_DATEFMT = "%Y-%m-%d %H:%M:%S"


class ProductionFormatter(logging.Formatter):
    """JSON formatter for production environments"""

    # Extra attributes copied to the JSON line when present on the record
    EXTRA_FIELDS = ("event_type", "sequence_number", "handler", "command", "job_id")

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if get_env_bool('LOG_JSON_INCLUDE_EXTRAS', True):
            for field_name in self.EXTRA_FIELDS:
                if hasattr(record, field_name):
                    log_obj[field_name] = getattr(record, field_name)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


def get_logger_level_from_env(logger_name: str, default_level: int) -> int:
    """Get logger level from environment variable.

    e.g. "membership_sync.event_bus" -> "LOGLEVEL_MEMBERSHIP_SYNC_EVENT_BUS"
    """
    env_name = f"LOGLEVEL_{logger_name.replace('.', '_').upper()}"

    level_str = os.getenv(env_name, '').upper()
    if level_str:
        level_map = {
            'DEBUG': logging.DEBUG,
            'INFO': logging.INFO,
            'WARNING': logging.WARNING,
            'WARN': logging.WARNING,
            'ERROR': logging.ERROR,
            'CRITICAL': logging.CRITICAL,
        }
        return level_map.get(level_str, default_level)

    return default_level


def setup_logging(
        service_name: str = "membership_sync",
        log_level: Optional[str] = None,
        log_file: Optional[str] = None,
        enable_json: Optional[bool] = None,
        rich_tracebacks: bool = True,
) -> None:
    """
    Configure logging for a Membership Sync process.

    Args:
        service_name: Name of the service (e.g., "worker", "rebuild")
        log_level: Override log level (default: LOG_LEVEL env or INFO)
        log_file: Optional log file path (default: LOG_FILE env)
        enable_json: Enable JSON formatting (default: LOG_JSON_FORMAT env)
        rich_tracebacks: Enable rich tracebacks on the console handler
    """
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_file = log_file or os.getenv("LOG_FILE")

    if enable_json is None:
        enable_json = get_env_bool('LOG_JSON_FORMAT', False)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    use_rich = not enable_json and (sys.stdout.isatty() or get_env_bool("FORCE_COLOR", False))

    if use_rich:
        console = Console(
            theme=MEMBERSHIP_SYNC_THEME,
            force_terminal=get_env_bool("FORCE_COLOR", False),
            width=get_env_int('LOG_CONSOLE_WIDTH', 0) or None,
        )
        root_logger.addHandler(RichHandler(
            console=console,
            rich_tracebacks=rich_tracebacks,
            show_path=False,
            log_time_format="[%X]",
        ))

    elif enable_json:
        json_handler = logging.StreamHandler(sys.stdout)
        json_handler.setFormatter(ProductionFormatter())
        root_logger.addHandler(json_handler)

    else:
        plain_handler = logging.StreamHandler(sys.stdout)
        plain_handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=PLAIN_DATEFMT))
        root_logger.addHandler(plain_handler)

    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=get_env_int('LOG_MAX_SIZE_MB', 100) * 1024 * 1024,
            backupCount=get_env_int('LOG_BACKUP_COUNT', 5),
            encoding=os.getenv('LOG_FILE_ENCODING', 'utf-8'),
        )
        # Always plain text in files
        file_handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=PLAIN_DATEFMT))
        root_logger.addHandler(file_handler)

    default_noise_config = {
        "asyncio": logging.WARNING,
        "membership_sync.event_bus": logging.INFO,
        "membership_sync.jobs": logging.INFO,
        "membership_sync.retry": logging.WARNING,
    }

    for logger_name, default_level in default_noise_config.items():
        logging.getLogger(logger_name).setLevel(get_logger_level_from_env(logger_name, default_level))

    logging.getLogger(f"{service_name}.startup").info(f"Logging configured for {service_name}")
