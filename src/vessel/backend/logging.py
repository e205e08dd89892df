"""Logging configuration for Vessel backend"""

import logging
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler

LOG_FORMAT = '%(asctime)s.%(msecs)03d - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Third-party loggers that are too chatty at INFO for a terminal server
NOISY_LOGGERS = ("uvicorn.access", "websockets", "httpx")


class VesselOnlyFilter(logging.Filter):
    """Filter to only allow logs from vessel.* modules"""

    def filter(self, record):
        return record.name.startswith('vessel.')


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> TimedRotatingFileHandler:
    """Daily rotated file handler keeping 30 days of history"""
    handler = TimedRotatingFileHandler(
        filename=path,
        when='midnight',
        interval=1,
        backupCount=30,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(instance_path: Path, console_level: str = "INFO") -> None:
    """Setup logging configuration for Vessel backend

    Creates three log files in the instance logs directory:
    - debug.log: DEBUG+ logs from vessel.* modules only (PTY traffic lands here)
    - info.log: INFO+ logs from all modules
    - error.log: ERROR+ logs from all modules

    Console output goes to stderr at ``console_level``.

    Args:
        instance_path: Path to the Vessel instance directory
        console_level: Level name for the console handler (from [logging] level)
    """
    logs_dir = instance_path / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicate logs
    root_logger.handlers.clear()

    debug_handler = _rotating_handler(logs_dir / "debug.log", logging.DEBUG, formatter)
    debug_handler.addFilter(VesselOnlyFilter())
    root_logger.addHandler(debug_handler)

    root_logger.addHandler(_rotating_handler(logs_dir / "info.log", logging.INFO, formatter))
    root_logger.addHandler(_rotating_handler(logs_dir / "error.log", logging.ERROR, formatter))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.getLevelName(console_level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized for instance: {instance_path}")
