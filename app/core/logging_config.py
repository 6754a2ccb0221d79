"""
Logging configuration for the Placement Portal API.

Console and a rotating application log for everything, plus a separate
rotating transitions log fed by the services that change application and
profile status.
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

# Loggers whose INFO records describe committed state changes
TRANSITION_LOGGERS = (
    "app.services.application_service",
    "app.services.approval_service",
    "app.services.drive_service",
)

_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _rotating_handler(path: Path, level: int, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_dir: str = "logs"):
    """
    Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for placement_portal.log and transitions.log
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt=_DATE_FORMAT
    ))

    root.addHandler(console_handler)
    root.addHandler(_rotating_handler(log_path / "placement_portal.log", level, _FILE_FORMAT))

    # Transitions are always recorded at INFO, whatever the global level
    transitions_handler = _rotating_handler(
        log_path / "transitions.log",
        logging.INFO,
        "%(asctime)s - %(name)s - %(message)s",
    )
    for name in TRANSITION_LOGGERS:
        service_logger = logging.getLogger(name)
        for handler in list(service_logger.handlers):
            service_logger.removeHandler(handler)
            handler.close()
        service_logger.addHandler(transitions_handler)
        service_logger.setLevel(min(level, logging.INFO))

    # Set levels for third-party libraries
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def sanitize_log_data(data: dict) -> dict:
    """
    Sanitize log data to remove sensitive information.

    Nested dicts are sanitized too.
    """
    sensitive_keys = [
        "password", "token", "secret", "key", "authorization",
        "database_url"
    ]

    sanitized = {}
    for key, value in data.items():
        if any(sensitive in key.lower() for sensitive in sensitive_keys):
            sanitized[key] = "***REDACTED***"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)
        else:
            sanitized[key] = value

    return sanitized
