import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

# module loggers whose state changes end up in the same file
SERVICE_LOGGERS = ("services", "database")


def setup_api_logger(log_path: Optional[str] = None, service_loggers: Iterable[str] = SERVICE_LOGGERS) -> logging.Logger:
    """Setup and return an application-wide logger for API errors.

    Creates a rotating file handler at `log_path` (defaults to ./logs/api.log)
    and attaches it to the service module loggers as well, so service state
    changes are recorded next to request failures.
    """
    if log_path is None:
        base = os.path.abspath(os.path.dirname(__file__))
        logs_dir = os.path.join(base, '..', 'logs')
        os.makedirs(logs_dir, exist_ok=True)
        log_path = os.path.join(logs_dir, 'api.log')
    else:
        os.makedirs(os.path.dirname(os.path.abspath(log_path)), exist_ok=True)

    logger = logging.getLogger('rankfeed.api')
    logger.setLevel(logging.INFO)

    # avoid adding multiple handlers if called multiple times
    if not logger.handlers:
        handler = RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=5, encoding='utf-8')
        handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s'))
        logger.addHandler(handler)

        for name in service_loggers:
            service_logger = logging.getLogger(name)
            service_logger.setLevel(logging.INFO)
            service_logger.addHandler(handler)

    return logger
