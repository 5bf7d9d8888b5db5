"""
Logging setup for the walletauth package logger.
"""

import logging

PACKAGE_LOGGER = "walletauth"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class PackageLogHandler(logging.StreamHandler):
    """Console handler installed by :func:`setup_logger`."""


def setup_logger(log_level: int, name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Configure the package logger and return it.

    Repeated calls adjust the level of the existing console handler instead of
    adding another one. Handlers attached by the application are left alone.

    Args:
        log_level: The logging level to set
        name: Logger name, the package logger by default
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    handlers = [h for h in logger.handlers if isinstance(h, PackageLogHandler)]
    if not handlers:
        handler = PackageLogHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        handlers = [handler]
    for handler in handlers:
        handler.setLevel(log_level)
    return logger
