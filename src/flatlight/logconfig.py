"""Logging setup for scripts and interactive sessions.

Library modules only create loggers with ``logging.getLogger(__name__)``;
handlers are attached here, by the application.
"""

import logging

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    name: str = "flatlight",
    level: int = logging.INFO,
    log_format: str = DEFAULT_FORMAT,
    log_file: str | None = None,
) -> logging.Logger:
    """Attach a stream handler (and optionally a file handler) to ``name``.

    Calling it again replaces the handlers installed previously.

    Args:
        name: Logger name; "flatlight" covers every module of the package.
        level: Logging level.
        log_format: Format string for all handlers.
        log_file: Optional path of a log file to write as well.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(log_format)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False

    return logger
