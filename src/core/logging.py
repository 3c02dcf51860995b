"""
Logging setup for the catalog.

Modules log through `logging.getLogger(__name__)`; this only installs a
single stream handler on the package root logger ("src").
"""

import logging

PACKAGE_LOGGER = "src"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DEFAULT_LOG_LEVEL = "INFO"


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """
    Configure the package logger (idempotent).

    Args:
        level: level name ("DEBUG", "info", ...) or number; unknown names fall
            back to INFO

    Returns:
        the package root logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolve_level(level))

    if not any(getattr(h, "_catalog_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._catalog_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger


def resolve_level(level: str | int | None) -> int:
    """Level name or number -> logging level number."""
    if isinstance(level, int):
        return level
    name = (level or DEFAULT_LOG_LEVEL).strip().upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO
