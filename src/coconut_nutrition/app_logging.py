"""Logging configuration helpers."""

import logging

LOGGER_NAME = "coconut_nutrition"
LOG_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"

# The enrichment loop issues one HTTP request per recipe; these libraries log
# each of them at INFO.
CHATTY_LOGGERS = ("httpx", "openai", "hpack")


def resolve_level(level: int | str) -> int:
    """Turn a level name such as ``"debug"`` into its numeric value."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.strip().upper())
    if resolved is None:
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(
    level: int | str = logging.INFO, library_level: int | str = logging.WARNING
) -> None:
    """Attach one stream handler to the package logger and quiet HTTP libraries.

    Safe to call repeatedly: levels are updated, the handler is added once.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_level(level))
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(resolve_level(library_level))
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
