import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: str | int) -> int | None:
    """Map a level name or number to a logging level, or None when unknown."""
    if isinstance(level, bool):
        return None
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        return logging.getLevelNamesMapping().get(name)
    return None


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    """
    Configure the ``watchdesk`` logger with a single console handler.

    Safe to call more than once (app startup and every job run); the handler
    is only attached the first time, but every call applies the new level.
    An unrecognised level falls back to INFO with a warning.

    Args:
        level: Logging level name or number

    Returns:
        The package root logger
    """
    logger = logging.getLogger("watchdesk")
    requested = resolve_level(level)
    resolved = logging.INFO if requested is None else requested
    logger.setLevel(resolved)

    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(console_handler)

    for handler in logger.handlers:
        handler.setLevel(resolved)

    if requested is None:
        logger.warning("Unknown log level %r, using INFO", level)
    return logger
