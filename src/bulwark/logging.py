import logging
import os

# Violations are reported at WARNING, so that is the floor for library
# modules. The CLI and the demo narrate what they do at INFO.
DEFAULT_LEVELS = {
    "bulwark.cli": logging.INFO,
    "bulwark.demo": logging.INFO,
}


def resolve_level(name: str) -> int:
    """Level for logger ``name``: BULWARK_LOG_LEVEL if valid, else the module default."""
    default_level = DEFAULT_LEVELS.get(name, logging.WARNING)

    level_name = os.getenv("BULWARK_LOG_LEVEL")
    if not level_name:
        return default_level

    level = logging.getLevelName(level_name.strip().upper())
    return level if isinstance(level, int) else default_level


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    logger.setLevel(resolve_level(name))
    return logger
