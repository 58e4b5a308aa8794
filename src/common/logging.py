import sys

from loguru import logger

from common.config import config


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Replace loguru's default sink with a single stderr sink."""
    logger.remove()
    logger.add(sys.stderr, format=fmt or config.log_format, level=level or config.log_level, colorize=True)


configure_logging()


def get_logger(name: str | None = None, **extra):
    """Bound logger; extra keys (e.g. provider=...) land in record["extra"]."""
    return logger.bind(name=name, **extra) if name else logger.bind(**extra)
