import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import LoggingConfig

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def setup_logging(config: LoggingConfig) -> logging.Logger:
    logger = logging.getLogger("pomoquest")
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    if not logger.handlers:
        fmt = logging.Formatter(LOG_FORMAT)

        stream = logging.StreamHandler()
        stream.setFormatter(fmt)
        logger.addHandler(stream)

        if config.file:
            path = Path(config.file).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                path,
                maxBytes=1_000_000,
                backupCount=3,
                encoding="utf-8",
            )
            handler.setFormatter(fmt)
            logger.addHandler(handler)

    return logger
