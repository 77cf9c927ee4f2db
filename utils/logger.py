# utils/logger.py
import logging
import sys

from config import CONFIG

_logger = logging.getLogger("rankmaster")
if not _logger.handlers:
    _logger.setLevel(CONFIG.LOG_LEVEL.upper())
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    _logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    if name:
        return _logger.getChild(name)
    return _logger
