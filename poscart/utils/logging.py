# poscart/utils/logging.py
import logging

from poscart.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_configured = False


def _configure():
    global _configured
    if _configured:
        return
    logging.basicConfig(level=LOG_LEVEL, format=_FORMAT)
    # SQL echo is noise at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    _configure()
    return logging.getLogger(name)
