# config/logger.py
import logging

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'
LOG_FORMAT_TAGGED = '%(asctime)s [%(levelname)s] [{tag}] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def get_logger(name: str, tag: str = None, level: int = logging.INFO) -> logging.Logger:
    # Dedicated per-module logger so module output does not depend on the root config
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = LOG_FORMAT_TAGGED.format(tag=tag) if tag else LOG_FORMAT
        handler.setFormatter(logging.Formatter(fmt, DATE_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(level)
        logger.propagate = False  # avoid duplicate lines through the root logger
    return logger
