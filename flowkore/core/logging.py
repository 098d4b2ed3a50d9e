"""Logger registry for the flowkore package."""

import logging
from typing import Tuple

ROOT_LOGGER = 'flowkore'

# One logger per layer; every module logs through one of these
LOGGER_NAMES: Tuple[str, ...] = (
    ROOT_LOGGER,
    'flowkore.api',
    'flowkore.auth',
    'flowkore.client',
    'flowkore.realtime',
    'flowkore.storage',
)

DEFAULT_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def get_logger(name: str) -> logging.Logger:
    """Logger ``name`` inside the flowkore hierarchy.

    Names outside it are nested under ``flowkore.`` so host applications
    can silence the whole client through one logger. Until the host
    configures logging, records below WARNING are dropped.

    Args:
        name: Layer name, e.g. 'flowkore.auth' or 'auth'
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + '.'):
        name = f"{ROOT_LOGGER}.{name}"

    logger = logging.getLogger(name)
    logger.propagate = True
    if not logging.getLogger().handlers:
        logger.setLevel(logging.WARNING)
    return logger


def setup_logging(level: int = logging.INFO) -> None:
    """
    Set ``level`` on every flowkore logger.

    Installs a basic stderr handler when the host has not configured the
    root logger yet.
    """
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = True

    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=DEFAULT_FORMAT)
