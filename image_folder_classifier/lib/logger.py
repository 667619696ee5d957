import logging
from typing import Union

PACKAGE_LOGGER = "image_folder_classifier"


def setup_logger(name: str, level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Set up a logger with the specified name and logging level."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    # Only the first call for a name attaches a handler
    if not logger.handlers:
        logger.addHandler(ch)

    return logger


def set_log_level(level: Union[int, str]) -> None:
    """Change the level of every logger created under the package namespace."""
    for name, logger in logging.root.manager.loggerDict.items():
        if not isinstance(logger, logging.Logger):
            continue
        if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
            continue
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
