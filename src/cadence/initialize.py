# SPDX-License-Identifier: MIT

import logging

from rich.logging import RichHandler

from cadence import configuration
from cadence.repository.configuration import CONFIGURATION_REPO

LOG_FORMAT = "%(name)s: %(message)s"


def initialize() -> None:
    configuration.CONFIG_PATH.mkdir(parents=True, exist_ok=True)
    configuration.load_data_path_configuration()
    configuration.DATA_PATH.mkdir(parents=True, exist_ok=True)

    __ensure_data_dirs()

    config = CONFIGURATION_REPO.get_config()
    configure_logging(config["log_level"])


def configure_logging(level: str) -> None:
    """Send cadence log records to stderr through rich."""
    handler = RichHandler(show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger("cadence")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False


def set_verbose() -> None:
    logger = logging.getLogger("cadence")
    if logger.getEffectiveLevel() > logging.INFO:
        logger.setLevel(logging.INFO)


def __ensure_data_dirs() -> None:
    # One file per entity under each directory
    for directory in (
        configuration.DATA_TASKS_DIR,
        configuration.DATA_LINKS_DIR,
        configuration.DATA_TIME_ENTRIES_DIR,
    ):
        if not directory.is_dir():
            directory.mkdir(parents=True, exist_ok=True)
            (directory / ".gitkeep").touch()
