# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import Optional, TypedDict

from yaml import load

try:
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Loader  # type: ignore[assignment]
import platformdirs

APP_NAME = "cadence"

CONFIG_PATH = platformdirs.user_config_path(APP_NAME)
APP_CONFIG_PATH = CONFIG_PATH / "config.yaml"

# These will be set dynamically by load_data_path_configuration()
DATA_PATH: Path = platformdirs.user_data_path(APP_NAME)
DATA_TASKS_DIR: Path = DATA_PATH / "tasks"
DATA_LINKS_DIR: Path = DATA_PATH / "links"
DATA_TIME_ENTRIES_DIR: Path = DATA_PATH / "time_entries"


class Configuration(TypedDict):
    timezone: str
    working_days: list[int]
    work_day_start: str
    work_day_end: str
    holidays: Optional[list[str]]
    user_id: str
    workspace_id: str
    data_path: Optional[str]
    log_level: str


def get_default_configuration() -> Configuration:
    return {
        "timezone": "UTC",
        "working_days": [1, 2, 3, 4, 5],
        "work_day_start": "09:00",
        "work_day_end": "17:00",
        "holidays": None,
        "user_id": "local",
        "workspace_id": "default",
        "data_path": None,
        "log_level": "WARNING",
    }


def set_data_path(data_path: Path) -> None:
    global DATA_PATH, DATA_TASKS_DIR, DATA_LINKS_DIR, DATA_TIME_ENTRIES_DIR

    DATA_PATH = data_path
    DATA_TASKS_DIR = DATA_PATH / "tasks"
    DATA_LINKS_DIR = DATA_PATH / "links"
    DATA_TIME_ENTRIES_DIR = DATA_PATH / "time_entries"


def load_data_path_configuration() -> None:
    """
    Load the configuration and set the DATA_PATH variables dynamically.

    This must be called after the config file exists and before any
    repositories load their data.
    """
    if not APP_CONFIG_PATH.is_file():
        # Config doesn't exist yet, use defaults
        return

    config: Optional[Configuration] = load(APP_CONFIG_PATH.read_text(), Loader=Loader)
    if config is None:
        return

    data_path_setting = config.get("data_path")
    if data_path_setting is not None:
        set_data_path(Path(data_path_setting))
