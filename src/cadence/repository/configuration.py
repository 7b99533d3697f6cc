# SPDX-License-Identifier: MIT

from copy import deepcopy
from typing import Optional

from yaml import dump, load

try:
    from yaml import CDumper as Dumper
    from yaml import CLoader as Loader  # noqa: F401
except ImportError:
    from yaml import Dumper, Loader  # type: ignore[assignment]

from cadence import configuration


class ConfigurationRepository:
    def __init__(self) -> None:
        self._config: Optional[configuration.Configuration] = None
        self.is_dirty = False

    @property
    def config(self) -> configuration.Configuration:
        if self._config is None:
            self.__load_data()
        if self._config is None:
            raise ValueError()
        return self._config

    def __load_data(self) -> None:
        if configuration.APP_CONFIG_PATH.is_file():
            self._config = load(
                configuration.APP_CONFIG_PATH.read_text(), Loader=Loader
            )
        if self._config is None:
            self._config = configuration.get_default_configuration()
            self.is_dirty = True
            return

        # Migration: add any field missing from older config files
        for key, value in configuration.get_default_configuration().items():
            if key not in self._config:
                self._config[key] = value  # type: ignore[literal-required]
                self.is_dirty = True

    def __save_data(self, config: configuration.Configuration) -> None:
        configuration.CONFIG_PATH.mkdir(parents=True, exist_ok=True)
        configuration.APP_CONFIG_PATH.write_text(dump(dict(config), Dumper=Dumper))

    def flush(self) -> bool:
        if self._config is not None and self.is_dirty:
            self.__save_data(self._config)
            self.is_dirty = False
            return True
        return False

    def get_config(self) -> configuration.Configuration:
        return deepcopy(self.config)

    def update_config(
        self,
        timezone: Optional[str] = None,
        working_days: Optional[list[int]] = None,
        work_day_start: Optional[str] = None,
        work_day_end: Optional[str] = None,
        holidays: Optional[list[str]] = None,
        remove_holidays: bool = False,
        user_id: Optional[str] = None,
        workspace_id: Optional[str] = None,
        data_path: Optional[str] = None,
        remove_data_path: bool = False,
        log_level: Optional[str] = None,
    ) -> None:
        self.is_dirty = True

        if timezone is not None:
            self.config["timezone"] = timezone
        if working_days is not None:
            self.config["working_days"] = sorted(set(working_days))
        if work_day_start is not None:
            self.config["work_day_start"] = work_day_start
        if work_day_end is not None:
            self.config["work_day_end"] = work_day_end
        if holidays is not None:
            self.config["holidays"] = holidays
        if remove_holidays:
            self.config["holidays"] = None
        if user_id is not None:
            self.config["user_id"] = user_id
        if workspace_id is not None:
            self.config["workspace_id"] = workspace_id
        if data_path is not None:
            self.config["data_path"] = data_path
        if remove_data_path:
            self.config["data_path"] = None
        if log_level is not None:
            self.config["log_level"] = log_level.upper()


CONFIGURATION_REPO = ConfigurationRepository()
