# SPDX-License-Identifier: MIT

import threading
from copy import deepcopy
from typing import Any, Optional, cast

import pendulum
from yaml import dump, load

try:
    from yaml import CDumper as Dumper
    from yaml import CLoader as Loader  # noqa: F401
except ImportError:
    from yaml import Dumper, Loader  # type: ignore[assignment]

from cadence import configuration, time
from cadence.error import EntityNotFound
from cadence.model.entity_id import EntityId, generate_entity_id
from cadence.model.entity_type import EntityType
from cadence.model.time_entry import TimeEntry


class TimeEntryRepository:
    def __init__(self) -> None:
        self._time_entries: Optional[list[TimeEntry]] = None
        self.is_dirty = False
        self._dirty_ids: set[str] = set()
        self._deleted_ids: set[str] = set()
        self._write_lock = threading.Lock()

    @property
    def time_entries(self) -> list[TimeEntry]:
        if self._time_entries is None:
            self.__load_data()
        if self._time_entries is None:
            raise ValueError()
        return self._time_entries

    def __load_data(self) -> None:
        self._time_entries = []
        if not configuration.DATA_TIME_ENTRIES_DIR.is_dir():
            return
        for file_path in configuration.DATA_TIME_ENTRIES_DIR.iterdir():
            if file_path.suffix != ".yaml" or file_path.name == ".gitkeep":
                continue
            raw_time_entry = load(file_path.read_text(), Loader=Loader)
            if raw_time_entry is not None:
                self._time_entries.append(
                    self.__convert_time_entry_for_deserialization(raw_time_entry)
                )

    def __save_data(self) -> None:
        configuration.DATA_TIME_ENTRIES_DIR.mkdir(parents=True, exist_ok=True)

        for time_entry in self.time_entries:
            if time_entry["id"] in self._dirty_ids:
                serializable_time_entry = self.__convert_time_entry_for_serialization(
                    deepcopy(time_entry)
                )
                file_path = (
                    configuration.DATA_TIME_ENTRIES_DIR / f"{time_entry['id']}.yaml"
                )
                file_path.write_text(dump(serializable_time_entry, Dumper=Dumper))

        for entity_id in self._deleted_ids:
            file_path = configuration.DATA_TIME_ENTRIES_DIR / f"{entity_id}.yaml"
            if file_path.exists():
                file_path.unlink()

        self._dirty_ids.clear()
        self._deleted_ids.clear()

    def flush(self) -> bool:
        if self._time_entries is not None and self.is_dirty:
            self.__save_data()
            self.is_dirty = False
            return True
        return False

    def __convert_time_entry_for_serialization(
        self, time_entry: TimeEntry
    ) -> dict[str, Any]:
        serializable_time_entry = cast(dict[str, Any], time_entry)
        serializable_time_entry["start_time"] = time.datetime_to_iso_str(
            serializable_time_entry["start_time"]
        )
        serializable_time_entry["end_time"] = time.datetime_to_iso_str_optional(
            serializable_time_entry["end_time"]
        )
        serializable_time_entry["created"] = time.datetime_to_iso_str(
            serializable_time_entry["created"]
        )
        serializable_time_entry["updated"] = time.datetime_to_iso_str(
            serializable_time_entry["updated"]
        )
        return serializable_time_entry

    def __convert_time_entry_for_deserialization(
        self, time_entry: dict[str, Any]
    ) -> TimeEntry:
        deserializable_time_entry = time_entry
        deserializable_time_entry["start_time"] = time.datetime_from_str(
            deserializable_time_entry["start_time"]
        )
        deserializable_time_entry["end_time"] = time.datetime_from_str_optional(
            deserializable_time_entry["end_time"]
        )
        deserializable_time_entry["created"] = time.datetime_from_str(
            deserializable_time_entry["created"]
        )
        deserializable_time_entry["updated"] = time.datetime_from_str(
            deserializable_time_entry["updated"]
        )
        return cast(TimeEntry, deserializable_time_entry)

    def __index_of(self, id: EntityId) -> int:
        for index, time_entry in enumerate(self.time_entries):
            if time_entry["id"] == id:
                return index
        raise EntityNotFound(EntityType.TIME_ENTRY, id)

    def __append(self, time_entry: TimeEntry) -> EntityId:
        self.is_dirty = True
        time_entry["id"] = generate_entity_id()
        time_entry["tags"] = list(dict.fromkeys(time_entry["tags"]))
        self.time_entries.append(deepcopy(time_entry))
        self._dirty_ids.add(time_entry["id"])
        return time_entry["id"]

    def save_new_time_entry(self, time_entry: TimeEntry) -> EntityId:
        with self._write_lock:
            return self.__append(time_entry)

    def insert_running_time_entry(self, time_entry: TimeEntry) -> Optional[EntityId]:
        """
        Conditionally insert a running entry.

        The check for an existing open entry of the same user and the insert
        happen under one lock, so two concurrent starts for one user can never
        both succeed. Returns None when the user already has an open entry.
        """
        with self._write_lock:
            for existing in self.time_entries:
                if (
                    existing["user_id"] == time_entry["user_id"]
                    and existing["end_time"] is None
                ):
                    return None
            return self.__append(time_entry)

    def save_time_entry(self, time_entry: TimeEntry) -> None:
        with self._write_lock:
            index = self.__index_of(cast(EntityId, time_entry["id"]))
            self.is_dirty = True
            stored = deepcopy(time_entry)
            stored["tags"] = list(dict.fromkeys(stored["tags"]))
            stored["updated"] = time.now_utc()
            self.time_entries[index] = stored
            self._dirty_ids.add(cast(EntityId, stored["id"]))

    def delete_time_entry(self, id: EntityId) -> None:
        with self._write_lock:
            index = self.__index_of(id)
            self.is_dirty = True
            del self.time_entries[index]
            self._dirty_ids.discard(id)
            self._deleted_ids.add(id)

    def get_time_entry(self, id: EntityId) -> TimeEntry:
        return deepcopy(self.time_entries[self.__index_of(id)])

    def get_running_time_entry(self, user_id: str) -> Optional[TimeEntry]:
        for time_entry in self.time_entries:
            if time_entry["user_id"] == user_id and time_entry["end_time"] is None:
                return deepcopy(time_entry)
        return None

    def get_time_entries_for_user(
        self,
        user_id: str,
        start: Optional[pendulum.DateTime] = None,
        end: Optional[pendulum.DateTime] = None,
    ) -> list[TimeEntry]:
        """Entries of a user whose start time lies in [start, end]."""
        return [
            deepcopy(time_entry)
            for time_entry in self.time_entries
            if time_entry["user_id"] == user_id
            and (start is None or time_entry["start_time"] >= start)
            and (end is None or time_entry["start_time"] <= end)
        ]

    def get_time_entries_for_workspace(
        self,
        workspace_id: str,
        start: Optional[pendulum.DateTime] = None,
        end: Optional[pendulum.DateTime] = None,
    ) -> list[TimeEntry]:
        return [
            deepcopy(time_entry)
            for time_entry in self.time_entries
            if time_entry["workspace_id"] == workspace_id
            and (start is None or time_entry["start_time"] >= start)
            and (end is None or time_entry["start_time"] <= end)
        ]

    def get_all_time_entries(self) -> list[TimeEntry]:
        return deepcopy(self.time_entries)


TIME_ENTRY_REPO = TimeEntryRepository()
