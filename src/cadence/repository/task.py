# SPDX-License-Identifier: MIT

from copy import deepcopy
from typing import Any, Optional, cast

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
from cadence.model.task import Task, TaskPriority, TaskStatus


class TaskRepository:
    def __init__(self) -> None:
        self._tasks: Optional[dict[EntityId, Task]] = None
        self.is_dirty = False
        self._dirty_ids: set[str] = set()
        self._deleted_ids: set[str] = set()

    @property
    def tasks(self) -> dict[EntityId, Task]:
        if self._tasks is None:
            self.__load_data()
        if self._tasks is None:
            raise ValueError()
        return self._tasks

    def __load_data(self) -> None:
        self._tasks = {}
        if not configuration.DATA_TASKS_DIR.is_dir():
            return
        for file_path in configuration.DATA_TASKS_DIR.iterdir():
            if file_path.suffix != ".yaml" or file_path.name == ".gitkeep":
                continue
            raw_task = load(file_path.read_text(), Loader=Loader)
            if raw_task is not None:
                task = self.__convert_task_for_deserialization(raw_task)
                self._tasks[cast(EntityId, task["id"])] = task

    def __save_data(self) -> None:
        configuration.DATA_TASKS_DIR.mkdir(parents=True, exist_ok=True)

        # Write dirty entities
        for id in self._dirty_ids:
            if id not in self.tasks:
                continue
            serializable_task = self.__convert_task_for_serialization(
                deepcopy(self.tasks[id])
            )
            file_path = configuration.DATA_TASKS_DIR / f"{id}.yaml"
            file_path.write_text(dump(serializable_task, Dumper=Dumper))

        # Remove hard-deleted entity files
        for entity_id in self._deleted_ids:
            file_path = configuration.DATA_TASKS_DIR / f"{entity_id}.yaml"
            if file_path.exists():
                file_path.unlink()

        self._dirty_ids.clear()
        self._deleted_ids.clear()

    def flush(self) -> bool:
        if self._tasks is not None and self.is_dirty:
            self.__save_data()
            self.is_dirty = False
            return True
        return False

    def __convert_task_for_serialization(self, task: Task) -> dict[str, Any]:
        serializable_task = cast(dict[str, Any], task)
        serializable_task["status"] = str(serializable_task["status"])
        serializable_task["priority"] = str(serializable_task["priority"])
        serializable_task["start_date"] = time.datetime_to_iso_str_optional(
            serializable_task["start_date"]
        )
        serializable_task["due_date"] = time.datetime_to_iso_str_optional(
            serializable_task["due_date"]
        )
        serializable_task["explicit_start"] = time.datetime_to_iso_str_optional(
            serializable_task["explicit_start"]
        )
        serializable_task["created"] = time.datetime_to_iso_str(
            serializable_task["created"]
        )
        serializable_task["updated"] = time.datetime_to_iso_str(
            serializable_task["updated"]
        )
        return serializable_task

    def __convert_task_for_deserialization(self, task: dict[str, Any]) -> Task:
        deserializable_task = task
        deserializable_task["status"] = TaskStatus(deserializable_task["status"])
        deserializable_task["priority"] = TaskPriority(
            deserializable_task["priority"]
        )
        deserializable_task["start_date"] = time.datetime_from_str_optional(
            deserializable_task["start_date"]
        )
        deserializable_task["due_date"] = time.datetime_from_str_optional(
            deserializable_task["due_date"]
        )
        deserializable_task["explicit_start"] = time.datetime_from_str_optional(
            deserializable_task.get("explicit_start")
        )
        deserializable_task["created"] = time.datetime_from_str(
            deserializable_task["created"]
        )
        deserializable_task["updated"] = time.datetime_from_str(
            deserializable_task["updated"]
        )
        return cast(Task, deserializable_task)

    def save_new_task(self, task: Task) -> EntityId:
        self.is_dirty = True

        task["id"] = generate_entity_id()
        task["assignee_ids"] = list(dict.fromkeys(task["assignee_ids"]))

        self.tasks[task["id"]] = deepcopy(task)
        self._dirty_ids.add(task["id"])

        return task["id"]

    def save_task(self, task: Task) -> None:
        if task["id"] is None:
            raise ValueError("Task must have an ID")
        self.save_tasks([task])

    def save_tasks(self, tasks: list[Task]) -> None:
        self.is_dirty = True
        now = time.now_utc()
        for task in tasks:
            task_id = cast(EntityId, task["id"])
            stored = deepcopy(task)
            stored["updated"] = now
            self.tasks[task_id] = stored
            self._dirty_ids.add(task_id)
            self._deleted_ids.discard(task_id)

    def delete_task(self, id: EntityId) -> None:
        if id not in self.tasks:
            raise EntityNotFound(EntityType.TASK, id)
        self.is_dirty = True
        del self.tasks[id]
        self._dirty_ids.discard(id)
        self._deleted_ids.add(id)

    def get_task(self, id: EntityId) -> Task:
        if id not in self.tasks:
            raise EntityNotFound(EntityType.TASK, id)
        return deepcopy(self.tasks[id])

    def get_all_tasks(self, workspace_id: Optional[str] = None) -> list[Task]:
        return [
            deepcopy(task)
            for task in self.tasks.values()
            if workspace_id is None or task["workspace_id"] == workspace_id
        ]


TASK_REPO = TaskRepository()
