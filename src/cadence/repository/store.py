# SPDX-License-Identifier: MIT

from typing import Optional, Protocol

import pendulum

from cadence.model.entity_id import EntityId
from cadence.model.link import DependencyLink
from cadence.model.task import Task
from cadence.model.time_entry import TimeEntry
from cadence.repository.link import LINK_REPO, LinkRepository
from cadence.repository.task import TASK_REPO, TaskRepository
from cadence.repository.time_entry import TIME_ENTRY_REPO, TimeEntryRepository


class Store(Protocol):
    """
    Persistence collaborator consumed by the scheduler and the time tracker.

    Every call is atomic for a single entity. Sequencing of multi-entity
    changes is the caller's job.
    """

    def load_task(self, id: EntityId) -> Task: ...

    def load_tasks(self, workspace_id: str) -> list[Task]: ...

    def save_new_task(self, task: Task) -> EntityId: ...

    def save_task(self, task: Task) -> None: ...

    def save_tasks(self, tasks: list[Task]) -> None: ...

    def load_links(self, workspace_id: str) -> list[DependencyLink]: ...

    def load_links_for_task(self, task_id: EntityId) -> list[DependencyLink]: ...

    def save_link(self, link: DependencyLink) -> EntityId: ...

    def delete_link(self, source_task_id: EntityId, target_task_id: EntityId) -> None: ...

    def load_entry(self, id: EntityId) -> TimeEntry: ...

    def load_entries(
        self,
        workspace_id: str,
        start: Optional[pendulum.DateTime] = None,
        end: Optional[pendulum.DateTime] = None,
    ) -> list[TimeEntry]: ...

    def load_entries_for_user(
        self,
        user_id: str,
        start: Optional[pendulum.DateTime] = None,
        end: Optional[pendulum.DateTime] = None,
    ) -> list[TimeEntry]: ...

    def load_running_entry(self, user_id: str) -> Optional[TimeEntry]: ...

    def insert_running_entry(self, entry: TimeEntry) -> Optional[EntityId]: ...

    def save_new_entry(self, entry: TimeEntry) -> EntityId: ...

    def save_entry(self, entry: TimeEntry) -> None: ...

    def delete_entry(self, id: EntityId) -> None: ...


class RepositoryStore:
    """Store backed by the YAML repositories."""

    def __init__(
        self,
        task_repo: TaskRepository = TASK_REPO,
        link_repo: LinkRepository = LINK_REPO,
        time_entry_repo: TimeEntryRepository = TIME_ENTRY_REPO,
    ) -> None:
        self.task_repo = task_repo
        self.link_repo = link_repo
        self.time_entry_repo = time_entry_repo

    def load_task(self, id: EntityId) -> Task:
        return self.task_repo.get_task(id)

    def load_tasks(self, workspace_id: str) -> list[Task]:
        return self.task_repo.get_all_tasks(workspace_id)

    def save_new_task(self, task: Task) -> EntityId:
        return self.task_repo.save_new_task(task)

    def save_task(self, task: Task) -> None:
        self.task_repo.save_task(task)

    def save_tasks(self, tasks: list[Task]) -> None:
        self.task_repo.save_tasks(tasks)

    def load_links(self, workspace_id: str) -> list[DependencyLink]:
        return self.link_repo.get_all_links(workspace_id)

    def load_links_for_task(self, task_id: EntityId) -> list[DependencyLink]:
        return self.link_repo.get_links_for_task(task_id)

    def save_link(self, link: DependencyLink) -> EntityId:
        return self.link_repo.save_link(link)

    def delete_link(self, source_task_id: EntityId, target_task_id: EntityId) -> None:
        self.link_repo.delete_link(source_task_id, target_task_id)

    def load_entry(self, id: EntityId) -> TimeEntry:
        return self.time_entry_repo.get_time_entry(id)

    def load_entries(
        self,
        workspace_id: str,
        start: Optional[pendulum.DateTime] = None,
        end: Optional[pendulum.DateTime] = None,
    ) -> list[TimeEntry]:
        return self.time_entry_repo.get_time_entries_for_workspace(
            workspace_id, start, end
        )

    def load_entries_for_user(
        self,
        user_id: str,
        start: Optional[pendulum.DateTime] = None,
        end: Optional[pendulum.DateTime] = None,
    ) -> list[TimeEntry]:
        return self.time_entry_repo.get_time_entries_for_user(user_id, start, end)

    def load_running_entry(self, user_id: str) -> Optional[TimeEntry]:
        return self.time_entry_repo.get_running_time_entry(user_id)

    def insert_running_entry(self, entry: TimeEntry) -> Optional[EntityId]:
        return self.time_entry_repo.insert_running_time_entry(entry)

    def save_new_entry(self, entry: TimeEntry) -> EntityId:
        return self.time_entry_repo.save_new_time_entry(entry)

    def save_entry(self, entry: TimeEntry) -> None:
        self.time_entry_repo.save_time_entry(entry)

    def delete_entry(self, id: EntityId) -> None:
        self.time_entry_repo.delete_time_entry(id)
