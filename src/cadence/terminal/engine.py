# SPDX-License-Identifier: MIT

from cadence.model.entity_id import EntityId
from cadence.repository.configuration import CONFIGURATION_REPO
from cadence.repository.store import RepositoryStore
from cadence.repository.task import TASK_REPO
from cadence.repository.time_entry import TIME_ENTRY_REPO
from cadence.service.calendar import WorkCalendar
from cadence.service.event import EventBus
from cadence.service.scheduler import Scheduler
from cadence.service.time_tracking import TimeTracker
from cadence.terminal.parse import resolve_id

EVENT_BUS = EventBus()


def get_scheduler() -> Scheduler:
    config = CONFIGURATION_REPO.get_config()
    return Scheduler(
        config["workspace_id"],
        RepositoryStore(),
        WorkCalendar.from_configuration(config),
        EVENT_BUS,
    )


def get_time_tracker() -> TimeTracker:
    return TimeTracker(RepositoryStore(), EVENT_BUS)


def resolve_task_id(prefix: str) -> EntityId:
    workspace_id = CONFIGURATION_REPO.get_config()["workspace_id"]
    return resolve_id(
        prefix,
        (str(task["id"]) for task in TASK_REPO.get_all_tasks(workspace_id)),
        "task",
    )


def resolve_time_entry_id(prefix: str) -> EntityId:
    user_id = CONFIGURATION_REPO.get_config()["user_id"]
    return resolve_id(
        prefix,
        (
            str(entry["id"])
            for entry in TIME_ENTRY_REPO.get_time_entries_for_user(user_id)
        ),
        "time entry",
    )
