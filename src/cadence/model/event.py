# SPDX-License-Identifier: MIT

from typing import Literal, Optional, TypedDict, Union

import pendulum

from cadence.model.entity_id import EntityId
from cadence.model.task import TaskStatus


class TaskStatusChanged(TypedDict):
    event_type: Literal["task_status_changed"]
    task_id: EntityId
    from_status: TaskStatus
    to_status: TaskStatus
    actor_id: Optional[str]  # None for system-derived changes
    system: bool
    occurred: pendulum.DateTime


class ScheduleRecalculated(TypedDict):
    event_type: Literal["schedule_recalculated"]
    workspace_id: str
    task_ids: list[EntityId]
    occurred: pendulum.DateTime


class TimeEntryClosed(TypedDict):
    event_type: Literal["time_entry_closed"]
    entry_id: EntityId
    user_id: str
    task_id: Optional[EntityId]
    duration: int
    occurred: pendulum.DateTime


DomainEvent = Union[TaskStatusChanged, ScheduleRecalculated, TimeEntryClosed]
