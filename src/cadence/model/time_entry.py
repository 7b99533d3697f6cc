# SPDX-License-Identifier: MIT

from typing import Optional, TypedDict

import pendulum

from cadence.model.entity_id import EntityId


class TimeEntry(TypedDict):
    id: Optional[EntityId]
    entity_type: str
    user_id: str
    workspace_id: str
    project_id: Optional[str]
    task_id: Optional[EntityId]
    description: str
    start_time: pendulum.DateTime
    end_time: Optional[pendulum.DateTime]  # None while the timer runs
    duration: int  # seconds, 0 while running
    billable: bool
    tags: list[str]
    created: pendulum.DateTime
    updated: pendulum.DateTime


class TimeEntryPatch(TypedDict, total=False):
    description: str
    start_time: pendulum.DateTime
    end_time: pendulum.DateTime
    duration: int
    billable: bool
    tags: list[str]
    project_id: Optional[str]
    task_id: Optional[EntityId]
