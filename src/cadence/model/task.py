# SPDX-License-Identifier: MIT

from enum import StrEnum
from typing import Optional, TypedDict

import pendulum

from cadence.model.entity_id import EntityId


class TaskStatus(StrEnum):
    BACKLOG = "BACKLOG"
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    IN_REVIEW = "IN_REVIEW"
    READY = "READY"
    DONE = "DONE"
    BLOCKED = "BLOCKED"
    CANCELLED = "CANCELLED"
    DEFERRED = "DEFERRED"


class TaskPriority(StrEnum):
    LOWEST = "LOWEST"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    HIGHEST = "HIGHEST"
    URGENT = "URGENT"


# A predecessor in one of these states no longer holds its successors back
RESOLVED_STATUSES = frozenset({TaskStatus.DONE, TaskStatus.CANCELLED})

# Targets that mean work on the task has begun or finished
ACTIVE_WORK_STATUSES = frozenset(
    {TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW, TaskStatus.DONE}
)

TERMINAL_STATUSES = RESOLVED_STATUSES


class Task(TypedDict):
    id: Optional[EntityId]
    entity_type: str
    workspace_id: str
    title: str
    status: TaskStatus
    priority: TaskPriority
    project_id: Optional[str]
    board_id: Optional[str]
    assignee_ids: list[str]
    start_date: Optional[pendulum.DateTime]
    due_date: Optional[pendulum.DateTime]
    duration_estimate: Optional[int]  # minutes of working time
    start_pinned: bool
    explicit_start: Optional[pendulum.DateTime]  # user-entered, never rescheduled
    parent_id: Optional[EntityId]
    is_subtask: bool
    sprint_id: Optional[str]
    created: pendulum.DateTime
    updated: pendulum.DateTime
