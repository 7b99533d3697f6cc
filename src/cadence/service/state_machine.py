# SPDX-License-Identifier: MIT

"""
Task status state machine.

BLOCKED is derived by the scheduler. It can only be entered through a
system-derived request, and a user may only leave it towards CANCELLED.
DONE and CANCELLED end the normal flow; a user may reopen them to TODO,
after which the scheduler propagates again.
"""

import logging
from typing import Iterable, Optional, cast

from cadence.error import (
    DependencyUnresolved,
    InvalidRange,
    InvalidTask,
    InvalidTransition,
    PermissionDenied,
)
from cadence.model.entity_id import EntityId
from cadence.model.event import TaskStatusChanged
from cadence.model.request import TransitionRequest
from cadence.model.task import (
    ACTIVE_WORK_STATUSES,
    RESOLVED_STATUSES,
    TERMINAL_STATUSES,
    Task,
    TaskStatus,
)
from cadence.time import now_utc

logger = logging.getLogger(__name__)


def unresolved_predecessor_ids(predecessors: Iterable[Task]) -> list[EntityId]:
    return [
        cast(EntityId, predecessor["id"])
        for predecessor in predecessors
        if predecessor["status"] not in RESOLVED_STATUSES
    ]


def transition(
    task: Task,
    target: TaskStatus,
    request: TransitionRequest,
    predecessors: Iterable[Task],
) -> Optional[TaskStatusChanged]:
    """
    Validate moving task to target.

    Returns the TaskStatusChanged event to emit, or None when the task is
    already in the target status. The task itself is not modified.
    """
    task_id = cast(EntityId, task["id"])
    current = task["status"]
    target = TaskStatus(target)

    if target == current:
        return None

    is_system = request["kind"] == "system"

    if target == TaskStatus.BLOCKED and not is_system:
        raise InvalidTransition(task_id, current, target)

    if request["kind"] == "user":
        if not request["allowed"]:
            raise PermissionDenied(request["actor_id"], task_id, target)

        if current in TERMINAL_STATUSES and target != TaskStatus.TODO:
            raise InvalidTransition(task_id, current, target)

        unresolved = unresolved_predecessor_ids(predecessors)
        if unresolved and target in ACTIVE_WORK_STATUSES:
            raise DependencyUnresolved(task_id, target, unresolved)
        if current == TaskStatus.BLOCKED and target != TaskStatus.CANCELLED:
            if unresolved:
                raise DependencyUnresolved(task_id, target, unresolved)
            # A pinned conflict or a system block; only the scheduler lifts it
            raise InvalidTransition(task_id, current, target)

    logger.debug("Task %s may move %s -> %s", task_id, current, target)

    return {
        "event_type": "task_status_changed",
        "task_id": task_id,
        "from_status": current,
        "to_status": target,
        "actor_id": request["actor_id"] if request["kind"] == "user" else None,
        "system": is_system,
        "occurred": now_utc(),
    }


def available_transitions(
    task: Task, request: TransitionRequest, predecessors: Iterable[Task]
) -> list[TaskStatus]:
    predecessors = list(predecessors)
    available = []
    for status in TaskStatus:
        if status == task["status"]:
            continue
        try:
            transition(task, status, request, predecessors)
        except (InvalidTransition, PermissionDenied, DependencyUnresolved):
            continue
        available.append(status)
    return available


def validate_task(task: Task) -> None:
    if not task["title"]:
        raise InvalidTask("A task needs a title")
    if task["is_subtask"]:
        if task["parent_id"] is None:
            raise InvalidTask("A subtask needs a parent task")
        if task["parent_id"] == task["id"]:
            raise InvalidTask("A task cannot be its own parent")
    if (
        task["start_date"] is not None
        and task["due_date"] is not None
        and task["start_date"] > task["due_date"]
    ):
        raise InvalidRange(
            f"Task '{task['id']}' starts after it is due "
            f"({task['start_date'].isoformat()} > {task['due_date'].isoformat()})"
        )
    if task["duration_estimate"] is not None and task["duration_estimate"] < 0:
        raise InvalidRange("A duration estimate cannot be negative")
    if task["start_pinned"] and task["start_date"] is None:
        raise InvalidTask("Only a task with a start date can be pinned")
