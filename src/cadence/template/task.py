# SPDX-License-Identifier: MIT

from cadence.model.entity_type import EntityType
from cadence.model.task import Task, TaskPriority, TaskStatus
from cadence.time import now_utc


def get_task_template() -> Task:
    now = now_utc()
    return {
        "id": None,
        "entity_type": EntityType.TASK,
        "workspace_id": "default",
        "title": "",
        "status": TaskStatus.TODO,
        "priority": TaskPriority.MEDIUM,
        "project_id": None,
        "board_id": None,
        "assignee_ids": [],
        "start_date": None,
        "due_date": None,
        "duration_estimate": None,
        "start_pinned": False,
        "explicit_start": None,
        "parent_id": None,
        "is_subtask": False,
        "sprint_id": None,
        "created": now,
        "updated": now,
    }
