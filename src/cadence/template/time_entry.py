# SPDX-License-Identifier: MIT

import pendulum

from cadence.model.entity_type import EntityType
from cadence.model.time_entry import TimeEntry
from cadence.time import now_utc


def get_time_entry_template(
    user_id: str, workspace_id: str, start_time: pendulum.DateTime
) -> TimeEntry:
    now = now_utc()
    return {
        "id": None,
        "entity_type": EntityType.TIME_ENTRY,
        "user_id": user_id,
        "workspace_id": workspace_id,
        "project_id": None,
        "task_id": None,
        "description": "",
        "start_time": start_time,
        "end_time": None,
        "duration": 0,
        "billable": False,
        "tags": [],
        "created": now,
        "updated": now,
    }
