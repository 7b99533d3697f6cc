# SPDX-License-Identifier: MIT

from typing import Optional

from cadence.model.task import TaskStatus

SHORT_ID_LENGTH = 8

STATUS_COLORS: dict[TaskStatus, str] = {
    TaskStatus.BACKLOG: "grey50",
    TaskStatus.TODO: "white",
    TaskStatus.IN_PROGRESS: "deep_sky_blue1",
    TaskStatus.IN_REVIEW: "medium_purple1",
    TaskStatus.READY: "spring_green3",
    TaskStatus.DONE: "grey42",
    TaskStatus.BLOCKED: "red1",
    TaskStatus.CANCELLED: "grey42",
    TaskStatus.DEFERRED: "khaki3",
}


def short_id(id: Optional[str]) -> str:
    if id is None:
        return ""
    return id[:SHORT_ID_LENGTH]


def colored_status(status: TaskStatus) -> str:
    color = STATUS_COLORS[status]
    return f"[{color}]{status}[/{color}]"


def yes_no(value: bool) -> str:
    return "✓" if value else ""
