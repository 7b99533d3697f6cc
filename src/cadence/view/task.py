# SPDX-License-Identifier: MIT

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from cadence.model.entity_id import EntityId
from cadence.model.link import LinkType
from cadence.model.task import Task, TaskStatus
from cadence.time import datetime_to_display_str_optional, minutes_to_str_optional
from cadence.view.header import header
from cadence.view.util import colored_status, short_id, yes_no


def tasks_view(
    workspace_id: str,
    report_name: str,
    tasks: list[Task],
    timezone: str,
    columns: list[str] = [
        "id",
        "status",
        "priority",
        "title",
        "start",
        "due",
        "estimate",
        "pinned",
    ],
) -> None:
    header(workspace_id, report_name)

    tasks_table = Table(box=box.SIMPLE)
    for column in columns:
        tasks_table.add_column(column)

    for task in tasks:
        row = []
        for column in columns:
            column_value = ""
            if column == "id":
                column_value = short_id(task["id"])
            elif column == "status":
                column_value = colored_status(task["status"])
            elif column == "priority":
                column_value = str(task["priority"])
            elif column == "title":
                column_value = task["title"]
            elif column == "start":
                column_value = (
                    datetime_to_display_str_optional(task["start_date"], timezone) or ""
                )
            elif column == "due":
                column_value = (
                    datetime_to_display_str_optional(task["due_date"], timezone) or ""
                )
            elif column == "estimate":
                column_value = minutes_to_str_optional(task["duration_estimate"]) or ""
            elif column == "pinned":
                column_value = yes_no(task["start_pinned"])
            elif column == "project":
                column_value = task["project_id"] or ""
            elif column == "assignees":
                column_value = ", ".join(task["assignee_ids"])
            row.append(column_value)
        tasks_table.add_row(*row)

    console = Console()
    console.print(tasks_table)


def single_task_view(
    workspace_id: str,
    task: Task,
    timezone: str,
    predecessors: list[tuple[Task, LinkType]] = [],
    transitions: list[TaskStatus] = [],
) -> None:
    header(workspace_id, "task")

    task_table = Table(box=box.SIMPLE)
    task_table.add_column("property")
    task_table.add_column("value")

    task_table.add_row("id", task["id"] or "")
    task_table.add_row("title", task["title"])
    task_table.add_row("status", colored_status(task["status"]))
    task_table.add_row("priority", str(task["priority"]))
    task_table.add_row("project", task["project_id"] or "")
    task_table.add_row("board", task["board_id"] or "")
    task_table.add_row("sprint", task["sprint_id"] or "")
    task_table.add_row("assignees", ", ".join(task["assignee_ids"]))
    task_table.add_row("parent", short_id(task["parent_id"]))
    task_table.add_row(
        "start", datetime_to_display_str_optional(task["start_date"], timezone)
    )
    task_table.add_row("due", datetime_to_display_str_optional(task["due_date"], timezone))
    task_table.add_row("estimate", minutes_to_str_optional(task["duration_estimate"]))
    task_table.add_row("pinned", yes_no(task["start_pinned"]))
    task_table.add_row(
        "explicit start",
        datetime_to_display_str_optional(task["explicit_start"], timezone),
    )
    task_table.add_row(
        "updated", datetime_to_display_str_optional(task["updated"], timezone)
    )
    if len(predecessors) > 0:
        task_table.add_row(
            "depends on",
            "\n".join(
                f"{short_id(predecessor['id'])} {link_type} "
                f"{colored_status(predecessor['status'])} {predecessor['title']}"
                for predecessor, link_type in predecessors
            ),
        )
    if len(transitions) > 0:
        task_table.add_row("can move to", ", ".join(transitions))

    console = Console()
    console.print(task_table)


def schedule_view(
    workspace_id: str,
    order: list[Task],
    timezone: str,
    working_minutes: dict[EntityId, Optional[int]] = {},
) -> None:
    header(workspace_id, "schedule")

    schedule_table = Table(box=box.SIMPLE)
    columns = ["id", "status", "title", "start", "due", "estimate", "work", "pinned"]
    for column in columns:
        schedule_table.add_column(column)

    for task in order:
        schedule_table.add_row(
            short_id(task["id"]),
            colored_status(task["status"]),
            task["title"],
            datetime_to_display_str_optional(task["start_date"], timezone) or "",
            datetime_to_display_str_optional(task["due_date"], timezone) or "",
            minutes_to_str_optional(task["duration_estimate"]) or "",
            minutes_to_str_optional(working_minutes.get(task["id"] or "")) or "",
            yes_no(task["start_pinned"]),
        )

    console = Console()
    console.print(schedule_table)
