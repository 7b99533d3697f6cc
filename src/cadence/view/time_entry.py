# SPDX-License-Identifier: MIT

from rich import box
from rich.console import Console
from rich.table import Table

from cadence.model.summary import UserEntries
from cadence.model.time_entry import TimeEntry
from cadence.time import (
    datetime_to_display_str,
    datetime_to_display_str_optional,
    seconds_to_str,
)
from cadence.view.header import header
from cadence.view.util import short_id, yes_no


def time_entries_view(
    workspace_id: str,
    report_name: str,
    user_entries: UserEntries,
    timezone: str,
) -> None:
    header(workspace_id, report_name)

    entries_table = Table(box=box.SIMPLE)
    for column in ["day", "id", "description", "task", "start", "end", "duration", "billable"]:
        entries_table.add_column(column)

    for day, entries in user_entries["entries_by_day"].items():
        for index, entry in enumerate(entries):
            running = entry["end_time"] is None
            entries_table.add_row(
                day if index == 0 else "",
                short_id(entry["id"]),
                entry["description"],
                short_id(entry["task_id"]),
                datetime_to_display_str(entry["start_time"], timezone),
                datetime_to_display_str_optional(entry["end_time"], timezone)
                or "[bold green]running[/bold green]",
                "" if running else seconds_to_str(entry["duration"]),
                yes_no(entry["billable"]),
            )

    entries_table.add_section()
    entries_table.add_row(
        "total", "", "", "", "", "", seconds_to_str(user_entries["total_time"]), ""
    )

    console = Console()
    console.print(entries_table)


def single_time_entry_view(workspace_id: str, entry: TimeEntry, timezone: str) -> None:
    header(workspace_id, "time entry")

    entry_table = Table(box=box.SIMPLE)
    entry_table.add_column("property")
    entry_table.add_column("value")

    entry_table.add_row("id", entry["id"] or "")
    entry_table.add_row("user", entry["user_id"])
    entry_table.add_row("description", entry["description"])
    entry_table.add_row("project", entry["project_id"] or "")
    entry_table.add_row("task", short_id(entry["task_id"]))
    entry_table.add_row("start", datetime_to_display_str(entry["start_time"], timezone))
    entry_table.add_row(
        "end", datetime_to_display_str_optional(entry["end_time"], timezone) or "running"
    )
    entry_table.add_row(
        "duration",
        "" if entry["end_time"] is None else seconds_to_str(entry["duration"]),
    )
    entry_table.add_row("billable", yes_no(entry["billable"]))
    entry_table.add_row("tags", ", ".join(entry["tags"]))

    console = Console()
    console.print(entry_table)
