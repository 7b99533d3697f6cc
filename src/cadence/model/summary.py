# SPDX-License-Identifier: MIT

from typing import Literal, Optional, TypedDict

from cadence.model.time_entry import TimeEntry

GroupBy = Literal["day", "project", "user", "task"]


class Totals(TypedDict):
    total_time: int
    billable_time: int
    non_billable_time: int
    entry_count: int


class Summary(TypedDict):
    totals: Totals
    groups: dict[Optional[str], Totals]


class ProjectSummary(TypedDict):
    project_id: str
    totals: Totals
    by_user: dict[Optional[str], Totals]
    by_task: dict[Optional[str], Totals]


class UserEntries(TypedDict):
    entries: list[TimeEntry]
    total_time: int
    entries_by_day: dict[str, list[TimeEntry]]
