# SPDX-License-Identifier: MIT

from typing import Callable, Iterable, Optional

from cadence.model.summary import GroupBy, ProjectSummary, Summary, Totals
from cadence.model.time_entry import TimeEntry
from cadence.time import datetime_to_day_key


def empty_totals() -> Totals:
    return {
        "total_time": 0,
        "billable_time": 0,
        "non_billable_time": 0,
        "entry_count": 0,
    }


def add_entry(totals: Totals, entry: TimeEntry) -> None:
    totals["total_time"] += entry["duration"]
    if entry["billable"]:
        totals["billable_time"] += entry["duration"]
    else:
        totals["non_billable_time"] += entry["duration"]
    totals["entry_count"] += 1


def group_key(group_by: GroupBy, timezone: str) -> Callable[[TimeEntry], Optional[str]]:
    if group_by == "day":
        return lambda entry: datetime_to_day_key(entry["start_time"], timezone)
    if group_by == "project":
        return lambda entry: entry["project_id"]
    if group_by == "user":
        return lambda entry: entry["user_id"]
    if group_by == "task":
        return lambda entry: entry["task_id"]
    raise ValueError(f"Cannot group time entries by '{group_by}'")


def group_sort_key(key: Optional[str]) -> tuple[bool, str]:
    # Ungrouped (None) entries go last
    return (key is None, key or "")


def summarize(
    entries: Iterable[TimeEntry], group_by: GroupBy, timezone: str = "UTC"
) -> Summary:
    """
    Sum durations of closed entries, overall and per group.

    Running entries have no duration yet and are left out. Days are the
    calendar day of the entry's start time in the given time zone.
    """
    key_of = group_key(group_by, timezone)
    totals = empty_totals()
    groups: dict[Optional[str], Totals] = {}

    for entry in entries:
        if entry["end_time"] is None:
            continue
        add_entry(totals, entry)
        key = key_of(entry)
        if key not in groups:
            groups[key] = empty_totals()
        add_entry(groups[key], entry)

    return {
        "totals": totals,
        "groups": {key: groups[key] for key in sorted(groups, key=group_sort_key)},
    }


def project_summary(
    entries: Iterable[TimeEntry], project_id: str, timezone: str = "UTC"
) -> ProjectSummary:
    project_entries = [entry for entry in entries if entry["project_id"] == project_id]
    by_user = summarize(project_entries, "user", timezone)
    by_task = summarize(project_entries, "task", timezone)
    return {
        "project_id": project_id,
        "totals": by_user["totals"],
        "by_user": by_user["groups"],
        "by_task": by_task["groups"],
    }
