# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer

from cadence.model.summary import GroupBy
from cadence.model.time_entry import TimeEntryPatch
from cadence.repository.configuration import CONFIGURATION_REPO
from cadence.service.summary import project_summary, summarize
from cadence.terminal.custom_typer import AliasedTyperGroup
from cadence.terminal.engine import (
    get_time_tracker,
    resolve_task_id,
    resolve_time_entry_id,
)
from cadence.terminal.parse import (
    parse_datetime,
    parse_duration_seconds,
    reported_errors,
)
from cadence.view import summary as summary_view
from cadence.view import time_entry as time_entry_view

app = typer.Typer(cls=AliasedTyperGroup, no_args_is_help=True)

GROUP_BY_OPTIONS = ["day", "project", "user", "task"]


@app.command("start, s")
def start(
    description: Annotated[str, typer.Argument()] = "",
    task: Annotated[Optional[str], typer.Option("--task", "-t")] = None,
    project: Annotated[Optional[str], typer.Option("--project", "-pr")] = None,
    billable: Annotated[bool, typer.Option("--billable", "-b")] = False,
    tags: Annotated[
        Optional[list[str]],
        typer.Option("--tag", "-tg", help="accepts multiple tag options"),
    ] = None,
    at: Annotated[
        Optional[str],
        typer.Option("--at", help="start earlier than now, e.g. 08:30"),
    ] = None,
) -> None:
    """Start a timer for the configured user."""
    config = CONFIGURATION_REPO.get_config()

    with reported_errors():
        task_id = resolve_task_id(task) if task is not None else None
        entry = get_time_tracker().start_timer(
            config["user_id"],
            config["workspace_id"],
            description,
            project_id=project,
            task_id=task_id,
            billable=billable,
            tags=tags,
            start_time=parse_datetime(at, config["timezone"]),
        )

    time_entry_view.single_time_entry_view(
        config["workspace_id"], entry, config["timezone"]
    )


@app.command("stop, st")
def stop() -> None:
    """Stop the running timer."""
    config = CONFIGURATION_REPO.get_config()

    with reported_errors():
        entry = get_time_tracker().stop_timer(config["user_id"])

    time_entry_view.single_time_entry_view(
        config["workspace_id"], entry, config["timezone"]
    )


@app.command("add, a", no_args_is_help=True)
def add(
    start: Annotated[str, typer.Argument(help="YYYY-MM-DD HH:mm or HH:mm")],
    end: Annotated[str, typer.Argument(help="YYYY-MM-DD HH:mm or HH:mm")],
    description: Annotated[str, typer.Option("--description", "-d")] = "",
    task: Annotated[Optional[str], typer.Option("--task", "-t")] = None,
    project: Annotated[Optional[str], typer.Option("--project", "-pr")] = None,
    billable: Annotated[bool, typer.Option("--billable", "-b")] = False,
    tags: Annotated[
        Optional[list[str]],
        typer.Option("--tag", "-tg", help="accepts multiple tag options"),
    ] = None,
) -> None:
    """Log a finished piece of work."""
    config = CONFIGURATION_REPO.get_config()
    timezone = config["timezone"]
    start_time = parse_datetime(start, timezone)
    end_time = parse_datetime(end, timezone)
    if start_time is None or end_time is None:
        raise typer.BadParameter("Both start and end are required")

    with reported_errors():
        task_id = resolve_task_id(task) if task is not None else None
        entry = get_time_tracker().create_manual_entry(
            config["user_id"],
            config["workspace_id"],
            start_time,
            end_time,
            description,
            project_id=project,
            task_id=task_id,
            billable=billable,
            tags=tags,
        )

    time_entry_view.single_time_entry_view(config["workspace_id"], entry, timezone)


@app.command("modify, m", no_args_is_help=True)
def modify(
    id: str,
    start: Annotated[Optional[str], typer.Option("--start", "-s")] = None,
    end: Annotated[Optional[str], typer.Option("--end", "-e")] = None,
    duration: Annotated[
        Optional[str], typer.Option("--duration", "-du", help="H:mm")
    ] = None,
    description: Annotated[Optional[str], typer.Option("--description", "-d")] = None,
    task: Annotated[Optional[str], typer.Option("--task", "-t")] = None,
    project: Annotated[Optional[str], typer.Option("--project", "-pr")] = None,
    billable: Annotated[
        Optional[bool], typer.Option("--billable/--not-billable", "-b/-nb")
    ] = None,
    tags: Annotated[
        Optional[list[str]],
        typer.Option("--tag", "-tg", help="replaces the tags of the entry"),
    ] = None,
    remove_task: Annotated[bool, typer.Option("--remove-task", "-rt")] = False,
    remove_project: Annotated[bool, typer.Option("--remove-project", "-rp")] = False,
) -> None:
    """Change a time entry of the configured user."""
    config = CONFIGURATION_REPO.get_config()
    timezone = config["timezone"]

    patch: TimeEntryPatch = {}
    start_time = parse_datetime(start, timezone)
    if start_time is not None:
        patch["start_time"] = start_time
    end_time = parse_datetime(end, timezone)
    if end_time is not None:
        patch["end_time"] = end_time
    duration_seconds = parse_duration_seconds(duration)
    if duration_seconds is not None:
        patch["duration"] = duration_seconds
    if description is not None:
        patch["description"] = description
    if billable is not None:
        patch["billable"] = billable
    if tags is not None:
        patch["tags"] = tags
    if project is not None:
        patch["project_id"] = project
    if remove_project:
        patch["project_id"] = None
    if remove_task:
        patch["task_id"] = None

    with reported_errors():
        if task is not None:
            patch["task_id"] = resolve_task_id(task)
        entry = get_time_tracker().update_entry(
            config["user_id"], resolve_time_entry_id(id), patch
        )

    time_entry_view.single_time_entry_view(config["workspace_id"], entry, timezone)


@app.command("delete, del", no_args_is_help=True)
def delete(id: str) -> None:
    """Delete a time entry of the configured user."""
    config = CONFIGURATION_REPO.get_config()

    with reported_errors():
        entry_id = resolve_time_entry_id(id)
        get_time_tracker().delete_entry(config["user_id"], entry_id)

    typer.echo(f"Deleted time entry {entry_id}")


@app.command("list, ls")
def list_entries(
    start: Annotated[
        str, typer.Option("--start", "-s", help="defaults to 7 days ago")
    ] = "-7",
    end: Annotated[str, typer.Option("--end", "-e")] = "now",
    task: Annotated[Optional[str], typer.Option("--task", "-t")] = None,
    project: Annotated[Optional[str], typer.Option("--project", "-pr")] = None,
) -> None:
    """List time entries grouped by day, newest first."""
    config = CONFIGURATION_REPO.get_config()
    timezone = config["timezone"]
    range_start = parse_datetime(start, timezone)
    range_end = parse_datetime(end, timezone)
    if range_start is None or range_end is None:
        raise typer.BadParameter("Both start and end are required")

    with reported_errors():
        task_id = resolve_task_id(task) if task is not None else None
        entries = get_time_tracker().user_entries(
            config["user_id"],
            config["workspace_id"],
            range_start,
            range_end,
            project_id=project,
            task_id=task_id,
            timezone=timezone,
        )

    time_entry_view.time_entries_view(
        config["workspace_id"], "time entries", entries, timezone
    )


@app.command("summary, su")
def summary(
    group_by: Annotated[
        str,
        typer.Option("--group-by", "-g", help="day, project, user or task"),
    ] = "day",
    start: Annotated[str, typer.Option("--start", "-s")] = "-7",
    end: Annotated[str, typer.Option("--end", "-e")] = "now",
    project: Annotated[
        Optional[str],
        typer.Option("--project", "-pr", help="per user and task totals of a project"),
    ] = None,
) -> None:
    """Sum tracked time over a range."""
    config = CONFIGURATION_REPO.get_config()
    timezone = config["timezone"]
    if group_by not in GROUP_BY_OPTIONS:
        raise typer.BadParameter(
            f"Cannot group by '{group_by}'. Valid options: {', '.join(GROUP_BY_OPTIONS)}"
        )
    range_start = parse_datetime(start, timezone)
    range_end = parse_datetime(end, timezone)

    entries = get_time_tracker().workspace_entries(
        config["workspace_id"], range_start, range_end
    )

    if project is not None:
        summary_view.project_summary_view(
            config["workspace_id"], project_summary(entries, project, timezone)
        )
        return

    summary_view.summary_view(
        config["workspace_id"],
        group_by,
        summarize(entries, group_by, timezone),  # type: ignore[arg-type]
    )
