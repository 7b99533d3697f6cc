# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer

from cadence.model.request import user_requested
from cadence.model.task import TaskStatus
from cadence.repository.configuration import CONFIGURATION_REPO
from cadence.repository.task import TASK_REPO
from cadence.service.state_machine import available_transitions
from cadence.template.task import get_task_template
from cadence.terminal.custom_typer import AliasedTyperGroup
from cadence.terminal.engine import get_scheduler, resolve_task_id
from cadence.terminal.parse import (
    parse_datetime,
    parse_estimate,
    parse_priority,
    parse_status,
    reported_errors,
)
from cadence.view import task as task_view

app = typer.Typer(cls=AliasedTyperGroup, no_args_is_help=True)


@app.command("add, a", no_args_is_help=True)
def add(
    title: str,
    priority: Annotated[
        str,
        typer.Option(
            "--priority",
            "-p",
            help="lowest, low, medium, high, highest, urgent",
        ),
    ] = "medium",
    status: Annotated[
        str, typer.Option("--status", "-st", help="initial status")
    ] = "todo",
    project: Annotated[Optional[str], typer.Option("--project", "-pr")] = None,
    board: Annotated[Optional[str], typer.Option("--board", "-b")] = None,
    sprint: Annotated[Optional[str], typer.Option("--sprint")] = None,
    assignees: Annotated[
        Optional[list[str]],
        typer.Option("--assignee", "-as", help="accepts multiple assignee options"),
    ] = None,
    parent: Annotated[
        Optional[str], typer.Option("--parent", help="id of the parent task")
    ] = None,
    start: Annotated[
        Optional[str],
        typer.Option(
            "--start",
            "-s",
            help="valid input: YYYY-MM-DD [HH:mm], HH:mm, today, tomorrow, day offset",
        ),
    ] = None,
    due: Annotated[Optional[str], typer.Option("--due", "-d")] = None,
    estimate: Annotated[
        Optional[str],
        typer.Option("--estimate", "-e", help="working time as H:mm"),
    ] = None,
    pin: Annotated[
        bool, typer.Option("--pin", help="never move the start date")
    ] = False,
) -> None:
    """Create a new task and schedule it."""
    config = CONFIGURATION_REPO.get_config()
    timezone = config["timezone"]

    task = get_task_template()
    task["title"] = title
    task["priority"] = parse_priority(priority)
    task["status"] = parse_status(status)
    task["project_id"] = project
    task["board_id"] = board
    task["sprint_id"] = sprint
    task["assignee_ids"] = assignees or []
    task["start_date"] = parse_datetime(start, timezone)
    task["due_date"] = parse_datetime(due, timezone)
    task["duration_estimate"] = parse_estimate(estimate)
    task["start_pinned"] = pin

    with reported_errors():
        if parent is not None:
            task["parent_id"] = resolve_task_id(parent)
            task["is_subtask"] = True
        new_task = get_scheduler().register_task(task)

    task_view.single_task_view(config["workspace_id"], new_task, timezone)


@app.command("list, ls")
def list_tasks(
    status: Annotated[
        Optional[list[str]],
        typer.Option("--status", "-st", help="accepts multiple status options"),
    ] = None,
    project: Annotated[Optional[str], typer.Option("--project", "-pr")] = None,
    assignee: Annotated[Optional[str], typer.Option("--assignee", "-as")] = None,
    all: Annotated[
        bool, typer.Option("--all", "-a", help="include done and cancelled tasks")
    ] = False,
) -> None:
    """List tasks in dependency order."""
    config = CONFIGURATION_REPO.get_config()
    statuses = [parse_status(value) for value in status] if status else None

    with reported_errors():
        order = list(get_scheduler().topological_order())

    tasks = []
    for id in order:
        task = TASK_REPO.get_task(id)
        if statuses is not None and task["status"] not in statuses:
            continue
        if statuses is None and not all and task["status"] in (
            TaskStatus.DONE,
            TaskStatus.CANCELLED,
        ):
            continue
        if project is not None and task["project_id"] != project:
            continue
        if assignee is not None and assignee not in task["assignee_ids"]:
            continue
        tasks.append(task)

    task_view.tasks_view(config["workspace_id"], "tasks", tasks, config["timezone"])


@app.command("show, sh", no_args_is_help=True)
def show(id: str) -> None:
    """Show a task with its predecessors and allowed moves."""
    config = CONFIGURATION_REPO.get_config()

    with reported_errors():
        task_id = resolve_task_id(id)
        scheduler = get_scheduler()
        task = TASK_REPO.get_task(task_id)
        predecessors = scheduler.predecessors(task_id)
        transitions = available_transitions(
            task,
            user_requested(config["user_id"]),
            [predecessor for predecessor, _ in predecessors],
        )

    task_view.single_task_view(
        config["workspace_id"],
        task,
        config["timezone"],
        predecessors,
        transitions,
    )


@app.command("status, st", no_args_is_help=True)
def status(
    id: str,
    target: Annotated[
        str,
        typer.Argument(
            help="backlog, todo, in_progress, in_review, ready, done, cancelled, deferred"
        ),
    ],
) -> None:
    """Move a task to another status."""
    config = CONFIGURATION_REPO.get_config()
    target_status = parse_status(target)

    with reported_errors():
        task_id = resolve_task_id(id)
        task = get_scheduler().change_status(
            task_id, target_status, user_requested(config["user_id"])
        )

    task_view.single_task_view(config["workspace_id"], task, config["timezone"])


@app.command("dates, d", no_args_is_help=True)
def dates(
    id: str,
    start: Annotated[Optional[str], typer.Option("--start", "-s")] = None,
    due: Annotated[Optional[str], typer.Option("--due", "-d")] = None,
    estimate: Annotated[
        Optional[str], typer.Option("--estimate", "-e", help="working time as H:mm")
    ] = None,
    pin: Annotated[
        Optional[bool], typer.Option("--pin/--unpin", help="pin the start date")
    ] = None,
    remove_start: Annotated[bool, typer.Option("--remove-start", "-rs")] = False,
    remove_due: Annotated[bool, typer.Option("--remove-due", "-rd")] = False,
    remove_estimate: Annotated[bool, typer.Option("--remove-estimate", "-re")] = False,
) -> None:
    """Change the start, due date or estimate of a task and reschedule."""
    config = CONFIGURATION_REPO.get_config()
    timezone = config["timezone"]

    with reported_errors():
        task_id = resolve_task_id(id)
        task = get_scheduler().set_dates(
            task_id,
            start=parse_datetime(start, timezone),
            due=parse_datetime(due, timezone),
            estimate=parse_estimate(estimate),
            pinned=pin,
            clear_start=remove_start,
            clear_due=remove_due,
            clear_estimate=remove_estimate,
        )

    task_view.single_task_view(config["workspace_id"], task, timezone)


@app.command("delete, del", no_args_is_help=True)
def delete(id: str) -> None:
    """Delete a task and every dependency link touching it."""
    with reported_errors():
        task_id = resolve_task_id(id)
        get_scheduler().detach_task(task_id)
        TASK_REPO.delete_task(task_id)

    typer.echo(f"Deleted task {task_id}")
