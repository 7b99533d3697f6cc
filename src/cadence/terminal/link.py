# SPDX-License-Identifier: MIT

from typing import Annotated

import typer

from cadence.repository.configuration import CONFIGURATION_REPO
from cadence.repository.task import TASK_REPO
from cadence.terminal.custom_typer import AliasedTyperGroup
from cadence.terminal.engine import get_scheduler, resolve_task_id
from cadence.terminal.parse import parse_link_type, reported_errors
from cadence.view import task as task_view
from cadence.view.util import short_id

app = typer.Typer(cls=AliasedTyperGroup, no_args_is_help=True)


@app.command("add, a", no_args_is_help=True)
def add(
    source: Annotated[str, typer.Argument(help="id of the predecessor task")],
    target: Annotated[str, typer.Argument(help="id of the dependent task")],
    link_type: Annotated[
        str,
        typer.Option(
            "--type",
            "-t",
            help="fs (finish to start) or ss (start to start)",
        ),
    ] = "fs",
) -> None:
    """Make TARGET depend on SOURCE and reschedule TARGET."""
    parsed_type = parse_link_type(link_type)

    with reported_errors():
        source_id = resolve_task_id(source)
        target_id = resolve_task_id(target)
        get_scheduler().add_link(source_id, target_id, parsed_type)

    typer.echo(f"Linked {short_id(source_id)} -> {short_id(target_id)} ({parsed_type})")


@app.command("remove, rm", no_args_is_help=True)
def remove(source: str, target: str) -> None:
    """Remove the dependency of TARGET on SOURCE."""
    with reported_errors():
        source_id = resolve_task_id(source)
        target_id = resolve_task_id(target)
        get_scheduler().remove_link(source_id, target_id)

    typer.echo(f"Unlinked {short_id(source_id)} -> {short_id(target_id)}")


@app.command("order, o")
def order() -> None:
    """List tasks in dependency order, predecessors first."""
    config = CONFIGURATION_REPO.get_config()

    with reported_errors():
        ids = list(get_scheduler().topological_order())

    task_view.tasks_view(
        config["workspace_id"],
        "dependency order",
        [TASK_REPO.get_task(id) for id in ids],
        config["timezone"],
        columns=["id", "status", "title", "start", "due"],
    )
