# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer

from cadence.repository.configuration import CONFIGURATION_REPO
from cadence.repository.task import TASK_REPO
from cadence.terminal.engine import get_scheduler, resolve_task_id
from cadence.terminal.parse import reported_errors
from cadence.view import task as task_view


def schedule(
    ids: Annotated[
        Optional[list[str]],
        typer.Argument(help="tasks to reschedule along with their successors"),
    ] = None,
) -> None:
    """Recompute task dates from dependencies and the work calendar."""
    config = CONFIGURATION_REPO.get_config()

    with reported_errors():
        scheduler = get_scheduler()
        if ids:
            order = scheduler.recompute([resolve_task_id(id) for id in ids])
        else:
            order = scheduler.recompute_all()
        tasks = [TASK_REPO.get_task(id) for id in order]

    task_view.schedule_view(
        config["workspace_id"],
        tasks,
        config["timezone"],
        {id: scheduler.working_minutes(task) for id, task in zip(order, tasks)},
    )
