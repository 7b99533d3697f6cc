# SPDX-License-Identifier: MIT

from typing import Annotated

import typer

from cadence.initialize import set_verbose
from cadence.terminal import configuration, link, task, timer
from cadence.terminal.custom_typer import OrderedTyperGroup
from cadence.terminal.schedule import schedule

app = typer.Typer(
    cls=OrderedTyperGroup,
    help="Cadence - Task workflow, scheduling and time tracking in the CLI",
    no_args_is_help=True,
)
app.add_typer(task.app, name="task, t")
app.add_typer(link.app, name="link, l")
app.command(name="schedule, s")(schedule)
app.add_typer(timer.app, name="timer, tm")
app.add_typer(configuration.app, name="config, c")


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log engine activity at INFO level",
        ),
    ] = False,
) -> None:
    """
    Cadence - Task workflow, scheduling and time tracking in the CLI

    Global options that apply to all commands.
    """
    if verbose:
        set_verbose()


def run() -> None:
    app()
