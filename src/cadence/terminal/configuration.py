# SPDX-License-Identifier: MIT

import logging
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from cadence import configuration
from cadence.repository.configuration import CONFIGURATION_REPO
from cadence.service.calendar import WorkCalendar
from cadence.terminal.custom_typer import AliasedTyperGroup
from cadence.terminal.parse import reported_errors

app = typer.Typer(cls=AliasedTyperGroup, no_args_is_help=True)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def __configuration_table(title: Optional[str] = None) -> Table:
    config = CONFIGURATION_REPO.get_config()

    table = Table(title=title)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("timezone", config["timezone"])
    table.add_row(
        "working_days", ", ".join(str(day) for day in config["working_days"])
    )
    table.add_row("work_day_start", config["work_day_start"])
    table.add_row("work_day_end", config["work_day_end"])
    table.add_row(
        "holidays", ", ".join(config["holidays"]) if config["holidays"] else "None"
    )
    table.add_row("user_id", config["user_id"])
    table.add_row("workspace_id", config["workspace_id"])
    table.add_row("data_path", str(configuration.DATA_PATH))
    table.add_row("log_level", config["log_level"])
    return table


@app.command("show, v")
def show() -> None:
    """Display current configuration settings."""
    console = Console()
    console.print(__configuration_table())


@app.command("set, s")
def set(
    timezone: Annotated[
        Optional[str],
        typer.Option("--timezone", "-tz", help="IANA name, e.g. Europe/Amsterdam"),
    ] = None,
    working_days: Annotated[
        Optional[list[int]],
        typer.Option(
            "--working-day",
            "-wd",
            help="ISO weekday 1-7, accepts multiple working day options",
        ),
    ] = None,
    work_day_start: Annotated[
        Optional[str], typer.Option("--work-day-start", help="HH:mm")
    ] = None,
    work_day_end: Annotated[
        Optional[str], typer.Option("--work-day-end", help="HH:mm")
    ] = None,
    holidays: Annotated[
        Optional[list[str]],
        typer.Option("--holiday", help="YYYY-MM-DD, accepts multiple holiday options"),
    ] = None,
    remove_holidays: Annotated[
        bool, typer.Option("--remove-holidays", help="Remove all holidays")
    ] = False,
    user_id: Annotated[Optional[str], typer.Option("--user", "-u")] = None,
    workspace_id: Annotated[Optional[str], typer.Option("--workspace", "-w")] = None,
    data_path: Annotated[
        Optional[str],
        typer.Option("--data-path", help="Directory path for storing data files"),
    ] = None,
    remove_data_path: Annotated[
        bool,
        typer.Option(
            "--remove-data-path", help="Reset data path to the platform default"
        ),
    ] = False,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help=", ".join(LOG_LEVELS)),
    ] = None,
) -> None:
    """
    Update configuration settings.
    """
    if log_level is not None and log_level.upper() not in LOG_LEVELS:
        raise typer.BadParameter(
            f"Unknown log level '{log_level}'. Valid options: {', '.join(LOG_LEVELS)}"
        )

    # Reject a calendar that cannot be built before anything is stored
    current = CONFIGURATION_REPO.get_config()
    with reported_errors():
        WorkCalendar(
            timezone=timezone or current["timezone"],
            working_days=working_days or current["working_days"],
            work_day_start=work_day_start or current["work_day_start"],
            work_day_end=work_day_end or current["work_day_end"],
            holidays=None if remove_holidays else holidays or current["holidays"],
        )

    CONFIGURATION_REPO.update_config(
        timezone=timezone,
        working_days=working_days,
        work_day_start=work_day_start,
        work_day_end=work_day_end,
        holidays=holidays,
        remove_holidays=remove_holidays,
        user_id=user_id,
        workspace_id=workspace_id,
        data_path=data_path,
        remove_data_path=remove_data_path,
        log_level=log_level,
    )
    if log_level is not None:
        logging.getLogger("cadence").setLevel(log_level.upper())

    console = Console()
    console.print("[green]Configuration updated successfully![/green]\n")
    console.print(__configuration_table("Updated Configuration"))
