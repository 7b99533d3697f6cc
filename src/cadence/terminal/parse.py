# SPDX-License-Identifier: MIT

import re
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, cast

import pendulum
import typer
from rich.console import Console

from cadence.error import CadenceError
from cadence.model.entity_id import EntityId
from cadence.model.link import LinkType
from cadence.model.task import TaskPriority, TaskStatus
from cadence.time import minutes_from_str

error_console = Console(stderr=True)


@contextmanager
def reported_errors() -> Iterator[None]:
    """Turn domain errors into a red message and exit status 1."""
    try:
        yield
    except CadenceError as e:
        error_console.print(f"[red]{type(e).__name__}:[/red] {e}")
        raise typer.Exit(1)
    except ValueError as e:
        error_console.print(f"[red]Invalid value:[/red] {e}")
        raise typer.Exit(1)


def parse_datetime(
    datetime_param: Optional[str], timezone: str
) -> Optional[pendulum.DateTime]:
    """
    Parse a command line date or time in the workspace time zone.

    Accepts YYYY-MM-DD with an optional time component, (H)H:mm for today,
    a signed day offset, and the words now, today, yesterday and tomorrow.
    """
    if datetime_param is None:
        return None

    datetime = datetime_param.strip()

    if re.match(r"\d{4}-\d{2}-\d{2}", datetime):
        try:
            parsed = pendulum.parse(datetime, tz=timezone)
        except ValueError as e:
            raise typer.BadParameter(f"Invalid date '{datetime}': {e}")
        return cast(pendulum.DateTime, parsed).in_tz("UTC")

    time_match = re.match(r"^(\d{1,2}):(\d{2})$", datetime)
    if time_match:
        hour = int(time_match.group(1))
        minute = int(time_match.group(2))
        if hour < 0 or hour > 23:
            raise typer.BadParameter(f"Hour must be between 0 and 23, got {hour}")
        if minute < 0 or minute > 59:
            raise typer.BadParameter(f"Minute must be between 0 and 59, got {minute}")
        return (
            pendulum.today(timezone)
            .set(hour=hour, minute=minute, second=0, microsecond=0)
            .in_tz("UTC")
        )

    if re.match(r"^-?\d+$", datetime):
        return pendulum.today(timezone).add(days=int(datetime)).in_tz("UTC")

    if datetime == "now" or datetime == "n":
        return pendulum.now("UTC")
    if datetime == "today" or datetime == "t":
        return pendulum.today(timezone).in_tz("UTC")
    if datetime == "yesterday" or datetime == "y":
        return pendulum.yesterday(timezone).in_tz("UTC")
    if datetime == "tomorrow" or datetime == "o":
        return pendulum.tomorrow(timezone).in_tz("UTC")
    raise typer.BadParameter(f"Incorrect datetime format '{datetime}'")


def parse_estimate(estimate: Optional[str]) -> Optional[int]:
    """Parse an H:mm working-time estimate into minutes."""
    if estimate is None:
        return None
    if not re.match(r"^\d+:\d{2}$", estimate):
        raise typer.BadParameter(f"Estimate must be in H:mm format, got '{estimate}'")
    return minutes_from_str(estimate)


def parse_duration_seconds(duration: Optional[str]) -> Optional[int]:
    minutes = parse_estimate(duration)
    if minutes is None:
        return None
    return minutes * 60


def parse_status(status: str) -> TaskStatus:
    try:
        return TaskStatus(status.upper().replace("-", "_"))
    except ValueError:
        raise typer.BadParameter(
            f"Unknown status '{status}'. Valid options: {', '.join(TaskStatus)}"
        )


def parse_priority(priority: str) -> TaskPriority:
    try:
        return TaskPriority(priority.upper())
    except ValueError:
        raise typer.BadParameter(
            f"Unknown priority '{priority}'. Valid options: {', '.join(TaskPriority)}"
        )


def parse_link_type(link_type: str) -> LinkType:
    aliases = {"fs": LinkType.FINISH_TO_START, "ss": LinkType.START_TO_START}
    if link_type.lower() in aliases:
        return aliases[link_type.lower()]
    try:
        return LinkType(link_type.upper().replace("-", "_"))
    except ValueError:
        raise typer.BadParameter(
            f"Unknown link type '{link_type}'. Valid options: fs, ss"
        )


def resolve_id(prefix: str, ids: Iterable[EntityId], entity_name: str) -> EntityId:
    """Expand a unique id prefix to the full id."""
    matches = [id for id in ids if id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) == 0:
        raise typer.BadParameter(f"No {entity_name} with id '{prefix}'")
    raise typer.BadParameter(
        f"Id '{prefix}' is ambiguous, it matches {len(matches)} {entity_name}s"
    )
