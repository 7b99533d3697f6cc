# SPDX-License-Identifier: MIT

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from cadence.model.summary import ProjectSummary, Summary, Totals
from cadence.time import seconds_to_str
from cadence.view.header import header


def __totals_table(
    group_label: str, groups: dict[Optional[str], Totals], totals: Totals
) -> Table:
    table = Table(box=box.SIMPLE)
    table.add_column(group_label)
    table.add_column("entries", justify="right")
    table.add_column("billable", justify="right")
    table.add_column("non-billable", justify="right")
    table.add_column("total", justify="right")

    for key, group in groups.items():
        table.add_row(
            key if key is not None else "[italic]none[/italic]",
            str(group["entry_count"]),
            seconds_to_str(group["billable_time"]),
            seconds_to_str(group["non_billable_time"]),
            seconds_to_str(group["total_time"]),
        )

    table.add_section()
    table.add_row(
        "total",
        str(totals["entry_count"]),
        seconds_to_str(totals["billable_time"]),
        seconds_to_str(totals["non_billable_time"]),
        seconds_to_str(totals["total_time"]),
    )
    return table


def summary_view(workspace_id: str, group_by: str, summary: Summary) -> None:
    header(workspace_id, f"time by {group_by}")

    console = Console()
    console.print(__totals_table(group_by, summary["groups"], summary["totals"]))


def project_summary_view(workspace_id: str, summary: ProjectSummary) -> None:
    header(workspace_id, f"project {summary['project_id']}")

    console = Console()
    console.print(__totals_table("user", summary["by_user"], summary["totals"]))
    console.print(__totals_table("task", summary["by_task"], summary["totals"]))
