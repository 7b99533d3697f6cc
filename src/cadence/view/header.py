# SPDX-License-Identifier: MIT

from typing import Optional

from rich import print
from rich.padding import Padding


def header(workspace_id: str, sub_header: Optional[str] = None) -> None:
    additional = ""
    if sub_header is not None:
        additional = f"[sandy_brown]{sub_header}[/sandy_brown]"

    print(Padding("[dark_orange]cadence[/dark_orange]", (1, 0, 0, 1)))
    print(Padding(additional, (0, 1)))
    print(Padding(f"[plum1]{workspace_id}[/plum1]", (0, 1)))
