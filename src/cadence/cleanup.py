# SPDX-License-Identifier: MIT

import atexit

from cadence.repository.configuration import CONFIGURATION_REPO
from cadence.repository.link import LINK_REPO
from cadence.repository.task import TASK_REPO
from cadence.repository.time_entry import TIME_ENTRY_REPO


def flush() -> None:
    CONFIGURATION_REPO.flush()

    TASK_REPO.flush()
    LINK_REPO.flush()
    TIME_ENTRY_REPO.flush()


def register_cleanup() -> None:
    atexit.register(flush)
