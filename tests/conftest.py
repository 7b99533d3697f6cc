# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import Any, Callable, Iterator

import pytest

from cadence import configuration
from cadence.model.task import Task
from cadence.repository.link import LinkRepository
from cadence.repository.store import RepositoryStore
from cadence.repository.task import TaskRepository
from cadence.repository.time_entry import TimeEntryRepository
from cadence.service.calendar import WorkCalendar
from cadence.service.scheduler import Scheduler
from cadence.service.time_tracking import TimeTracker
from cadence.template.task import get_task_template
from tests.helpers import WORKSPACE, FixedClock, RecordingSink, utc


@pytest.fixture
def data_path(tmp_path: Path) -> Iterator[Path]:
    original = configuration.DATA_PATH
    configuration.set_data_path(tmp_path / "data")
    yield tmp_path / "data"
    configuration.set_data_path(original)


@pytest.fixture
def task_repo(data_path: Path) -> TaskRepository:
    return TaskRepository()


@pytest.fixture
def link_repo(data_path: Path) -> LinkRepository:
    return LinkRepository()


@pytest.fixture
def time_entry_repo(data_path: Path) -> TimeEntryRepository:
    return TimeEntryRepository()


@pytest.fixture
def store(
    task_repo: TaskRepository,
    link_repo: LinkRepository,
    time_entry_repo: TimeEntryRepository,
) -> RepositoryStore:
    return RepositoryStore(task_repo, link_repo, time_entry_repo)


@pytest.fixture
def events() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def calendar() -> WorkCalendar:
    return WorkCalendar(
        timezone="UTC",
        working_days=[1, 2, 3, 4, 5],
        work_day_start="09:00",
        work_day_end="17:00",
    )


@pytest.fixture
def scheduler(
    store: RepositoryStore, calendar: WorkCalendar, events: RecordingSink
) -> Scheduler:
    return Scheduler(WORKSPACE, store, calendar, events)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(utc(2, 9))


@pytest.fixture
def tracker(
    store: RepositoryStore, events: RecordingSink, clock: FixedClock
) -> TimeTracker:
    return TimeTracker(store, events, clock)


@pytest.fixture
def create_task(scheduler: Scheduler) -> Callable[..., Task]:
    def create(title: str, **fields: Any) -> Task:
        task = get_task_template()
        task["title"] = title
        task.update(fields)  # type: ignore[typeddict-item]
        return scheduler.register_task(task)

    return create
