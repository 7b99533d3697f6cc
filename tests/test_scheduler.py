# SPDX-License-Identifier: MIT

import threading
from typing import Callable

import pytest

from cadence.error import (
    CycleDetected,
    DependencyUnresolved,
    EntityNotFound,
    InvalidRange,
    InvalidTransition,
    LinkNotFound,
    PermissionDenied,
)
from cadence.model.link import LinkType
from cadence.model.request import system_derived, user_requested
from cadence.model.task import Task, TaskStatus
from cadence.repository.store import RepositoryStore
from cadence.service.lock import workspace_lock
from cadence.service.scheduler import Scheduler
from cadence.template.link import get_link_template
from tests.helpers import WORKSPACE, RecordingSink, utc

CreateTask = Callable[..., Task]

USER = user_requested("alice")


def test_register_task_places_it_on_the_calendar(create_task: CreateTask) -> None:
    task = create_task("A", start_date=utc(2, 9), duration_estimate=8 * 60)

    assert task["id"] is not None
    assert task["workspace_id"] == WORKSPACE
    assert task["explicit_start"] == utc(2, 9)
    assert task["start_date"] == utc(2, 9)
    assert task["due_date"] == utc(2, 17)


def test_register_task_snaps_start_to_working_time(create_task: CreateTask) -> None:
    task = create_task("A", start_date=utc(7, 12), duration_estimate=60)

    assert task["explicit_start"] == utc(7, 12)
    assert task["start_date"] == utc(9, 9)
    assert task["due_date"] == utc(9, 10)


def test_register_subtask_requires_existing_parent(create_task: CreateTask) -> None:
    with pytest.raises(EntityNotFound):
        create_task("child", is_subtask=True, parent_id="missing")


def test_due_date_propagates_to_successor(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    a = create_task("A")
    b = create_task("B")
    scheduler.add_link(a["id"], b["id"], LinkType.FINISH_TO_START)

    scheduler.set_dates(a["id"], due=utc(6, 12))
    scheduler.recompute_all()

    b = scheduler.store.load_task(b["id"])
    assert b["start_date"] is not None
    assert b["start_date"] >= utc(6, 12)


def test_reverse_link_is_rejected_and_nothing_changes(
    scheduler: Scheduler, create_task: CreateTask, store: RepositoryStore
) -> None:
    a = create_task("A")
    b = create_task("B")
    scheduler.add_link(a["id"], b["id"])
    scheduler.set_dates(a["id"], due=utc(6, 12))
    links_before = store.load_links(WORKSPACE)

    with pytest.raises(CycleDetected):
        scheduler.add_link(b["id"], a["id"])

    assert store.load_links(WORKSPACE) == links_before
    assert list(scheduler.topological_order()) == [a["id"], b["id"]]
    assert store.load_task(b["id"])["start_date"] == utc(6, 12)


def test_finish_to_start_chain(scheduler: Scheduler, create_task: CreateTask) -> None:
    a = create_task("A", start_date=utc(2, 9), duration_estimate=8 * 60)
    b = create_task("B", duration_estimate=4 * 60)
    c = create_task("C", duration_estimate=60)

    scheduler.add_link(a["id"], b["id"])
    scheduler.add_link(b["id"], c["id"])

    b = scheduler.store.load_task(b["id"])
    c = scheduler.store.load_task(c["id"])
    assert b["start_date"] == utc(3, 9)
    assert b["due_date"] == utc(3, 13)
    assert c["start_date"] == utc(3, 13)
    assert c["due_date"] == utc(3, 14)


def test_changing_an_estimate_reschedules_successors(
    scheduler: Scheduler, create_task: CreateTask, events: RecordingSink
) -> None:
    a = create_task("A", start_date=utc(2, 9), duration_estimate=8 * 60)
    b = create_task("B", duration_estimate=4 * 60)
    scheduler.add_link(a["id"], b["id"])
    events.clear()

    scheduler.set_dates(a["id"], estimate=16 * 60)

    a = scheduler.store.load_task(a["id"])
    b = scheduler.store.load_task(b["id"])
    assert a["due_date"] == utc(3, 17)
    assert b["start_date"] == utc(4, 9)
    assert b["due_date"] == utc(4, 13)

    recalculated = events.of_type("schedule_recalculated")
    assert len(recalculated) == 1
    assert recalculated[0]["task_ids"] == [a["id"], b["id"]]


def test_start_to_start_link(scheduler: Scheduler, create_task: CreateTask) -> None:
    a = create_task("A", start_date=utc(3, 10), duration_estimate=8 * 60)
    b = create_task("B", duration_estimate=60)

    scheduler.add_link(a["id"], b["id"], LinkType.START_TO_START)

    b = scheduler.store.load_task(b["id"])
    assert b["start_date"] == utc(3, 10)
    assert b["due_date"] == utc(3, 11)


def test_explicit_start_later_than_constraint_wins(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    a = create_task("A", start_date=utc(2, 9), duration_estimate=60)
    b = create_task("B", start_date=utc(5, 9), duration_estimate=60)

    scheduler.add_link(a["id"], b["id"])

    assert scheduler.store.load_task(b["id"])["start_date"] == utc(5, 9)


def test_span_is_kept_without_estimate(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    a = create_task("A", start_date=utc(2, 9), duration_estimate=8 * 60)
    b = create_task("B", start_date=utc(2, 9), due_date=utc(2, 12))

    scheduler.add_link(a["id"], b["id"])

    b = scheduler.store.load_task(b["id"])
    assert b["start_date"] == utc(3, 9)
    assert b["due_date"] == utc(3, 12)


def test_successors_start_after_predecessors_finish(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    tasks = [
        create_task(f"T{index}", start_date=utc(2, 9), duration_estimate=90 * index)
        for index in range(1, 6)
    ]
    links = [(0, 1), (0, 2), (1, 3), (2, 3), (3, 4), (1, 4)]
    for source, target in links:
        scheduler.add_link(tasks[source]["id"], tasks[target]["id"])
    scheduler.recompute_all()

    for source, target in links:
        predecessor = scheduler.store.load_task(tasks[source]["id"])
        successor = scheduler.store.load_task(tasks[target]["id"])
        assert successor["start_date"] >= predecessor["due_date"]


def test_pinned_task_is_flagged_not_moved(
    scheduler: Scheduler, create_task: CreateTask, events: RecordingSink
) -> None:
    a = create_task("A", start_date=utc(2, 9), duration_estimate=8 * 60)
    b = create_task(
        "B", start_date=utc(2, 10), duration_estimate=60, start_pinned=True
    )

    scheduler.add_link(a["id"], b["id"])

    b = scheduler.store.load_task(b["id"])
    assert b["status"] == TaskStatus.BLOCKED
    assert b["start_date"] == utc(2, 10)
    changed = events.of_type("task_status_changed")
    assert changed[-1]["task_id"] == b["id"]
    assert changed[-1]["system"] is True


def test_pinned_conflict_cannot_be_cleared_by_a_user(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    a = create_task("A", start_date=utc(2, 9), duration_estimate=8 * 60)
    b = create_task(
        "B", start_date=utc(2, 10), duration_estimate=60, start_pinned=True
    )
    scheduler.add_link(a["id"], b["id"])
    scheduler.change_status(a["id"], TaskStatus.DONE, USER)
    assert scheduler.store.load_task(b["id"])["status"] == TaskStatus.BLOCKED

    with pytest.raises(InvalidTransition):
        scheduler.change_status(b["id"], TaskStatus.IN_PROGRESS, USER)
    with pytest.raises(InvalidTransition):
        scheduler.change_status(b["id"], TaskStatus.TODO, USER)
    assert scheduler.store.load_task(b["id"])["status"] == TaskStatus.BLOCKED

    b = scheduler.set_dates(b["id"], pinned=False)

    assert b["status"] == TaskStatus.TODO
    assert b["start_date"] == utc(3, 9)


def test_status_change_is_blocked_by_unresolved_predecessor(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    a = create_task("A")
    b = create_task("B")
    scheduler.add_link(a["id"], b["id"])

    with pytest.raises(DependencyUnresolved):
        scheduler.change_status(b["id"], TaskStatus.IN_PROGRESS, USER)

    scheduler.change_status(a["id"], TaskStatus.DONE, USER)
    b = scheduler.change_status(b["id"], TaskStatus.IN_PROGRESS, USER)

    assert b["status"] == TaskStatus.IN_PROGRESS


def test_reopening_a_predecessor_blocks_work_in_progress(
    scheduler: Scheduler, create_task: CreateTask, events: RecordingSink
) -> None:
    a = create_task("A")
    b = create_task("B")
    c = create_task("C")
    scheduler.add_link(a["id"], b["id"])
    scheduler.add_link(b["id"], c["id"])
    scheduler.change_status(a["id"], TaskStatus.DONE, USER)
    scheduler.change_status(b["id"], TaskStatus.IN_PROGRESS, USER)
    events.clear()

    scheduler.change_status(a["id"], TaskStatus.TODO, USER)

    assert scheduler.store.load_task(b["id"])["status"] == TaskStatus.BLOCKED
    assert scheduler.store.load_task(c["id"])["status"] == TaskStatus.TODO
    changes = [
        (event["task_id"], event["to_status"], event["system"])
        for event in events.of_type("task_status_changed")
    ]
    assert changes == [
        (a["id"], TaskStatus.TODO, False),
        (b["id"], TaskStatus.BLOCKED, True),
    ]


def test_resolving_predecessors_unblocks(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    a = create_task("A")
    b = create_task("B")
    scheduler.add_link(a["id"], b["id"])
    scheduler.change_status(a["id"], TaskStatus.DONE, USER)
    scheduler.change_status(b["id"], TaskStatus.IN_PROGRESS, USER)
    scheduler.change_status(a["id"], TaskStatus.TODO, USER)
    assert scheduler.store.load_task(b["id"])["status"] == TaskStatus.BLOCKED

    with pytest.raises(DependencyUnresolved):
        scheduler.change_status(b["id"], TaskStatus.IN_PROGRESS, USER)

    scheduler.change_status(a["id"], TaskStatus.CANCELLED, USER)

    assert scheduler.store.load_task(b["id"])["status"] == TaskStatus.TODO


def test_system_request_may_block_directly(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    a = create_task("A")
    task = scheduler.change_status(a["id"], TaskStatus.BLOCKED, system_derived())
    assert task["status"] == TaskStatus.BLOCKED


def test_permission_oracle_is_consulted(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    a = create_task("A")
    calls = []

    def oracle(actor_id: str, task: Task, target: TaskStatus) -> bool:
        calls.append((actor_id, task["id"], target))
        return actor_id == "alice"

    with pytest.raises(PermissionDenied):
        scheduler.change_status_for_actor(a["id"], TaskStatus.DONE, "mallory", oracle)
    task = scheduler.change_status_for_actor(a["id"], TaskStatus.DONE, "alice", oracle)

    assert task["status"] == TaskStatus.DONE
    assert calls == [
        ("mallory", a["id"], TaskStatus.DONE),
        ("alice", a["id"], TaskStatus.DONE),
    ]


def test_permission_oracle_runs_under_the_workspace_lock(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    a = create_task("A")
    acquired_elsewhere: list[bool] = []

    def try_acquire() -> None:
        lock = workspace_lock(WORKSPACE)
        acquired = lock.acquire(blocking=False)
        if acquired:
            lock.release()
        acquired_elsewhere.append(acquired)

    def oracle(actor_id: str, task: Task, target: TaskStatus) -> bool:
        thread = threading.Thread(target=try_acquire)
        thread.start()
        thread.join()
        return True

    task = scheduler.change_status_for_actor(a["id"], TaskStatus.DONE, "alice", oracle)

    assert task["status"] == TaskStatus.DONE
    assert acquired_elsewhere == [False]


def test_working_minutes_skip_the_weekend(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    friday = create_task("A", start_date=utc(6, 16), duration_estimate=120)
    undated = create_task("B")

    assert friday["due_date"] == utc(9, 10)
    assert scheduler.working_minutes(friday) == 120
    undated["due_date"] = None
    assert scheduler.working_minutes(undated) is None


def test_invalid_dates_persist_nothing(
    scheduler: Scheduler, create_task: CreateTask, store: RepositoryStore
) -> None:
    a = create_task("A", start_date=utc(2, 9), duration_estimate=60)
    b = create_task(
        "B", start_date=utc(2, 10), due_date=utc(2, 11), start_pinned=False
    )
    scheduler.add_link(a["id"], b["id"])
    b_before = store.load_task(b["id"])

    with pytest.raises(InvalidRange):
        scheduler.set_dates(b["id"], due=utc(2, 9))

    assert store.load_task(b["id"]) == b_before


def test_remove_link_reschedules_target(
    scheduler: Scheduler, create_task: CreateTask, store: RepositoryStore
) -> None:
    a = create_task("A", start_date=utc(2, 9), duration_estimate=8 * 60)
    b = create_task("B", start_date=utc(2, 9), duration_estimate=60)
    scheduler.add_link(a["id"], b["id"])
    assert store.load_task(b["id"])["start_date"] == utc(3, 9)

    scheduler.remove_link(a["id"], b["id"])

    assert store.load_task(b["id"])["start_date"] == utc(2, 9)
    assert store.load_links(WORKSPACE) == []
    with pytest.raises(LinkNotFound):
        scheduler.remove_link(a["id"], b["id"])


def test_detach_task_removes_its_links(
    scheduler: Scheduler, create_task: CreateTask, store: RepositoryStore
) -> None:
    a = create_task("A")
    b = create_task("B")
    c = create_task("C")
    scheduler.add_link(a["id"], b["id"])
    scheduler.add_link(b["id"], c["id"])

    removed = scheduler.detach_task(b["id"])

    assert len(removed) == 2
    assert store.load_links(WORKSPACE) == []
    assert scheduler.predecessors(c["id"]) == []


def test_link_between_unknown_tasks_is_rejected(
    scheduler: Scheduler, create_task: CreateTask
) -> None:
    a = create_task("A")
    with pytest.raises(EntityNotFound):
        scheduler.add_link(a["id"], "missing")


def test_corrupted_link_set_raises_on_recompute(
    scheduler: Scheduler, create_task: CreateTask, store: RepositoryStore
) -> None:
    a = create_task("A")
    b = create_task("B")
    store.save_link(get_link_template(WORKSPACE, a["id"], b["id"]))
    store.save_link(get_link_template(WORKSPACE, b["id"], a["id"]))

    with pytest.raises(CycleDetected):
        scheduler.recompute_all()


def test_other_workspaces_are_not_touched(
    scheduler: Scheduler,
    create_task: CreateTask,
    store: RepositoryStore,
    events: RecordingSink,
) -> None:
    other = Scheduler("ws-2", store, scheduler.calendar, events)
    create_task("A")
    foreign = other.register_task(
        {**store.load_tasks(WORKSPACE)[0], "id": None, "title": "foreign"}
    )

    assert [task["title"] for task in store.load_tasks(WORKSPACE)] == ["A"]
    assert store.load_task(foreign["id"])["workspace_id"] == "ws-2"
    with pytest.raises(EntityNotFound):
        scheduler.change_status(foreign["id"], TaskStatus.DONE, USER)
