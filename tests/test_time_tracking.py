# SPDX-License-Identifier: MIT

import threading
from typing import Callable

import pytest

from cadence.error import (
    EntityNotFound,
    InvalidRange,
    NoRunningTimer,
    OverlappingEntry,
    TimerAlreadyRunning,
)
from cadence.model.task import Task
from cadence.repository.store import RepositoryStore
from cadence.service.time_tracking import TimeTracker, intervals_overlap
from tests.helpers import WORKSPACE, FixedClock, RecordingSink, utc

USER = "alice"


def test_second_timer_is_rejected(tracker: TimeTracker, clock: FixedClock) -> None:
    clock.set(utc(2, 9))
    tracker.start_timer(USER, WORKSPACE, "first")

    clock.set(utc(2, 9, 5))
    with pytest.raises(TimerAlreadyRunning):
        tracker.start_timer(USER, WORKSPACE, "second")

    running = tracker.running_entry(USER)
    assert running is not None
    assert running["description"] == "first"


def test_timers_of_different_users_are_independent(tracker: TimeTracker) -> None:
    tracker.start_timer(USER, WORKSPACE, "alice's work")
    tracker.start_timer("bob", WORKSPACE, "bob's work")

    assert tracker.running_entry(USER) is not None
    assert tracker.running_entry("bob") is not None


def test_stop_timer_closes_the_entry(
    tracker: TimeTracker, clock: FixedClock, events: RecordingSink
) -> None:
    clock.set(utc(2, 9))
    started = tracker.start_timer(USER, WORKSPACE, "work", billable=True)

    clock.set(utc(2, 10, 30))
    stopped = tracker.stop_timer(USER)

    assert stopped["id"] == started["id"]
    assert stopped["end_time"] == utc(2, 10, 30)
    assert stopped["duration"] == 90 * 60
    assert tracker.running_entry(USER) is None
    closed = events.of_type("time_entry_closed")
    assert len(closed) == 1
    assert closed[0]["entry_id"] == started["id"]
    assert closed[0]["duration"] == 90 * 60


def test_stop_without_timer(tracker: TimeTracker) -> None:
    with pytest.raises(NoRunningTimer):
        tracker.stop_timer(USER)


def test_clock_behind_start_gives_zero_duration(
    tracker: TimeTracker, clock: FixedClock
) -> None:
    tracker.start_timer(USER, WORKSPACE, "work", start_time=utc(2, 11))
    clock.set(utc(2, 10))

    stopped = tracker.stop_timer(USER)

    assert stopped["duration"] == 0
    assert stopped["end_time"] == utc(2, 11)


def test_zero_length_entry_can_still_be_edited(
    tracker: TimeTracker, clock: FixedClock
) -> None:
    started = tracker.start_timer(USER, WORKSPACE, "work")
    tracker.stop_timer(USER)

    updated = tracker.update_entry(
        USER, started["id"], {"description": "renamed", "tags": ["admin"]}
    )

    assert updated["description"] == "renamed"
    assert updated["tags"] == ["admin"]
    assert updated["start_time"] == updated["end_time"] == clock()
    assert updated["duration"] == 0

    with pytest.raises(InvalidRange):
        tracker.update_entry(USER, started["id"], {"end_time": clock()})


def test_timer_inherits_project_of_task(
    tracker: TimeTracker, create_task: Callable[..., Task]
) -> None:
    task = create_task("write report", project_id="reports")

    entry = tracker.start_timer(USER, WORKSPACE, "writing", task_id=task["id"])

    assert entry["task_id"] == task["id"]
    assert entry["project_id"] == "reports"


def test_timer_for_unknown_task(tracker: TimeTracker) -> None:
    with pytest.raises(EntityNotFound):
        tracker.start_timer(USER, WORKSPACE, "writing", task_id="missing")


def test_touching_entries_do_not_overlap(tracker: TimeTracker) -> None:
    tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9), utc(2, 10), "one")

    with pytest.raises(OverlappingEntry):
        tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9, 30), utc(2, 10, 30), "two")

    entry = tracker.create_manual_entry(USER, WORKSPACE, utc(2, 10), utc(2, 11), "three")
    assert entry["duration"] == 3600


def test_entries_of_other_users_never_conflict(tracker: TimeTracker) -> None:
    tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9), utc(2, 10), "one")
    tracker.create_manual_entry("bob", WORKSPACE, utc(2, 9), utc(2, 10), "one")


def test_manual_entry_overlapping_running_timer(tracker: TimeTracker) -> None:
    tracker.start_timer(USER, WORKSPACE, "running", start_time=utc(2, 9))

    with pytest.raises(OverlappingEntry):
        tracker.create_manual_entry(USER, WORKSPACE, utc(2, 12), utc(2, 13), "later")
    tracker.create_manual_entry(USER, WORKSPACE, utc(2, 8), utc(2, 9), "before")


def test_timer_cannot_start_inside_a_closed_entry(tracker: TimeTracker) -> None:
    tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9), utc(2, 10), "one")

    with pytest.raises(OverlappingEntry):
        tracker.start_timer(USER, WORKSPACE, "inside", start_time=utc(2, 9, 30))
    with pytest.raises(OverlappingEntry):
        tracker.start_timer(USER, WORKSPACE, "before", start_time=utc(2, 8))


def test_manual_entry_requires_positive_range(tracker: TimeTracker) -> None:
    with pytest.raises(InvalidRange):
        tracker.create_manual_entry(USER, WORKSPACE, utc(2, 10), utc(2, 10), "empty")
    with pytest.raises(InvalidRange):
        tracker.create_manual_entry(USER, WORKSPACE, utc(2, 10), utc(2, 9), "inverted")


def test_update_entry_duration_moves_end(tracker: TimeTracker) -> None:
    entry = tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9), utc(2, 10), "one")

    updated = tracker.update_entry(USER, entry["id"], {"duration": 1800})

    assert updated["end_time"] == utc(2, 9, 30)
    assert updated["duration"] == 1800


def test_update_entry_duration_with_end_moves_start(tracker: TimeTracker) -> None:
    entry = tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9), utc(2, 10), "one")

    updated = tracker.update_entry(
        USER, entry["id"], {"end_time": utc(2, 12), "duration": 3600}
    )

    assert updated["start_time"] == utc(2, 11)
    assert updated["duration"] == 3600


def test_update_entry_is_checked_for_overlap_excluding_itself(
    tracker: TimeTracker,
) -> None:
    first = tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9), utc(2, 10), "one")
    tracker.create_manual_entry(USER, WORKSPACE, utc(2, 11), utc(2, 12), "two")

    tracker.update_entry(USER, first["id"], {"end_time": utc(2, 11)})
    with pytest.raises(OverlappingEntry):
        tracker.update_entry(USER, first["id"], {"end_time": utc(2, 11, 1)})


def test_update_entry_rejects_inverted_range(tracker: TimeTracker) -> None:
    entry = tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9), utc(2, 10), "one")
    with pytest.raises(InvalidRange):
        tracker.update_entry(USER, entry["id"], {"start_time": utc(2, 10)})


def test_closing_a_running_entry_by_update_emits_event(
    tracker: TimeTracker, events: RecordingSink
) -> None:
    entry = tracker.start_timer(USER, WORKSPACE, "work", start_time=utc(2, 9))

    tracker.update_entry(USER, entry["id"], {"end_time": utc(2, 9, 45)})

    assert tracker.running_entry(USER) is None
    closed = events.of_type("time_entry_closed")
    assert [event["duration"] for event in closed] == [45 * 60]


def test_update_fields_and_task(
    tracker: TimeTracker, create_task: Callable[..., Task]
) -> None:
    task = create_task("review", project_id="ops")
    entry = tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9), utc(2, 10), "one")

    updated = tracker.update_entry(
        USER,
        entry["id"],
        {
            "description": "code review",
            "billable": True,
            "tags": ["a", "a", "b"],
            "task_id": task["id"],
        },
    )

    assert updated["description"] == "code review"
    assert updated["billable"] is True
    assert updated["tags"] == ["a", "b"]
    assert updated["project_id"] == "ops"


def test_foreign_entries_are_not_found(tracker: TimeTracker) -> None:
    entry = tracker.create_manual_entry("bob", WORKSPACE, utc(2, 9), utc(2, 10), "bob")

    with pytest.raises(EntityNotFound):
        tracker.update_entry(USER, entry["id"], {"description": "mine now"})
    with pytest.raises(EntityNotFound):
        tracker.delete_entry(USER, entry["id"])


def test_delete_entry(tracker: TimeTracker, store: RepositoryStore) -> None:
    entry = tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9), utc(2, 10), "one")

    tracker.delete_entry(USER, entry["id"])

    with pytest.raises(EntityNotFound):
        store.load_entry(entry["id"])


def test_user_entries_newest_first_grouped_by_day(tracker: TimeTracker) -> None:
    tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9), utc(2, 10), "mon")
    tracker.create_manual_entry(USER, WORKSPACE, utc(3, 9), utc(3, 9, 30), "tue")
    tracker.create_manual_entry(USER, WORKSPACE, utc(3, 14), utc(3, 15), "tue pm")
    tracker.create_manual_entry(USER, "ws-2", utc(3, 16), utc(3, 17), "elsewhere")
    tracker.start_timer(USER, WORKSPACE, "running", start_time=utc(4, 9))

    result = tracker.user_entries(USER, WORKSPACE, utc(1, 0), utc(5, 0))

    assert [entry["description"] for entry in result["entries"]] == [
        "running",
        "tue pm",
        "tue",
        "mon",
    ]
    assert result["total_time"] == 3600 + 1800 + 3600
    assert list(result["entries_by_day"]) == ["2026-03-04", "2026-03-03", "2026-03-02"]
    assert len(result["entries_by_day"]["2026-03-03"]) == 2


def test_workspace_entries_span_users_within_range(tracker: TimeTracker) -> None:
    tracker.create_manual_entry(USER, WORKSPACE, utc(2, 9), utc(2, 10), "mine")
    tracker.create_manual_entry("bob", WORKSPACE, utc(3, 9), utc(3, 10), "bob's")
    tracker.create_manual_entry("bob", "ws-2", utc(3, 11), utc(3, 12), "elsewhere")
    tracker.create_manual_entry(USER, WORKSPACE, utc(6, 9), utc(6, 10), "later")

    entries = tracker.workspace_entries(WORKSPACE, utc(1, 0), utc(4, 0))

    assert sorted(entry["description"] for entry in entries) == ["bob's", "mine"]
    assert len(tracker.workspace_entries(WORKSPACE)) == 3


def test_concurrent_starts_leave_one_running_timer(
    store: RepositoryStore, events: RecordingSink
) -> None:
    trackers = [TimeTracker(store, events) for _ in range(8)]
    outcomes: list[str] = []
    barrier = threading.Barrier(len(trackers))

    def start(tracker: TimeTracker) -> None:
        barrier.wait()
        try:
            tracker.start_timer(USER, WORKSPACE, "race")
            outcomes.append("started")
        except (TimerAlreadyRunning, OverlappingEntry):
            outcomes.append("rejected")

    threads = [threading.Thread(target=start, args=(tracker,)) for tracker in trackers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("started") == 1
    running = [
        entry
        for entry in store.load_entries_for_user(USER)
        if entry["end_time"] is None
    ]
    assert len(running) == 1


def test_intervals_overlap() -> None:
    assert intervals_overlap(utc(2, 9), utc(2, 10), utc(2, 9, 30), utc(2, 11))
    assert not intervals_overlap(utc(2, 9), utc(2, 10), utc(2, 10), utc(2, 11))
    assert intervals_overlap(utc(2, 9), None, utc(2, 12), utc(2, 13))
    assert not intervals_overlap(utc(2, 12), None, utc(2, 9), utc(2, 10))
