# SPDX-License-Identifier: MIT

import logging
from copy import deepcopy
from typing import Callable, Optional, cast

import pendulum

from cadence.error import (
    EntityNotFound,
    InvalidRange,
    NoRunningTimer,
    OverlappingEntry,
    TimerAlreadyRunning,
)
from cadence.model.entity_id import EntityId
from cadence.model.entity_type import EntityType
from cadence.model.event import TimeEntryClosed
from cadence.model.summary import UserEntries
from cadence.model.time_entry import TimeEntry, TimeEntryPatch
from cadence.repository.store import Store
from cadence.service.event import EventSink
from cadence.service.lock import user_lock
from cadence.template.time_entry import get_time_entry_template
from cadence.time import datetime_to_day_key, now_utc, seconds_between

logger = logging.getLogger(__name__)

Clock = Callable[[], pendulum.DateTime]


def intervals_overlap(
    start_a: pendulum.DateTime,
    end_a: Optional[pendulum.DateTime],
    start_b: pendulum.DateTime,
    end_b: Optional[pendulum.DateTime],
) -> bool:
    """
    Half-open interval intersection test. An end of None is an interval that
    is still open, which overlaps everything starting after its start.
    """
    return (end_b is None or start_a < end_b) and (end_a is None or start_b < end_a)


class TimeTracker:
    def __init__(self, store: Store, events: EventSink, clock: Clock = now_utc) -> None:
        self.store = store
        self.events = events
        self.clock = clock

    def __find_overlap(
        self,
        user_id: str,
        start: pendulum.DateTime,
        end: Optional[pendulum.DateTime],
        exclude_id: Optional[EntityId] = None,
    ) -> Optional[TimeEntry]:
        entries = sorted(
            self.store.load_entries_for_user(user_id),
            key=lambda entry: entry["start_time"],
        )
        for entry in entries:
            if exclude_id is not None and entry["id"] == exclude_id:
                continue
            if intervals_overlap(start, end, entry["start_time"], entry["end_time"]):
                return entry
        return None

    def __check_overlap(
        self,
        user_id: str,
        start: pendulum.DateTime,
        end: Optional[pendulum.DateTime],
        exclude_id: Optional[EntityId] = None,
    ) -> None:
        conflict = self.__find_overlap(user_id, start, end, exclude_id)
        if conflict is not None:
            raise OverlappingEntry(user_id, conflict["id"])

    def __load_own(self, user_id: str, entry_id: EntityId) -> TimeEntry:
        entry = self.store.load_entry(entry_id)
        if entry["user_id"] != user_id:
            raise EntityNotFound(EntityType.TIME_ENTRY, entry_id)
        return entry

    def __inherit_project(
        self, project_id: Optional[str], task_id: Optional[EntityId]
    ) -> Optional[str]:
        if task_id is None:
            return project_id
        task = self.store.load_task(task_id)
        if project_id is None:
            return task["project_id"]
        return project_id

    def __closed(self, entry: TimeEntry) -> TimeEntryClosed:
        return {
            "event_type": "time_entry_closed",
            "entry_id": cast(EntityId, entry["id"]),
            "user_id": entry["user_id"],
            "task_id": entry["task_id"],
            "duration": entry["duration"],
            "occurred": now_utc(),
        }

    def running_entry(self, user_id: str) -> Optional[TimeEntry]:
        return self.store.load_running_entry(user_id)

    def start_timer(
        self,
        user_id: str,
        workspace_id: str,
        description: str,
        project_id: Optional[str] = None,
        task_id: Optional[EntityId] = None,
        billable: bool = False,
        tags: Optional[list[str]] = None,
        start_time: Optional[pendulum.DateTime] = None,
    ) -> TimeEntry:
        with user_lock(user_id):
            running = self.store.load_running_entry(user_id)
            if running is not None:
                raise TimerAlreadyRunning(user_id, running["id"])

            start = start_time if start_time is not None else self.clock()
            self.__check_overlap(user_id, start, None)

            entry = get_time_entry_template(user_id, workspace_id, start)
            entry["description"] = description
            entry["project_id"] = self.__inherit_project(project_id, task_id)
            entry["task_id"] = task_id
            entry["billable"] = billable
            entry["tags"] = tags if tags is not None else []

            id = self.store.insert_running_entry(entry)
            if id is None:
                raise TimerAlreadyRunning(user_id)

            logger.info("User %s started timer %s", user_id, id)
            return self.store.load_entry(id)

    def stop_timer(self, user_id: str) -> TimeEntry:
        with user_lock(user_id):
            entry = self.store.load_running_entry(user_id)
            if entry is None:
                raise NoRunningTimer(user_id)

            end = max(self.clock(), entry["start_time"])
            self.__check_overlap(user_id, entry["start_time"], end, entry["id"])

            entry["end_time"] = end
            entry["duration"] = seconds_between(entry["start_time"], end)
            self.store.save_entry(entry)

            logger.info(
                "User %s stopped timer %s after %ds",
                user_id,
                entry["id"],
                entry["duration"],
            )
            self.events.emit(self.__closed(entry))
            return self.store.load_entry(cast(EntityId, entry["id"]))

    def create_manual_entry(
        self,
        user_id: str,
        workspace_id: str,
        start_time: pendulum.DateTime,
        end_time: pendulum.DateTime,
        description: str,
        project_id: Optional[str] = None,
        task_id: Optional[EntityId] = None,
        billable: bool = False,
        tags: Optional[list[str]] = None,
    ) -> TimeEntry:
        if end_time <= start_time:
            raise InvalidRange(
                f"A time entry must end after it starts "
                f"({start_time.isoformat()} - {end_time.isoformat()})"
            )

        with user_lock(user_id):
            self.__check_overlap(user_id, start_time, end_time)

            entry = get_time_entry_template(user_id, workspace_id, start_time)
            entry["end_time"] = end_time
            entry["duration"] = seconds_between(start_time, end_time)
            entry["description"] = description
            entry["project_id"] = self.__inherit_project(project_id, task_id)
            entry["task_id"] = task_id
            entry["billable"] = billable
            entry["tags"] = tags if tags is not None else []

            id = self.store.save_new_entry(entry)
            logger.info("User %s logged entry %s (%ds)", user_id, id, entry["duration"])
            self.events.emit(self.__closed(entry))
            return self.store.load_entry(id)

    def update_entry(
        self, user_id: str, entry_id: EntityId, patch: TimeEntryPatch
    ) -> TimeEntry:
        with user_lock(user_id):
            entry = self.__load_own(user_id, entry_id)
            was_running = entry["end_time"] is None
            updated = deepcopy(entry)

            start = patch.get("start_time")
            end = patch.get("end_time")
            duration = patch.get("duration")
            if duration is not None:
                if duration < 0:
                    raise InvalidRange("A duration cannot be negative")
                if start is not None and end is None:
                    end = start.add(seconds=duration)
                elif end is not None and start is None:
                    start = end.subtract(seconds=duration)
                elif start is None and end is None:
                    end = entry["start_time"].add(seconds=duration)

            if start is not None:
                updated["start_time"] = start
            if end is not None:
                updated["end_time"] = end
            if "description" in patch:
                updated["description"] = patch["description"]
            if "billable" in patch:
                updated["billable"] = patch["billable"]
            if "tags" in patch:
                updated["tags"] = patch["tags"]
            if "project_id" in patch:
                updated["project_id"] = patch["project_id"]
            if "task_id" in patch:
                updated["task_id"] = patch["task_id"]
                if patch["task_id"] is not None and updated["project_id"] is None:
                    updated["project_id"] = self.__inherit_project(
                        None, patch["task_id"]
                    )

            # A stopped timer may close with zero length; only a retimed entry
            # must satisfy the range rule again
            if start is not None or end is not None:
                if updated["end_time"] is not None:
                    if updated["end_time"] <= updated["start_time"]:
                        raise InvalidRange(
                            f"A time entry must end after it starts "
                            f"({updated['start_time'].isoformat()} - "
                            f"{updated['end_time'].isoformat()})"
                        )
                    updated["duration"] = seconds_between(
                        updated["start_time"], updated["end_time"]
                    )
                self.__check_overlap(
                    user_id, updated["start_time"], updated["end_time"], entry_id
                )

            self.store.save_entry(updated)
            logger.info("User %s updated entry %s", user_id, entry_id)
            if was_running and updated["end_time"] is not None:
                self.events.emit(self.__closed(updated))
            return self.store.load_entry(entry_id)

    def delete_entry(self, user_id: str, entry_id: EntityId) -> None:
        with user_lock(user_id):
            self.__load_own(user_id, entry_id)
            self.store.delete_entry(entry_id)
            logger.info("User %s deleted entry %s", user_id, entry_id)

    def workspace_entries(
        self,
        workspace_id: str,
        start: Optional[pendulum.DateTime] = None,
        end: Optional[pendulum.DateTime] = None,
    ) -> list[TimeEntry]:
        """Entries of every user in a workspace started within [start, end]."""
        return self.store.load_entries(workspace_id, start, end)

    def user_entries(
        self,
        user_id: str,
        workspace_id: str,
        start: pendulum.DateTime,
        end: pendulum.DateTime,
        project_id: Optional[str] = None,
        task_id: Optional[EntityId] = None,
        timezone: str = "UTC",
    ) -> UserEntries:
        """Entries of a user started within [start, end], newest first."""
        entries = [
            entry
            for entry in self.store.load_entries_for_user(user_id, start, end)
            if entry["workspace_id"] == workspace_id
            and (project_id is None or entry["project_id"] == project_id)
            and (task_id is None or entry["task_id"] == task_id)
        ]
        entries.sort(key=lambda entry: entry["start_time"], reverse=True)

        entries_by_day: dict[str, list[TimeEntry]] = {}
        for entry in entries:
            day = datetime_to_day_key(entry["start_time"], timezone)
            entries_by_day.setdefault(day, []).append(entry)

        return {
            "entries": entries,
            "total_time": sum(
                entry["duration"] for entry in entries if entry["end_time"] is not None
            ),
            "entries_by_day": entries_by_day,
        }
