# SPDX-License-Identifier: MIT

"""
Keeps task dates and the derived BLOCKED status consistent with the
dependency graph and the work calendar.

Every mutation runs under the workspace lock, plans the forward pass over
deep copies, and only persists once the whole batch validated. Events are
emitted after persistence.
"""

import logging
from copy import deepcopy
from typing import Callable, Iterable, NamedTuple, Optional, cast

import pendulum

from cadence.error import CycleDetected, EntityNotFound, InvalidRange, InvalidTask
from cadence.model.entity_id import EntityId
from cadence.model.entity_type import EntityType
from cadence.model.event import DomainEvent, ScheduleRecalculated
from cadence.model.link import DependencyLink, LinkType
from cadence.model.request import TransitionRequest, system_derived, user_requested
from cadence.model.task import RESOLVED_STATUSES, TERMINAL_STATUSES, Task, TaskStatus
from cadence.repository.store import Store
from cadence.service.calendar import WorkCalendar
from cadence.service.dependency_graph import DependencyGraph, TopologicalOrder
from cadence.service.event import EventSink
from cadence.service.lock import workspace_lock
from cadence.service.state_machine import transition, validate_task
from cadence.template.link import get_link_template
from cadence.time import now_utc

logger = logging.getLogger(__name__)

# Statuses a task may be in while work on it is under way
IN_FLIGHT_STATUSES = frozenset({TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW})

PermissionOracle = Callable[[str, Task, TaskStatus], bool]


class Plan(NamedTuple):
    order: list[EntityId]
    tasks: list[Task]
    events: list[DomainEvent]


class Scheduler:
    def __init__(
        self,
        workspace_id: str,
        store: Store,
        calendar: WorkCalendar,
        events: EventSink,
    ) -> None:
        self.workspace_id = workspace_id
        self.store = store
        self.calendar = calendar
        self.events = events

    def __load(self) -> tuple[dict[EntityId, Task], DependencyGraph]:
        tasks = {
            cast(EntityId, task["id"]): task
            for task in self.store.load_tasks(self.workspace_id)
        }
        graph = DependencyGraph.from_links(
            self.store.load_links(self.workspace_id), tasks.keys()
        )
        return tasks, graph

    def __get(self, tasks: dict[EntityId, Task], id: EntityId) -> Task:
        if id not in tasks:
            raise EntityNotFound(EntityType.TASK, id)
        return tasks[id]

    # Reads

    def load_graph(self) -> DependencyGraph:
        _, graph = self.__load()
        return graph

    def topological_order(self) -> TopologicalOrder:
        return self.load_graph().topological_order()

    def predecessors(self, task_id: EntityId) -> list[tuple[Task, LinkType]]:
        tasks, graph = self.__load()
        self.__get(tasks, task_id)
        return [
            (tasks[id], link_type)
            for id, link_type in sorted(graph.predecessors(task_id).items())
            if id in tasks
        ]

    def working_minutes(self, task: Task) -> Optional[int]:
        """Working time the calendar offers between a task's start and due."""
        if task["start_date"] is None or task["due_date"] is None:
            return None
        return self.calendar.working_minutes_between(
            task["start_date"], task["due_date"]
        )

    # Mutations

    def register_task(self, task: Task) -> Task:
        """Validate and store a new task, then schedule it."""
        with workspace_lock(self.workspace_id):
            task["workspace_id"] = self.workspace_id
            if task["start_date"] is not None and task["explicit_start"] is None:
                task["explicit_start"] = task["start_date"]
            validate_task(task)

            tasks, graph = self.__load()
            if task["parent_id"] is not None:
                self.__get(tasks, task["parent_id"])

            id = self.store.save_new_task(task)
            tasks[id] = task
            graph.add_task(id)
            plan = self.__plan(tasks, graph, [id])
            self.__commit(plan)

            logger.info("Registered task %s: %s", id, task["title"])
            return self.store.load_task(id)

    def change_status(
        self, task_id: EntityId, target: TaskStatus, request: TransitionRequest
    ) -> Task:
        with workspace_lock(self.workspace_id):
            tasks, graph = self.__load()
            task = self.__get(tasks, task_id)
            predecessors = [
                tasks[id] for id in graph.predecessors(task_id) if id in tasks
            ]

            event = transition(task, target, request, predecessors)
            if event is None:
                return deepcopy(task)

            task["status"] = TaskStatus(target)
            plan = self.__plan(tasks, graph, graph.successors(task_id))

            self.store.save_task(task)
            logger.info(
                "Task %s status %s -> %s", task_id, event["from_status"], target
            )
            self.events.emit(event)
            self.__commit(plan)

            return self.store.load_task(task_id)

    def change_status_for_actor(
        self,
        task_id: EntityId,
        target: TaskStatus,
        actor_id: str,
        oracle: PermissionOracle,
    ) -> Task:
        # The oracle must judge the same task state the transition acts on
        with workspace_lock(self.workspace_id):
            task = self.store.load_task(task_id)
            allowed = oracle(actor_id, task, TaskStatus(target))
            return self.change_status(
                task_id, target, user_requested(actor_id, allowed)
            )

    def add_link(
        self,
        source_task_id: EntityId,
        target_task_id: EntityId,
        link_type: LinkType = LinkType.FINISH_TO_START,
    ) -> DependencyLink:
        with workspace_lock(self.workspace_id):
            tasks, graph = self.__load()
            self.__get(tasks, source_task_id)
            self.__get(tasks, target_task_id)

            graph.add_link(source_task_id, target_task_id, link_type)
            plan = self.__plan(tasks, graph, [target_task_id])

            link = get_link_template(
                self.workspace_id, source_task_id, target_task_id, LinkType(link_type)
            )
            link["id"] = self.store.save_link(link)
            logger.info(
                "Linked %s -> %s (%s)", source_task_id, target_task_id, link_type
            )
            self.__commit(plan)
            return link

    def remove_link(self, source_task_id: EntityId, target_task_id: EntityId) -> None:
        with workspace_lock(self.workspace_id):
            tasks, graph = self.__load()

            graph.remove_link(source_task_id, target_task_id)
            seeds = [target_task_id] if target_task_id in tasks else []
            plan = self.__plan(tasks, graph, seeds)

            self.store.delete_link(source_task_id, target_task_id)
            logger.info("Unlinked %s -> %s", source_task_id, target_task_id)
            self.__commit(plan)

    def detach_task(self, task_id: EntityId) -> list[DependencyLink]:
        """
        Remove every link touching a task that its owner deleted, and
        reschedule its former successors.
        """
        with workspace_lock(self.workspace_id):
            tasks, graph = self.__load()
            links = self.store.load_links_for_task(task_id)

            former_successors = [
                id for id in graph.successors(task_id) if id in tasks and id != task_id
            ]
            graph.remove_task(task_id)
            tasks.pop(task_id, None)
            plan = self.__plan(tasks, graph, former_successors)

            for link in links:
                self.store.delete_link(link["source_task_id"], link["target_task_id"])
            logger.info("Detached task %s, removed %d link(s)", task_id, len(links))
            self.__commit(plan)
            return links

    def set_dates(
        self,
        task_id: EntityId,
        start: Optional[pendulum.DateTime] = None,
        due: Optional[pendulum.DateTime] = None,
        estimate: Optional[int] = None,
        pinned: Optional[bool] = None,
        clear_start: bool = False,
        clear_due: bool = False,
        clear_estimate: bool = False,
    ) -> Task:
        with workspace_lock(self.workspace_id):
            tasks, graph = self.__load()
            task = self.__get(tasks, task_id)

            if start is not None:
                task["explicit_start"] = start
                task["start_date"] = start
            if clear_start:
                task["explicit_start"] = None
                task["start_date"] = None
                task["start_pinned"] = False
            if due is not None:
                task["due_date"] = due
            if clear_due:
                task["due_date"] = None
            if estimate is not None:
                task["duration_estimate"] = estimate
            if clear_estimate:
                task["duration_estimate"] = None
            if pinned is not None:
                if pinned and task["start_date"] is None:
                    raise InvalidTask("Only a task with a start date can be pinned")
                task["start_pinned"] = pinned

            validate_task(task)
            plan = self.__plan(tasks, graph, [task_id], always_save=[task_id])
            self.__commit(plan)

            return self.store.load_task(task_id)

    def recompute(self, task_ids: Iterable[EntityId]) -> list[EntityId]:
        with workspace_lock(self.workspace_id):
            tasks, graph = self.__load()
            seeds = list(task_ids)
            for id in seeds:
                self.__get(tasks, id)
            plan = self.__plan(tasks, graph, seeds)
            self.__commit(plan)
            return plan.order

    def recompute_all(self) -> list[EntityId]:
        with workspace_lock(self.workspace_id):
            tasks, graph = self.__load()
            plan = self.__plan(tasks, graph, tasks.keys())
            self.__commit(plan)
            return plan.order

    # Forward pass

    def __plan(
        self,
        tasks: dict[EntityId, Task],
        graph: DependencyGraph,
        seeds: Iterable[EntityId],
        always_save: Iterable[EntityId] = (),
    ) -> Plan:
        affected = graph.affected_subgraph(seeds) & tasks.keys()
        if not affected:
            return Plan([], [], [])

        try:
            order = list(graph.topological_order(affected))
        except CycleDetected as e:
            logger.error(
                "Dependency graph of workspace %s contains a cycle among %s; "
                "refusing to reschedule",
                self.workspace_id,
                ", ".join(e.remaining_ids),
            )
            raise

        working = {id: deepcopy(tasks[id]) for id in order}
        events: list[DomainEvent] = []

        for id in order:
            task = working[id]
            predecessors = [
                (working.get(predecessor_id, tasks[predecessor_id]), link_type)
                for predecessor_id, link_type in sorted(graph.predecessors(id).items())
                if predecessor_id in tasks
            ]
            target = self.__schedule_task(task, predecessors)
            if target is not None:
                event = transition(
                    task, target, system_derived(), [p for p, _ in predecessors]
                )
                if event is not None:
                    task["status"] = target
                    events.append(event)

        for id in order:
            validate_task(working[id])

        save_ids = set(always_save)
        changed = [
            working[id]
            for id in order
            if id in save_ids or self.__differs(tasks[id], working[id])
        ]
        events.append(
            ScheduleRecalculated(
                event_type="schedule_recalculated",
                workspace_id=self.workspace_id,
                task_ids=order,
                occurred=now_utc(),
            )
        )
        return Plan(order, changed, events)

    def __commit(self, plan: Plan) -> None:
        if not plan.order:
            return
        if plan.tasks:
            self.store.save_tasks(plan.tasks)
        for event in plan.events:
            if event["event_type"] == "task_status_changed":
                logger.info(
                    "Task %s status %s -> %s (derived)",
                    event["task_id"],
                    event["from_status"],
                    event["to_status"],
                )
            self.events.emit(event)
        logger.info(
            "Recalculated %d task(s), %d changed", len(plan.order), len(plan.tasks)
        )

    def __differs(self, before: Task, after: Task) -> bool:
        return (
            before["start_date"] != after["start_date"]
            or before["due_date"] != after["due_date"]
            or before["status"] != after["status"]
        )

    def __dependency_constraint(
        self, predecessors: list[tuple[Task, LinkType]]
    ) -> Optional[pendulum.DateTime]:
        """Earliest start the predecessors allow, or None when none has dates."""
        bounds = []
        for predecessor, link_type in predecessors:
            if link_type == LinkType.FINISH_TO_START:
                finish = predecessor["due_date"] or predecessor["start_date"]
                if finish is not None:
                    bounds.append(self.calendar.next_working_instant(finish))
            elif predecessor["start_date"] is not None:
                bounds.append(predecessor["start_date"])
        return max(bounds) if bounds else None

    def __schedule_task(
        self, task: Task, predecessors: list[tuple[Task, LinkType]]
    ) -> Optional[TaskStatus]:
        """
        Place one task in place. Returns the status the task must move to, if
        any.
        """
        constraint = self.__dependency_constraint(predecessors)
        unresolved = any(
            predecessor["status"] not in RESOLVED_STATUSES
            for predecessor, _ in predecessors
        )

        if task["status"] in TERMINAL_STATUSES:
            return None

        start_date = task["start_date"]
        if task["start_pinned"] and start_date is not None:
            if constraint is not None and constraint > start_date:
                # Flag, don't move: a pinned start is never overwritten
                return TaskStatus.BLOCKED if task["status"] != TaskStatus.BLOCKED else None
            self.__place(task, start_date)
        else:
            candidates = [
                bound
                for bound in (
                    self.calendar.next_working_instant(task["explicit_start"])
                    if task["explicit_start"] is not None
                    else None,
                    constraint,
                )
                if bound is not None
            ]
            if candidates:
                self.__place(task, max(candidates))

        if task["status"] in IN_FLIGHT_STATUSES and unresolved:
            return TaskStatus.BLOCKED
        if task["status"] == TaskStatus.BLOCKED and not unresolved:
            return TaskStatus.TODO
        return None

    def __place(self, task: Task, start: pendulum.DateTime) -> None:
        previous_start = task["start_date"]
        previous_due = task["due_date"]

        task["start_date"] = start
        if task["duration_estimate"] is not None:
            task["due_date"] = self.calendar.add_working_duration(
                start, task["duration_estimate"]
            )
        elif previous_start is not None and previous_due is not None:
            task["due_date"] = start + (previous_due - previous_start)
        elif previous_due is not None and previous_due < start:
            task["due_date"] = start

        if task["due_date"] is not None and task["due_date"] < start:
            raise InvalidRange(f"Task '{task['id']}' would be due before it starts")
