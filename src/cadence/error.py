# SPDX-License-Identifier: MIT

from typing import Iterable, Optional

from cadence.model.entity_id import EntityId


class CadenceError(Exception):
    """Base class for every validation failure raised by the engine."""

    pass


class EntityNotFound(CadenceError):
    def __init__(self, entity_type: str, id: EntityId) -> None:
        super().__init__(f"{entity_type} '{id}' not found")
        self.entity_type = entity_type
        self.id = id


class InvalidTask(CadenceError):
    pass


class InvalidTransition(CadenceError):
    def __init__(self, task_id: EntityId, from_status: str, to_status: str) -> None:
        super().__init__(
            f"Task '{task_id}' cannot move from {from_status} to {to_status}"
        )
        self.task_id = task_id
        self.from_status = from_status
        self.to_status = to_status


class PermissionDenied(CadenceError):
    def __init__(self, actor_id: str, task_id: EntityId, to_status: str) -> None:
        super().__init__(
            f"Actor '{actor_id}' may not set task '{task_id}' to {to_status}"
        )
        self.actor_id = actor_id
        self.task_id = task_id
        self.to_status = to_status


class DependencyUnresolved(CadenceError):
    def __init__(
        self, task_id: EntityId, to_status: str, unresolved_ids: Iterable[EntityId]
    ) -> None:
        self.task_id = task_id
        self.to_status = to_status
        self.unresolved_ids = sorted(unresolved_ids)
        super().__init__(
            f"Task '{task_id}' cannot move to {to_status} while predecessors "
            f"are unresolved: {', '.join(self.unresolved_ids)}"
        )


class SelfDependency(CadenceError):
    def __init__(self, task_id: EntityId) -> None:
        super().__init__(f"Task '{task_id}' cannot depend on itself")
        self.task_id = task_id


class CycleDetected(CadenceError):
    def __init__(
        self,
        source_id: Optional[EntityId] = None,
        target_id: Optional[EntityId] = None,
        remaining_ids: Optional[Iterable[EntityId]] = None,
    ) -> None:
        self.source_id = source_id
        self.target_id = target_id
        self.remaining_ids = sorted(remaining_ids) if remaining_ids else []
        if source_id is not None and target_id is not None:
            message = (
                f"Linking '{source_id}' -> '{target_id}' would create a cycle"
            )
        else:
            message = (
                "Dependency graph contains a cycle among: "
                f"{', '.join(self.remaining_ids)}"
            )
        super().__init__(message)


class LinkNotFound(CadenceError):
    def __init__(self, source_id: EntityId, target_id: EntityId) -> None:
        super().__init__(f"No link '{source_id}' -> '{target_id}'")
        self.source_id = source_id
        self.target_id = target_id


class TimerAlreadyRunning(CadenceError):
    def __init__(self, user_id: str, entry_id: Optional[EntityId] = None) -> None:
        super().__init__(
            f"User '{user_id}' already has a running timer. "
            "Stop it before starting a new one."
        )
        self.user_id = user_id
        self.entry_id = entry_id


class NoRunningTimer(CadenceError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User '{user_id}' has no running timer")
        self.user_id = user_id


class OverlappingEntry(CadenceError):
    def __init__(self, user_id: str, conflicting_id: Optional[EntityId]) -> None:
        super().__init__(
            f"Time entry overlaps existing entry '{conflicting_id}' of user '{user_id}'"
        )
        self.user_id = user_id
        self.conflicting_id = conflicting_id


class InvalidRange(CadenceError):
    pass
