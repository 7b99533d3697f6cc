# SPDX-License-Identifier: MIT

import pendulum

from cadence.model.event import DomainEvent

WORKSPACE = "ws-1"


def utc(day: int, hour: int, minute: int = 0) -> pendulum.DateTime:
    """An instant in March 2026; the 2nd is a Monday."""
    return pendulum.datetime(2026, 3, day, hour, minute, tz="UTC")


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def emit(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[DomainEvent]:
        return [event for event in self.events if event["event_type"] == event_type]

    def clear(self) -> None:
        self.events.clear()


class FixedClock:
    def __init__(self, now: pendulum.DateTime) -> None:
        self.now = now

    def __call__(self) -> pendulum.DateTime:
        return self.now

    def set(self, now: pendulum.DateTime) -> None:
        self.now = now
