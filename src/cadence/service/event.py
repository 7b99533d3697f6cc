# SPDX-License-Identifier: MIT

import logging
from typing import Callable, Protocol

from cadence.model.event import DomainEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[DomainEvent], None]


class EventSink(Protocol):
    def emit(self, event: DomainEvent) -> None: ...


class EventBus:
    """
    In-process fire-and-forget fan out of domain events.

    A failing subscriber is logged and does not stop delivery to the others
    or fail the mutation that produced the event.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.remove(subscriber)

    def emit(self, event: DomainEvent) -> None:
        logger.debug("Emitting %s", event["event_type"])
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                logger.exception(
                    "Subscriber %r failed handling %s", subscriber, event["event_type"]
                )
