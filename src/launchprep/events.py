"""Progress events.

Long-running steps report progress to an optional sink. The sink is a
decoupled observer: anything with a ``send(event)`` method, or a plain
callable, will do. With no sink configured, events are only logged.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict

from launchprep.codes import EventStatus

logger = logging.getLogger(__name__)


class Event(BaseModel):
    """A single progress notification."""
    status: EventStatus
    message: str

    model_config = ConfigDict(frozen=True)


@runtime_checkable
class EventSink(Protocol):
    def send(self, event: Event) -> None:
        ...


SinkLike = Union[EventSink, Callable[[Event], None]]


class EventBus:
    """Send-only front for an optional sink."""

    def __init__(self, sink: Optional[SinkLike] = None):
        self._sink = sink

    def send(self, event: Event) -> None:
        logger.info("[%s] %s", event.status.value, event.message)
        if self._sink is None:
            return
        if isinstance(self._sink, EventSink):
            self._sink.send(event)
        else:
            self._sink(event)

    def ongoing(self, message: str) -> None:
        self.send(Event(status=EventStatus.ONGOING, message=message))

    def done(self, message: str) -> None:
        self.send(Event(status=EventStatus.DONE, message=message))


class EventRecorder:
    """Sink that keeps every event, in order."""

    def __init__(self):
        self.events: List[Event] = []

    def send(self, event: Event) -> None:
        self.events.append(event)

    @property
    def messages(self) -> List[str]:
        return [e.message for e in self.events]
