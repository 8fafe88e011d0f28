"""
Outgoing event queue shared by all plugins.

Plugins push the events they want sent (a reply, a join, a quit) onto the
queue; the driving loop drains it. The plugin handler only hands the queue
to each plugin it loads and never reads from it.
"""

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Iterator


@dataclass(frozen=True)
class Event(object):
    """A queued outgoing event."""

    source: Any
    """The plugin (or other object) that queued the event."""

    type: str
    """Event type, e.g. 'privmsg'."""

    arguments: tuple = field(default_factory=tuple)
    """Positional arguments for the event."""


class EventHandler(object):
    """Ordered queue of outgoing events."""

    def __init__(self) -> None:
        self._events: list[Event] = []

    def add(self, source: Any, event_type: str, *arguments: Any) -> "EventHandler":
        self._events.append(Event(source, event_type, tuple(arguments)))
        return self

    def get_events(self) -> list[Event]:
        return list(self._events)

    def has_event_of_type(self, event_type: str) -> bool:
        return any(event.type == event_type for event in self._events)

    def clear(self) -> "EventHandler":
        self._events.clear()
        return self

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))
