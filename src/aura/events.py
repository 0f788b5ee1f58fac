"""Host-facing events published by the conversation core.

A host (console, GUI, test harness) subscribes to the event types it cares
about; the orchestrator publishes them in turn order:

- :class:`StreamFragment` for every fragment, in arrival order;
- :class:`ToolDetected` at most once, after the last fragment;
- :class:`StreamDone` exactly once, last.
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, ClassVar, Dict, Generic, List, TypeVar

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .ai.ai_types import ToolInvocation

LOGGER = logging.getLogger(__name__)

EventT = TypeVar("EventT", bound="Event")

Handler = Callable[[EventT], None]

__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "StreamDone",
    "StreamFragment",
    "ToolDetected",
]


@dataclass(slots=True)
class Event:
    """Base class for everything published on an :class:`EventBus`."""

    # Published once per fragment; kept out of the debug log.
    quiet: ClassVar[bool] = False


@dataclass(slots=True)
class StreamFragment(Event):
    """A piece of assistant text received during streaming.

    Attributes:
        turn_id: Identifier of the turn (e.g. ``"turn-1"``).
        content: The fragment text.
    """

    quiet: ClassVar[bool] = True

    turn_id: str
    content: str


@dataclass(slots=True)
class ToolDetected(Event):
    """Emitted when the completed reply contains a tool invocation."""

    turn_id: str
    invocation: ToolInvocation


@dataclass(slots=True)
class StreamDone(Event):
    """Terminal signal of a turn."""

    turn_id: str


class _Subscription:
    """One registered handler.

    Bound methods are referenced weakly so a host object can be collected
    without unsubscribing; anything else is kept alive by the subscription.
    """

    __slots__ = ("_target", "_weak", "label")

    def __init__(self, handler: Handler) -> None:
        self.label = _describe(handler)
        self._weak = False
        self._target: object = handler
        if getattr(handler, "__self__", None) is not None and hasattr(handler, "__func__"):
            try:
                self._target = weakref.WeakMethod(handler)  # type: ignore[arg-type]
            except TypeError:
                pass
            else:
                self._weak = True

    def handler(self) -> Handler | None:
        if self._weak:
            return self._target()  # type: ignore[operator]
        return self._target  # type: ignore[return-value]

    def is_for(self, handler: Handler) -> bool:
        current = self.handler()
        return current is not None and current == handler


class EventBus(Generic[EventT]):
    """Synchronous publish/subscribe keyed by the exact event class.

    Handlers run on the publishing task in subscription order. A handler that
    raises is logged and does not prevent the others from running.

    Example::

        bus = EventBus()
        bus.subscribe(StreamFragment, lambda event: print(event.content, end=""))
        bus.publish(StreamFragment(turn_id="turn-1", content="Ready."))
    """

    __slots__ = ("_subscriptions",)

    def __init__(self) -> None:
        self._subscriptions: Dict[type, List[_Subscription]] = {}

    def subscribe(self, event_type: type[EventT], handler: Handler[EventT]) -> None:
        subscription = _Subscription(handler)
        self._subscriptions.setdefault(event_type, []).append(subscription)
        LOGGER.debug("%s subscribed to %s", subscription.label, event_type.__name__)

    def unsubscribe(self, event_type: type[EventT], handler: Handler[EventT]) -> None:
        """Drop the earliest registration of ``handler``; unknown handlers are ignored."""
        subscriptions = self._subscriptions.get(event_type, [])
        for index, subscription in enumerate(subscriptions):
            if subscription.is_for(handler):
                del subscriptions[index]
                LOGGER.debug("%s unsubscribed from %s", subscription.label, event_type.__name__)
                break

    def publish(self, event: EventT) -> None:
        event_type = type(event)
        subscriptions = self._subscriptions.get(event_type)
        if not subscriptions:
            if not event.quiet:
                LOGGER.debug("%s published with no subscribers", event_type.__name__)
            return
        if not event.quiet:
            LOGGER.debug("Publishing %s to %d subscriber(s)", event_type.__name__, len(subscriptions))

        expired: List[_Subscription] = []
        for subscription in tuple(subscriptions):
            handler = subscription.handler()
            if handler is None:
                expired.append(subscription)
                continue
            try:
                handler(event)
            except Exception:
                LOGGER.exception("Subscriber %s failed on %s", subscription.label, event_type.__name__)
        if expired:
            self._subscriptions[event_type] = [item for item in subscriptions if item not in expired]

    def clear(self) -> None:
        self._subscriptions.clear()

    def handler_count(self, event_type: type[EventT] | None = None) -> int:
        if event_type is None:
            return sum(len(items) for items in self._subscriptions.values())
        return len(self._subscriptions.get(event_type, ()))


def _describe(handler: Handler) -> str:
    owner = getattr(handler, "__self__", None)
    func = getattr(handler, "__func__", None)
    if owner is not None and func is not None:
        return f"{type(owner).__name__}.{func.__name__}"
    return getattr(handler, "__name__", repr(handler))
