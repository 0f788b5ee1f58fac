"""Unit tests for :mod:`aura.events`."""

from __future__ import annotations

import gc
from dataclasses import dataclass

import pytest

from aura.ai.ai_types import ToolInvocation
from aura.events import Event, EventBus, StreamDone, StreamFragment, ToolDetected


@dataclass(slots=True)
class SampleEvent(Event):
    """A sample event for testing."""

    message: str


class _Subscriber:
    def __init__(self) -> None:
        self.received: list[Event] = []

    def on_event(self, event: Event) -> None:
        self.received.append(event)


class TestEventTypes:
    def test_turn_events_carry_turn_id(self) -> None:
        invocation = ToolInvocation(tool="lock")

        assert StreamFragment(turn_id="turn-1", content="Hi").content == "Hi"
        assert ToolDetected(turn_id="turn-1", invocation=invocation).invocation is invocation
        assert StreamDone(turn_id="turn-1").turn_id == "turn-1"


class TestEventBus:
    def test_publish_reaches_handlers_in_subscription_order(self) -> None:
        bus: EventBus[Event] = EventBus()
        order: list[str] = []

        bus.subscribe(SampleEvent, lambda event: order.append("first"))
        bus.subscribe(SampleEvent, lambda event: order.append("second"))
        bus.publish(SampleEvent(message="hello"))

        assert order == ["first", "second"]

    def test_publish_is_isolated_by_event_type(self) -> None:
        bus: EventBus[Event] = EventBus()
        received: list[Event] = []
        bus.subscribe(StreamDone, received.append)

        bus.publish(SampleEvent(message="ignored"))
        bus.publish(StreamDone(turn_id="turn-1"))

        assert received == [StreamDone(turn_id="turn-1")]

    def test_publish_without_handlers_is_a_no_op(self) -> None:
        EventBus().publish(StreamFragment(turn_id="turn-1", content="x"))

    def test_failing_handler_does_not_stop_others(self, caplog: pytest.LogCaptureFixture) -> None:
        bus: EventBus[Event] = EventBus()
        received: list[Event] = []

        def broken(event: Event) -> None:
            raise RuntimeError("boom")

        bus.subscribe(SampleEvent, broken)
        bus.subscribe(SampleEvent, received.append)

        with caplog.at_level("ERROR", logger="aura.events"):
            bus.publish(SampleEvent(message="hello"))

        assert len(received) == 1
        assert "broken" in caplog.text

    def test_unsubscribe_removes_first_registration(self) -> None:
        bus: EventBus[Event] = EventBus()

        def handler(event: Event) -> None:
            pass

        bus.subscribe(SampleEvent, handler)
        bus.subscribe(SampleEvent, handler)
        bus.unsubscribe(SampleEvent, handler)
        bus.unsubscribe(StreamDone, handler)

        assert bus.handler_count(SampleEvent) == 1

    def test_bound_methods_are_weakly_held(self) -> None:
        bus: EventBus[Event] = EventBus()
        subscriber = _Subscriber()
        bus.subscribe(SampleEvent, subscriber.on_event)

        bus.publish(SampleEvent(message="one"))
        assert len(subscriber.received) == 1

        del subscriber
        gc.collect()
        bus.publish(SampleEvent(message="two"))

        assert bus.handler_count(SampleEvent) == 0

    def test_clear_and_handler_count(self) -> None:
        bus: EventBus[Event] = EventBus()
        bus.subscribe(SampleEvent, lambda event: None)
        bus.subscribe(StreamDone, lambda event: None)

        assert bus.handler_count() == 2
        bus.clear()
        assert bus.handler_count() == 0
