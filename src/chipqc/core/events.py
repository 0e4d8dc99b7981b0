"""Event bus for chip test observability.

A synchronous, typed event channel between the transfer executor and its
consumers (event log, CLI formatters, alerting). Handlers are keyed by
event class, not by string names, and are called in subscription order on
the emitting thread, so delivery order always equals emission order.
"""

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class EventBusProtocol(Protocol):
    """Protocol for event bus implementations.

    Allows both EventBus and NullEventBus to satisfy the interface
    without inheritance.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Subscribe a handler to an event type."""
        ...

    def emit(self, event: T) -> None:
        """Emit an event to all subscribers."""
        ...


class EventBus:
    """Synchronous event bus for test run events.

    Handler exceptions propagate to the emitter: a broken event consumer
    aborts the run instead of silently losing history.

    Example:
        bus = EventBus()
        bus.subscribe(ElectrodeFailed, lambda e: print(f"channel {e.target} failed"))
        bus.emit(ElectrodeFailed(source=1, target=2, start=t0, end=t1, attempt=3))
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Subscribe a handler to an event type.

        Args:
            event_type: The event class to subscribe to
            handler: Callable that receives the event instance
        """
        self._subscribers.setdefault(event_type, []).append(handler)

    def emit(self, event: T) -> None:
        """Emit an event to all subscribers of its exact type.

        Events with no subscribers are ignored.
        """
        for handler in self._subscribers.get(type(event), []):
            handler(event)


class NullEventBus:
    """No-op event bus for library use where nobody observes the run.

    Does NOT inherit from EventBus: subscribing to it is a visible no-op
    rather than a silently broken subscription.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """No-op subscription - handler will never be called."""

    def emit(self, event: T) -> None:
        """No-op emission."""
