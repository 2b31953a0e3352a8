"""
Event bus for the timeout cascade simulator.

The bus is the only way state snapshots leave the run controller. It
gives the presentation layer (CLI, adapters, tests) a narrow boundary:
observers are told about every applied snapshot and never see a
half-applied tick, because the controller publishes only after it has
replaced its state.

The bus does not interpret events. It simply delivers them to registered
observers.
"""

from collections.abc import Callable
from typing import Any

Event = dict[str, Any]
Observer = Callable[[Event], None]


class EventBus:
    """
    Simple publish-subscribe event bus.

    Observers are called synchronously, in the order they were
    registered. If an observer raises an exception, propagation stops
    and the error is surfaced to the publisher.
    """

    def __init__(self) -> None:
        self._observers: list[Observer] = []
        self._closed: bool = False

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Register a new observer.

        Returns:
            A callable that removes the observer again.
        """
        if self._closed:
            raise RuntimeError("Cannot subscribe to a closed event bus")

        self._observers.append(observer)
        return lambda: self.unsubscribe(observer)

    def unsubscribe(self, observer: Observer) -> None:
        """
        Remove an observer. Unknown observers are ignored.
        """
        if observer in self._observers:
            self._observers.remove(observer)

    def publish(self, event: Event) -> None:
        """
        Publish an event to all observers.
        """
        if self._closed:
            raise RuntimeError("Cannot publish to a closed event bus")

        # Copy so an observer may unsubscribe itself mid-delivery
        for observer in list(self._observers):
            observer(event)

    def close(self) -> None:
        """
        Close the event bus.

        After closing, no further subscriptions or publications are
        permitted.
        """
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed
