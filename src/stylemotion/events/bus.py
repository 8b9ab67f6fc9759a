"""Synchronous event bus for engine lifecycle notifications."""

from __future__ import annotations

from typing import Any, Callable

Listener = Callable[[Any], None]


class EventBus:
    """Publish-subscribe bus dispatching in the caller's stack.

    The engine emits from inside recompute and tick, so listeners run before
    the triggering call returns. Global listeners run before typed ones;
    both in registration order.
    """

    def __init__(self) -> None:
        self._by_type: dict[type, list[Listener]] = {}
        self._catch_all: list[Listener] = []

    def subscribe(self, event_type: type, callback: Listener) -> Callable[[], None]:
        """Register *callback* for *event_type*; returns an unsubscribe function."""
        listeners = self._by_type.setdefault(event_type, [])
        listeners.append(callback)
        return lambda: _discard(listeners, callback)

    def on_all(self, callback: Listener) -> Callable[[], None]:
        """Register *callback* for every event; returns an unsubscribe function."""
        self._catch_all.append(callback)
        return lambda: _discard(self._catch_all, callback)

    def emit(self, event: Any) -> None:
        for callback in list(self._catch_all):
            callback(event)
        for callback in list(self._by_type.get(type(event), ())):
            callback(event)


def _discard(listeners: list[Listener], callback: Listener) -> None:
    if callback in listeners:
        listeners.remove(callback)
