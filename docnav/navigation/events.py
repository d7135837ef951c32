from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, DefaultDict, List


Listener = Callable[..., Any]


class EventEmitter:
    """Synchronous observer registry; listeners run in registration order."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> Listener:
        self._listeners[event].append(listener)
        return listener

    def off(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners.get(event, ())):
            listener(*args)


__all__ = ["EventEmitter", "Listener"]
