from __future__ import annotations

from typing import Any, List, Optional

from docnav.models.location import ByFraction
from docnav.navigation.events import EventEmitter, Listener


NAVIGATE = "navigate"
INDEX_CHANGE = "index-change"


class HistoryStack:
    """Deduplicating back/forward stack of navigation targets.

    ``position`` ranges over ``[-1, len - 1]``; ``-1`` is the empty state. ``back`` and
    ``forward`` emit ``navigate`` with the target entry, immediately followed by
    ``index-change``; ``push_state`` emits ``index-change`` only.
    """

    def __init__(self) -> None:
        self._entries: List[Any] = []
        self._position = -1
        self._events = EventEmitter()

    def on(self, event: str, listener: Listener) -> Listener:
        return self._events.on(event, listener)

    def off(self, event: str, listener: Listener) -> None:
        self._events.off(event, listener)

    @property
    def position(self) -> int:
        return self._position

    @property
    def current(self) -> Optional[Any]:
        if self._position < 0:
            return None
        return self._entries[self._position]

    @property
    def entries(self) -> List[Any]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def push_state(self, entry: Any) -> bool:
        """Append ``entry`` after the current position, discarding any forward branch."""

        if self._is_duplicate(self.current, entry):
            return False
        self._position += 1
        del self._entries[self._position :]
        self._entries.append(entry)
        self._events.emit(INDEX_CHANGE)
        return True

    def replace_state(self, entry: Any) -> None:
        """Overwrite the current entry; there is nothing to replace while empty."""

        if self._position < 0:
            return
        self._entries[self._position] = entry

    def back(self) -> Optional[Any]:
        if not self.can_go_back:
            return None
        return self._move(self._position - 1)

    def forward(self) -> Optional[Any]:
        if not self.can_go_forward:
            return None
        return self._move(self._position + 1)

    @property
    def can_go_back(self) -> bool:
        return self._position > 0

    @property
    def can_go_forward(self) -> bool:
        return self._position < len(self._entries) - 1

    def clear(self) -> None:
        self._entries = []
        self._position = -1

    def _move(self, position: int) -> Any:
        self._position = position
        entry = self._entries[position]
        self._events.emit(NAVIGATE, entry)
        self._events.emit(INDEX_CHANGE)
        return entry

    @staticmethod
    def _is_duplicate(last: Any, entry: Any) -> bool:
        if last is None:
            return False
        if last is entry or last == entry:
            return True
        return isinstance(last, ByFraction) and isinstance(entry, ByFraction) and last.fraction == entry.fraction


__all__ = ["HistoryStack", "INDEX_CHANGE", "NAVIGATE"]
