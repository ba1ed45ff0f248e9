"""EventBuffer implementation."""

from ..models import LogEvent


class EventBuffer:
    """Events waiting for the next flush, in enqueue order."""

    def __init__(self, size_limit: int):
        self._size_limit = size_limit
        self._events: list[LogEvent] = []

    def add(self, event: LogEvent) -> None:
        """Add an event to the buffer."""
        self._events.append(event)

    def is_full(self) -> bool:
        """Whether the size trigger has been reached."""
        return len(self._events) >= self._size_limit

    def get_all(self) -> list[LogEvent]:
        """Get all buffered events."""
        return self._events.copy()

    def take(self) -> list[LogEvent]:
        """Remove and return all buffered events."""
        events, self._events = self._events, []
        return events

    def clear(self) -> None:
        """Clear the buffer."""
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
