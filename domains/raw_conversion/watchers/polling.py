"""
Cancellable long poll over filesystem events.

Watchdog handlers run on observer threads and push events into a
``WatchQueue``. The watch loop consumes them with ``long_poll()``, which
blocks while idle and returns ``None`` once the queue has been closed.
"""

import queue
import random
import threading
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

_CLOSED = object()


class WatchQueue(Generic[T]):
    """Thread-safe event queue with long poll and close semantics."""

    def __init__(self, min_delay: float = 0.1, max_delay: float = 0.5, step: float = 0.1):
        """
        Initialize watch queue.

        Args:
            min_delay: Lower bound of the first idle wait in seconds
            max_delay: Cap of the idle wait in seconds
            step: Amount the idle wait grows after each empty poll
        """
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.step = step
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, item: T) -> None:
        """Enqueue an event. Events put after close are dropped."""
        if not self.closed:
            self._queue.put(item)

    def close(self) -> None:
        """Close the queue and wake up a blocked poller. Idempotent."""
        if not self.closed:
            self._closed.set()
            self._queue.put(_CLOSED)

    def initial_delay(self) -> float:
        return random.uniform(self.min_delay, self.min_delay * 2)

    def long_poll(self) -> Optional[T]:
        """
        Wait for the next event.

        Returns:
            The next event, or None if the queue has been closed
        """
        delay = self.initial_delay()

        while not self.closed:
            try:
                item = self._queue.get(timeout=delay)
            except queue.Empty:
                delay = min(delay + self.step, self.max_delay)
                continue

            if item is _CLOSED:
                return None
            return item  # type: ignore[return-value]

        return None
