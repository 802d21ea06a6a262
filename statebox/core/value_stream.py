"""Value Stream — holds the current snapshot and broadcasts every replacement.

Invariants:
    - Exactly one current snapshot exists from construction on
    - next() installs then notifies in one pass, subscription order, no coalescing
    - observe() replays the current snapshot to each new subscriber first,
      never a superseded one
    - Passes never interleave: a next() issued from inside a subscriber
      callback installs its value at once but is delivered only after the
      running pass ends, so every subscriber sees snapshots in publish order
      and ends on peek()
    - A queued value goes to the subscribers registered when it was published

Design Decisions:
    - RLock over Lock: a subscriber may call back into peek()/observe()/next()
      while a pass is running on the same thread
    - Re-entrant publishes are queued, not rejected: a subscriber reacting to
      one snapshot by publishing the next is a legitimate pattern
    - close() keeps peek()/next() usable: handlers still in flight at teardown
      finish quietly instead of failing
"""

import logging
import threading
from collections import deque
from typing import Any, Callable, Generic, TypeVar

from statebox.core.stream import Stream
from statebox.core.subscription import (
    CompleteCallback, SubscriberList, Subscription,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ValueStream(Generic[T]):
    """Replay-latest snapshot broadcaster (single writer, many readers)."""

    def __init__(self, initial: T, label: str = "value"):
        self._value = initial
        self._label = label
        self._lock = threading.RLock()
        self._subscribers = SubscriberList(label)
        self._version = 0
        self._pending: deque[tuple[int, T, tuple[Any, ...]]] = deque()
        self._notifying = False

    @property
    def version(self) -> int:
        """Number of next() calls since construction."""
        return self._version

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def peek(self) -> T:
        return self._value

    def next(self, value: T) -> None:
        """Install ``value`` as current and notify every subscriber once."""
        with self._lock:
            self._value = value
            self._version += 1
            self._pending.append(
                (self._version, value, self._subscribers.entries()),
            )
            if self._notifying:
                logger.debug(
                    f"Queued snapshot v{self._version} behind the running pass",
                    extra={"store": self._label},
                )
                return
            self._notifying = True
            try:
                self._drain()
            finally:
                self._notifying = False
                self._pending.clear()

    def _drain(self) -> None:
        while self._pending:
            version, value, entries = self._pending.popleft()
            delivered = self._subscribers.notify(value, entries)
            logger.debug(
                f"Published snapshot v{version} to {delivered} subscriber(s)",
                extra={"store": self._label},
            )

    def observe(self) -> Stream[T]:
        return Stream(self._subscribe, self._label)

    def _subscribe(
        self, on_next: Callable[[T], None],
        on_complete: CompleteCallback | None = None,
    ) -> Subscription:
        with self._lock:
            subscription = self._subscribers.add(on_next, on_complete)
            if not subscription.closed:
                self._replay(on_next)
            return subscription

    def _replay(self, on_next: Callable[[T], None]) -> None:
        try:
            on_next(self._value)
        except Exception:
            logger.exception(
                "Subscriber callback failed on replay", extra={"store": self._label},
            )

    def close(self) -> None:
        """Complete every subscription. Later observers complete immediately."""
        with self._lock:
            self._subscribers.close()

    @property
    def closed(self) -> bool:
        return self._subscribers.closed
