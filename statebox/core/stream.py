"""Stream — a lazily subscribed source with map/filter/distinct and async iteration.

Invariants:
    - Building a stream never subscribes; only subscribe() or iteration does
    - Operator state (e.g. distinct's last value) lives per subscription, never
      shared between two subscribers of the same derived stream
    - Closing the iterator (aclose(), or contextlib.aclosing around the loop)
      unsubscribes from the source; a bare `break` defers that until the
      async generator is garbage-collected
    - The source completing ends the loop

Design Decisions:
    - Streams wrap a subscribe function instead of holding subscribers, so
      derived streams cost nothing until somebody listens
    - Async iteration through an unbounded asyncio.Queue: synchronous
      notification passes must never block on a slow async consumer
"""

import asyncio
from typing import Any, AsyncIterator, Callable, Generic, TypeVar

from statebox.core.path import values_equal
from statebox.core.subscription import CompleteCallback, Subscription

T = TypeVar("T")
U = TypeVar("U")

SubscribeFn = Callable[[Callable[[Any], None], CompleteCallback | None], Subscription]

_NOTHING = object()
_COMPLETED = object()


class Stream(Generic[T]):
    """Subscribable view over a value stream, event channel or derived source."""

    def __init__(self, subscribe_fn: SubscribeFn, label: str = ""):
        self._subscribe_fn = subscribe_fn
        self.label = label

    def subscribe(
        self,
        on_next: Callable[[T], None],
        on_complete: CompleteCallback | None = None,
    ) -> Subscription:
        return self._subscribe_fn(on_next, on_complete)

    # --- Operators -------------------------------------------------------------

    def map(self, fn: Callable[[T], U]) -> "Stream[U]":
        def subscribe(on_next, on_complete=None):
            return self.subscribe(lambda value: on_next(fn(value)), on_complete)
        return Stream(subscribe, self.label)

    def filter(self, predicate: Callable[[T], bool]) -> "Stream[T]":
        def subscribe(on_next, on_complete=None):
            def deliver(value):
                if predicate(value):
                    on_next(value)
            return self.subscribe(deliver, on_complete)
        return Stream(subscribe, self.label)

    def distinct(self) -> "Stream[T]":
        """Suppress values equal to the last one delivered to this subscriber."""
        def subscribe(on_next, on_complete=None):
            last = _NOTHING

            def deliver(value):
                nonlocal last
                if last is not _NOTHING and values_equal(last, value):
                    return
                last = value
                on_next(value)
            return self.subscribe(deliver, on_complete)
        return Stream(subscribe, self.label)

    # --- Async iteration -------------------------------------------------------

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        queue: asyncio.Queue = asyncio.Queue()
        subscription = self.subscribe(
            queue.put_nowait, lambda: queue.put_nowait(_COMPLETED),
        )
        try:
            while True:
                value = await queue.get()
                if value is _COMPLETED:
                    return
                yield value
        finally:
            subscription.unsubscribe()

    def __repr__(self) -> str:
        return f"Stream({self.label!r})"
